"""Checksum entry points for the bulk path, plus batch computation."""

from __future__ import annotations

import struct

from netstack.common.checksum import (
    PseudoHeader,
    calculate_checksum_fast,
    calculate_checksum_with_pseudo_header_optimized,
    update_checksum,
)

__all__ = [
    "calculate_checksum_simd",
    "calculate_checksum_with_pseudo_header_simd",
    "update_checksum_simd",
    "verify_checksum_simd",
    "ChecksumBatch",
]

_SMALL_UPDATE = 8


def _word_sum(data: bytes) -> int:
    if len(data) % 2:
        data += b"\x00"
    return sum(struct.unpack(f">{len(data) // 2}H", data))


def calculate_checksum_simd(data) -> int:
    """Internet checksum of the data; empty data gives 0."""
    data = bytes(data)
    if not data:
        return 0
    return calculate_checksum_fast(data)


def calculate_checksum_with_pseudo_header_simd(pseudo_header: PseudoHeader, data) -> int:
    """Checksum over the pseudo-header followed by the data."""
    return calculate_checksum_with_pseudo_header_optimized(pseudo_header, data)


def update_checksum_simd(old_checksum: int, old_data, new_data) -> int:
    """Incrementally update a checksum after replacing old_data with new_data.

    When the two runs differ in length, or are empty, the old checksum is
    returned unchanged.
    """
    if not 0 <= old_checksum <= 0xFFFF:
        raise ValueError(f"checksum out of range: {old_checksum}")
    old_data, new_data = bytes(old_data), bytes(new_data)
    if len(old_data) != len(new_data) or not old_data:
        return old_checksum
    if len(old_data) <= _SMALL_UPDATE:
        return update_checksum(old_checksum, old_data, new_data)

    diff = _word_sum(new_data) - _word_sum(old_data)
    total = ((~old_checksum & 0xFFFF) + diff) % 0xFFFF or 0xFFFF
    return ~total & 0xFFFF


def verify_checksum_simd(data, expected_checksum: int) -> bool:
    """True when the checksum of the data equals the expected value."""
    return calculate_checksum_simd(data) == expected_checksum


class ChecksumBatch:
    """Collects packets and computes their checksums together."""

    def __init__(self) -> None:
        self._packets: list[bytes] = []

    def __len__(self) -> int:
        return len(self._packets)

    def add(self, data) -> None:
        """Queue a packet."""
        self._packets.append(bytes(data))

    def process(self) -> list[int]:
        """Checksums of the queued packets, in the order they were added."""
        return [calculate_checksum_simd(packet) for packet in self._packets]

    def reset(self) -> None:
        """Drop every queued packet."""
        self._packets.clear()