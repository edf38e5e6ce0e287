"""Internet checksum (RFC 1071) and its incremental update (RFC 1624)."""

from __future__ import annotations

import struct
import sys
from array import array
from dataclasses import dataclass
from typing import Callable

from netstack.common.types import IPv4Address, Protocol

__all__ = [
    "ChecksumCompute",
    "PseudoHeader",
    "calculate_checksum",
    "verify_checksum",
    "update_checksum",
    "calculate_checksum_with_pseudo_header",
    "calculate_checksum_optimized",
    "calculate_checksum_fast",
    "calculate_checksum_with_pseudo_header_optimized",
    "update_checksum_optimized",
    "select_checksum_function",
]

ChecksumCompute = Callable[[bytes], int]


def _fold(total: int) -> int:
    while total > 0xFFFF:
        total = (total & 0xFFFF) + (total >> 16)
    return total


def _padded(data) -> bytes:
    data = bytes(data)
    return data + b"\x00" if len(data) % 2 else data


def _word_sum(data) -> int:
    padded = _padded(data)
    return sum(struct.unpack(f">{len(padded) // 2}H", padded))


def _folded_sum_fast(data) -> int:
    # 2**16 is 1 modulo 0xFFFF, so the big-endian integer of the data is
    # congruent to the sum of its 16-bit words.
    padded = _padded(data)
    residue = int.from_bytes(padded, "big") % 0xFFFF
    if residue == 0 and any(padded):
        return 0xFFFF
    return residue


def calculate_checksum(data) -> int:
    """One's complement of the one's complement sum of the data's 16-bit words."""
    return ~_fold(_word_sum(data)) & 0xFFFF


def verify_checksum(data) -> bool:
    """True when data that embeds its checksum sums to zero."""
    return calculate_checksum(data) in (0, 0xFFFF)


def update_checksum(old_checksum: int, old_data, new_data) -> int:
    """Update a checksum after old_data was replaced by new_data of equal length."""
    old_data, new_data = bytes(old_data), bytes(new_data)
    if len(old_data) != len(new_data):
        raise ValueError("update_checksum requires data of equal length")
    if not 0 <= old_checksum <= 0xFFFF:
        raise ValueError(f"checksum out of range: {old_checksum}")

    even = len(old_data) - len(old_data) % 2
    total = 0xFFFFFFFF ^ old_checksum
    total += sum(0xFFFF - word for (word,) in struct.iter_unpack(">H", old_data[:even]))
    if len(old_data) % 2:
        total += 0xFF00 - (old_data[-1] << 8)
    total += sum(word for (word,) in struct.iter_unpack(">H", new_data[:even]))
    if len(new_data) % 2:
        total += new_data[-1] << 8
    return ~_fold(total & 0xFFFFFFFF) & 0xFFFF


@dataclass(frozen=True)
class PseudoHeader:
    """The IPv4 pseudo-header that TCP and UDP checksums cover."""

    source_addr: IPv4Address
    destination_addr: IPv4Address
    protocol: Protocol
    length: int

    def __post_init__(self) -> None:
        if not 0 <= self.length <= 0xFFFF:
            raise ValueError(f"length out of range: {self.length}")
        if not 0 <= int(self.protocol) <= 0xFF:
            raise ValueError(f"protocol out of range: {self.protocol}")

    def to_bytes(self) -> bytes:
        """The 12-byte wire form of the pseudo-header."""
        return struct.pack(
            "!4s4sxBH",
            bytes(self.source_addr),
            bytes(self.destination_addr),
            int(self.protocol),
            self.length,
        )


def calculate_checksum_with_pseudo_header(pseudo_header: PseudoHeader, data) -> int:
    """Checksum over the pseudo-header followed by the data."""
    return calculate_checksum(pseudo_header.to_bytes() + bytes(data))


def calculate_checksum_optimized(data) -> int:
    """Same result as calculate_checksum, summing words through an array."""
    words = array("H", _padded(data))
    if sys.byteorder == "little":
        words.byteswap()
    return ~_fold(sum(words)) & 0xFFFF


def calculate_checksum_fast(data) -> int:
    """Same result as calculate_checksum, computed by modular reduction."""
    return ~_folded_sum_fast(data) & 0xFFFF


def calculate_checksum_with_pseudo_header_optimized(pseudo_header: PseudoHeader, data) -> int:
    """Same result as calculate_checksum_with_pseudo_header, without joining buffers."""
    addresses = bytes(pseudo_header.source_addr) + bytes(pseudo_header.destination_addr)
    header_sum = sum(struct.unpack(">4H", addresses))
    header_sum += int(pseudo_header.protocol) + pseudo_header.length
    total = _fold(header_sum) + _folded_sum_fast(data)
    return ~_fold(total) & 0xFFFF


def update_checksum_optimized(old_checksum: int, old_data, new_data) -> int:
    """Incremental checksum update; same result as update_checksum."""
    return update_checksum(old_checksum, old_data, new_data)


def select_checksum_function(size: int) -> ChecksumCompute:
    """Pick a checksum routine suited to data of the given size."""
    if size >= 1024:
        return calculate_checksum_fast
    if size >= 128:
        return calculate_checksum_optimized
    return calculate_checksum