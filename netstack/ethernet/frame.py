"""Ethernet II frames: parsing, serialization and address classification."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from netstack.common.types import EtherType, MACAddress

__all__ = [
    "HEADER_SIZE",
    "MIN_FRAME_SIZE",
    "MAX_FRAME_SIZE",
    "MIN_PAYLOAD_SIZE",
    "MAX_PAYLOAD_SIZE",
    "FCS_SIZE",
    "Frame",
    "parse",
]

HEADER_SIZE = 14
MIN_FRAME_SIZE = 64
MAX_FRAME_SIZE = 1518
MIN_PAYLOAD_SIZE = 46
MAX_PAYLOAD_SIZE = 1500
FCS_SIZE = 4

_HEADER = struct.Struct("!6s6sH")


@dataclass
class Frame:
    """An Ethernet II frame without its frame check sequence."""

    destination: MACAddress
    source: MACAddress
    ether_type: EtherType
    payload: bytes = b""

    def __post_init__(self) -> None:
        self.destination = MACAddress(self.destination)
        self.source = MACAddress(self.source)
        self.ether_type = EtherType(self.ether_type)
        self.payload = bytes(self.payload or b"")

    def serialize(self) -> bytes:
        """Wire form, with the payload zero-padded to the minimum size."""
        header = _HEADER.pack(
            bytes(self.destination), bytes(self.source), int(self.ether_type)
        )
        return header + self.payload.ljust(MIN_PAYLOAD_SIZE, b"\x00")

    def size(self) -> int:
        """Length of the serialized frame in bytes."""
        return HEADER_SIZE + max(len(self.payload), MIN_PAYLOAD_SIZE)

    def __str__(self) -> str:
        return (
            f"Ethernet{{Dst={self.destination}, Src={self.source}, "
            f"Type={self.ether_type}, PayloadLen={len(self.payload)}}}"
        )

    def is_broadcast(self) -> bool:
        return self.destination.is_broadcast()

    def is_multicast(self) -> bool:
        return self.destination.is_multicast()

    def is_unicast(self) -> bool:
        return not self.is_broadcast() and not self.is_multicast()


def parse(data) -> Frame:
    """Parse an Ethernet frame; everything after the header is the payload."""
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise ValueError(f"ethernet frame too short: {len(data)} bytes")
    destination, source, ether_type = _HEADER.unpack_from(data)
    return Frame(
        MACAddress(destination),
        MACAddress(source),
        EtherType(ether_type),
        data[HEADER_SIZE:],
    )