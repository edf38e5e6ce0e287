"""A cursor over a mutable byte buffer for reading and writing packet fields."""

from __future__ import annotations

import struct

from netstack.common.types import IPv4Address, MACAddress

__all__ = ["PacketBuffer", "hex_dump"]

_BYTES_PER_LINE = 16


class PacketBuffer:
    """Reads and writes big-endian packet fields at a moving position.

    A bytearray passed in is used in place, so writes show up in it; any other
    bytes-like object is copied.
    """

    def __init__(self, data=b"") -> None:
        self._data = data if isinstance(data, bytearray) else bytearray(data)
        self._pos = 0

    @classmethod
    def zeroed(cls, size: int) -> "PacketBuffer":
        """A buffer of size zero bytes."""
        if size < 0:
            raise ValueError(f"buffer size must not be negative: {size}")
        return cls(bytearray(size))

    def __len__(self) -> int:
        return len(self._data)

    @property
    def raw(self) -> bytearray:
        """The whole underlying buffer."""
        return self._data

    @property
    def unread(self) -> bytes:
        """The bytes from the current position to the end."""
        return bytes(self._data[self._pos:])

    @property
    def position(self) -> int:
        """The current read/write position."""
        return self._pos

    @property
    def remaining(self) -> int:
        """Number of bytes between the position and the end."""
        return len(self._data) - self._pos

    def seek(self, position: int) -> None:
        """Move to an absolute position within [0, len]."""
        if not 0 <= position <= len(self._data):
            raise ValueError(
                f"position {position} out of range [0, {len(self._data)}]"
            )
        self._pos = position

    def reset(self) -> None:
        """Move back to the start."""
        self._pos = 0

    def _advance(self, n: int) -> int:
        if n < 0:
            raise ValueError(f"count must not be negative: {n}")
        if self._pos + n > len(self._data):
            raise EOFError(
                f"need {n} bytes at position {self._pos}, buffer holds {len(self._data)}"
            )
        start = self._pos
        self._pos += n
        return start

    def skip(self, n: int) -> None:
        """Advance the position by n bytes."""
        self._advance(n)

    def read_byte(self) -> int:
        """Read one byte."""
        start = self._advance(1)
        return self._data[start]

    def read_bytes(self, n: int) -> bytes:
        """Read n bytes."""
        start = self._advance(n)
        return bytes(self._data[start:start + n])

    def read_uint16(self) -> int:
        """Read a big-endian unsigned 16-bit integer."""
        start = self._advance(2)
        return struct.unpack_from(">H", self._data, start)[0]

    def read_uint32(self) -> int:
        """Read a big-endian unsigned 32-bit integer."""
        start = self._advance(4)
        return struct.unpack_from(">I", self._data, start)[0]

    def read_mac(self) -> MACAddress:
        """Read a 6-byte hardware address."""
        return MACAddress(self.read_bytes(6))

    def read_ipv4(self) -> IPv4Address:
        """Read a 4-byte IPv4 address."""
        return IPv4Address(self.read_bytes(4))

    def _put(self, payload: bytes) -> None:
        start = self._advance(len(payload))
        self._data[start:start + len(payload)] = payload

    def write_byte(self, value: int) -> None:
        """Write one byte."""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        start = self._advance(1)
        self._data[start] = value

    def write_bytes(self, data) -> None:
        """Write a run of bytes."""
        self._put(bytes(data))

    def write_uint16(self, value: int) -> None:
        """Write a big-endian unsigned 16-bit integer."""
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"uint16 value out of range: {value}")
        self._put(struct.pack(">H", value))

    def write_uint32(self, value: int) -> None:
        """Write a big-endian unsigned 32-bit integer."""
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"uint32 value out of range: {value}")
        self._put(struct.pack(">I", value))

    def write_mac(self, mac) -> None:
        """Write a 6-byte hardware address."""
        self._put(bytes(MACAddress(mac)))

    def write_ipv4(self, address) -> None:
        """Write a 4-byte IPv4 address."""
        self._put(bytes(IPv4Address(address)))

    def hex_dump(self) -> str:
        """Hex dump of the whole buffer."""
        return hex_dump(self._data)


def _dump_line(offset: int, line: bytes) -> str:
    cells = []
    for index in range(_BYTES_PER_LINE):
        cell = f"{line[index]:02x} " if index < len(line) else "   "
        if index == 7:
            cell += " "
        cells.append(cell)
    text = "".join(chr(b) if 32 <= b <= 126 else "." for b in line)
    return f"{offset:04x}  {''.join(cells)} |{text}|\n"


def hex_dump(data) -> str:
    """Format bytes as lines of offset, hex octets and printable characters."""
    data = bytes(data)
    return "".join(
        _dump_line(offset, data[offset:offset + _BYTES_PER_LINE])
        for offset in range(0, len(data), _BYTES_PER_LINE)
    )