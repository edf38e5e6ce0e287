"""Internet Control Message Protocol messages (RFC 792)."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from netstack.common.checksum import calculate_checksum

__all__ = [
    "MIN_HEADER_LENGTH",
    "IcmpType",
    "DestinationUnreachableCode",
    "TimeExceededCode",
    "Message",
    "parse",
    "echo_request",
    "echo_reply",
    "destination_unreachable",
    "time_exceeded",
]

MIN_HEADER_LENGTH = 8

_HEADER = struct.Struct("!BBHHH")


class IcmpType(IntEnum):
    """ICMP message type."""

    ECHO_REPLY = 0
    DESTINATION_UNREACHABLE = 3
    SOURCE_QUENCH = 4
    REDIRECT = 5
    ECHO_REQUEST = 8
    TIME_EXCEEDED = 11
    PARAMETER_PROBLEM = 12
    TIMESTAMP_REQUEST = 13
    TIMESTAMP_REPLY = 14

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 0xFF:
            member = int.__new__(cls, value)
            member._name_ = f"UNKNOWN_{value}"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        label = _TYPE_LABELS.get(int(self))
        return label if label is not None else f"Unknown({int(self)})"


_TYPE_LABELS = {
    IcmpType.ECHO_REPLY: "EchoReply",
    IcmpType.DESTINATION_UNREACHABLE: "DestinationUnreachable",
    IcmpType.SOURCE_QUENCH: "SourceQuench",
    IcmpType.REDIRECT: "Redirect",
    IcmpType.ECHO_REQUEST: "EchoRequest",
    IcmpType.TIME_EXCEEDED: "TimeExceeded",
    IcmpType.PARAMETER_PROBLEM: "ParameterProblem",
    IcmpType.TIMESTAMP_REQUEST: "TimestampRequest",
    IcmpType.TIMESTAMP_REPLY: "TimestampReply",
}

_ERROR_TYPES = frozenset(
    {
        IcmpType.DESTINATION_UNREACHABLE,
        IcmpType.SOURCE_QUENCH,
        IcmpType.REDIRECT,
        IcmpType.TIME_EXCEEDED,
        IcmpType.PARAMETER_PROBLEM,
    }
)


class DestinationUnreachableCode(IntEnum):
    """Codes of a Destination Unreachable message."""

    NET_UNREACHABLE = 0
    HOST_UNREACHABLE = 1
    PROTOCOL_UNREACHABLE = 2
    PORT_UNREACHABLE = 3
    FRAGMENTATION_NEEDED = 4
    SOURCE_ROUTE_FAILED = 5


class TimeExceededCode(IntEnum):
    """Codes of a Time Exceeded message."""

    TTL_EXCEEDED = 0
    FRAGMENT_REASSEMBLY_TIME = 1


@dataclass
class Message:
    """An ICMP message: the 8-byte header and the data after it."""

    type: IcmpType
    code: int = 0
    checksum: int = 0
    identifier: int = 0
    sequence: int = 0
    data: bytes = b""

    def _header(self, checksum: int) -> bytes:
        try:
            return _HEADER.pack(
                int(self.type), int(self.code), checksum, self.identifier, self.sequence
            )
        except struct.error as exc:
            raise ValueError(f"ICMP header field out of range: {exc}") from None

    def serialize(self) -> bytes:
        """Wire form with a freshly computed checksum, which is also stored."""
        unsummed = self._header(0) + bytes(self.data)
        self.checksum = calculate_checksum(unsummed)
        return self._header(self.checksum) + bytes(self.data)

    def verify_checksum(self) -> bool:
        """True when the stored checksum matches the message."""
        return calculate_checksum(self._header(self.checksum) + bytes(self.data)) == 0

    def __str__(self) -> str:
        return (
            f"ICMP{{Type={self.type}({int(self.type)}), Code={int(self.code)}, "
            f"ID={self.identifier}, Seq={self.sequence}, DataLen={len(self.data)}}}"
        )

    def is_echo_request(self) -> bool:
        return self.type == IcmpType.ECHO_REQUEST

    def is_echo_reply(self) -> bool:
        return self.type == IcmpType.ECHO_REPLY

    def is_error(self) -> bool:
        """True for the error-reporting message types."""
        return self.type in _ERROR_TYPES


def parse(data) -> Message:
    """Parse an ICMP message from raw bytes."""
    data = bytes(data)
    if len(data) < MIN_HEADER_LENGTH:
        raise ValueError(
            f"ICMP message too short: {len(data)} bytes (minimum {MIN_HEADER_LENGTH})"
        )
    kind, code, checksum, identifier, sequence = _HEADER.unpack_from(data)
    return Message(
        type=IcmpType(kind),
        code=code,
        checksum=checksum,
        identifier=identifier,
        sequence=sequence,
        data=data[MIN_HEADER_LENGTH:],
    )


def echo_request(identifier: int, sequence: int, data=b"") -> Message:
    """An Echo Request message."""
    return Message(IcmpType.ECHO_REQUEST, 0, 0, identifier, sequence, bytes(data or b""))


def echo_reply(identifier: int, sequence: int, data=b"") -> Message:
    """An Echo Reply message."""
    return Message(IcmpType.ECHO_REPLY, 0, 0, identifier, sequence, bytes(data or b""))


def destination_unreachable(code: int, data=b"") -> Message:
    """A Destination Unreachable message."""
    return Message(IcmpType.DESTINATION_UNREACHABLE, code, 0, 0, 0, bytes(data or b""))


def time_exceeded(code: int, data=b"") -> Message:
    """A Time Exceeded message."""
    return Message(IcmpType.TIME_EXCEEDED, code, 0, 0, 0, bytes(data or b""))