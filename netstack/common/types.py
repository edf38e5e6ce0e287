"""Address and protocol-number types shared across the network stack."""

from __future__ import annotations

import ipaddress
import re
from enum import IntEnum

__all__ = [
    "MACAddress",
    "BROADCAST_MAC",
    "parse_mac",
    "IPv4Address",
    "parse_ipv4",
    "ipv4_from_int",
    "IPv6Address",
    "parse_ipv6",
    "EtherType",
    "Protocol",
]


class _FixedBytes(bytes):
    """Immutable byte string of a fixed length."""

    __slots__ = ()
    _size = 0

    def __new__(cls, octets=None):
        if octets is None:
            octets = bytes(cls._size)
        if isinstance(octets, int):
            raise TypeError(f"{cls.__name__} needs {cls._size} octets, not an integer")
        value = super().__new__(cls, octets)
        if len(value) != cls._size:
            raise ValueError(
                f"{cls.__name__} needs {cls._size} octets, got {len(value)}"
            )
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self}')"


class MACAddress(_FixedBytes):
    """A 48-bit hardware address."""

    __slots__ = ()
    _size = 6

    def __str__(self) -> str:
        return ":".join(f"{octet:02x}" for octet in self)

    def is_broadcast(self) -> bool:
        """True for ff:ff:ff:ff:ff:ff."""
        return all(octet == 0xFF for octet in self)

    def is_multicast(self) -> bool:
        """True when the group bit of the first octet is set."""
        return bool(self[0] & 0x01)


BROADCAST_MAC = MACAddress(b"\xff" * 6)

_HEX2 = "[0-9A-Fa-f]{2}"
_HEX4 = "[0-9A-Fa-f]{4}"
_MAC_SEPARATED = re.compile(rf"{_HEX2}([:-]){_HEX2}(?:\1{_HEX2})*")
_MAC_DOTTED = re.compile(rf"{_HEX4}(?:\.{_HEX4})*")
_ACCEPTED_LENGTHS = (6, 8, 20)


def parse_mac(text: str) -> MACAddress:
    """Parse a MAC address written as aa:bb:.., aa-bb-.. or aabb.ccdd.eeff."""
    if len(text) >= 14 and _MAC_SEPARATED.fullmatch(text):
        octets = bytes.fromhex(re.sub("[:-]", "", text))
    elif len(text) >= 14 and _MAC_DOTTED.fullmatch(text):
        octets = bytes.fromhex(text.replace(".", ""))
    else:
        raise ValueError(f"invalid MAC address: {text}")
    if len(octets) not in _ACCEPTED_LENGTHS:
        raise ValueError(f"invalid MAC address: {text}")
    if len(octets) != 6:
        raise ValueError(f"invalid MAC address length: {len(octets)}")
    return MACAddress(octets)


class IPv4Address(_FixedBytes):
    """A 32-bit IPv4 address."""

    __slots__ = ()
    _size = 4

    def __str__(self) -> str:
        return ".".join(str(octet) for octet in self)

    def to_int(self) -> int:
        """The address as an unsigned integer in network byte order."""
        return int.from_bytes(self, "big")


_V4_IN_V6_PREFIX = b"\x00" * 10 + b"\xff\xff"


def _parse_ip(text: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    if "%" in text:
        raise ValueError(f"invalid IP address: {text}")
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        raise ValueError(f"invalid IP address: {text}") from None


def parse_ipv4(text: str) -> IPv4Address:
    """Parse a dotted-decimal IPv4 address (IPv4-mapped IPv6 is accepted)."""
    address = _parse_ip(text)
    if isinstance(address, ipaddress.IPv6Address):
        mapped = address.ipv4_mapped
        if mapped is None:
            raise ValueError(f"not an IPv4 address: {text}")
        address = mapped
    return IPv4Address(address.packed)


def ipv4_from_int(value: int) -> IPv4Address:
    """Build an IPv4 address from an unsigned 32-bit integer."""
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"value out of range for an IPv4 address: {value}")
    return IPv4Address(value.to_bytes(4, "big"))


class IPv6Address(_FixedBytes):
    """A 128-bit IPv6 address."""

    __slots__ = ()
    _size = 16

    def __str__(self) -> str:
        if self.startswith(_V4_IN_V6_PREFIX):
            return ".".join(str(octet) for octet in self[12:])
        return ipaddress.IPv6Address(bytes(self)).compressed

    def is_loopback(self) -> bool:
        """True for ::1."""
        return self == b"\x00" * 15 + b"\x01"

    def is_link_local(self) -> bool:
        """True for addresses in fe80::/10."""
        return self[0] == 0xFE and (self[1] & 0xC0) == 0x80

    def is_multicast(self) -> bool:
        """True for addresses in ff00::/8."""
        return self[0] == 0xFF


def parse_ipv6(text: str) -> IPv6Address:
    """Parse an IPv6 address; IPv4 addresses become IPv4-mapped addresses."""
    address = _parse_ip(text)
    if isinstance(address, ipaddress.IPv4Address):
        return IPv6Address(_V4_IN_V6_PREFIX + address.packed)
    return IPv6Address(address.packed)


def _unknown_member(cls, value, limit):
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= limit:
        member = int.__new__(cls, value)
        member._name_ = f"UNKNOWN_{value}"
        member._value_ = value
        return member
    return None


class EtherType(IntEnum):
    """Protocol type carried in an Ethernet frame."""

    IPV4 = 0x0800
    ARP = 0x0806
    IPV6 = 0x86DD

    @classmethod
    def _missing_(cls, value):
        return _unknown_member(cls, value, 0xFFFF)

    def __str__(self) -> str:
        label = _ETHERTYPE_LABELS.get(int(self))
        return label if label is not None else f"Unknown(0x{int(self):04x})"


_ETHERTYPE_LABELS = {
    EtherType.IPV4: "IPv4",
    EtherType.ARP: "ARP",
    EtherType.IPV6: "IPv6",
}


class Protocol(IntEnum):
    """Protocol number carried in an IP header."""

    ICMP = 1
    TCP = 6
    UDP = 17
    IPV6 = 41
    ROUTING = 43
    FRAGMENT = 44
    ICMPV6 = 58
    NO_NEXT = 59

    @classmethod
    def _missing_(cls, value):
        return _unknown_member(cls, value, 0xFF)

    def __str__(self) -> str:
        label = _PROTOCOL_LABELS.get(int(self))
        return label if label is not None else f"Unknown({int(self)})"


_PROTOCOL_LABELS = {
    Protocol.ICMP: "ICMP",
    Protocol.TCP: "TCP",
    Protocol.UDP: "UDP",
    Protocol.IPV6: "IPv6",
    Protocol.ICMPV6: "ICMPv6",
    Protocol.NO_NEXT: "NoNext",
    Protocol.FRAGMENT: "Fragment",
    Protocol.ROUTING: "Routing",
}