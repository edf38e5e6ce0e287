import pytest

from netstack.common.types import (
    BROADCAST_MAC,
    EtherType,
    IPv4Address,
    IPv6Address,
    MACAddress,
    Protocol,
    ipv4_from_int,
    parse_ipv4,
    parse_ipv6,
    parse_mac,
)


def test_mac_string():
    mac = MACAddress(bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]))
    assert str(mac) == "00:11:22:33:44:55"


def test_mac_broadcast():
    mac = MACAddress(bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]))
    assert mac.is_broadcast() is False
    assert BROADCAST_MAC.is_broadcast() is True


def test_mac_multicast():
    mac = MACAddress(bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]))
    assert mac.is_multicast() is False
    multicast = MACAddress(bytes([0x01, 0x00, 0x5E, 0x00, 0x00, 0x01]))
    assert multicast.is_multicast() is True


def test_mac_wrong_length():
    with pytest.raises(ValueError):
        MACAddress(b"\x00\x01")


def test_mac_default_is_zero():
    assert MACAddress() == bytes(6)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("00:11:22:33:44:55", MACAddress(bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]))),
        ("FF:FF:FF:FF:FF:FF", BROADCAST_MAC),
        ("00-11-22-33-44-55", MACAddress(bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]))),
        ("0011.2233.4455", MACAddress(bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]))),
    ],
)
def test_parse_mac_valid(text, expected):
    assert parse_mac(text) == expected


@pytest.mark.parametrize(
    "text",
    ["invalid", "00:11:22:33:44", "00:11-22:33:44:55", "00:11:22:33:44:55:66:77", "zz:11:22:33:44:55"],
)
def test_parse_mac_invalid(text):
    with pytest.raises(ValueError):
        parse_mac(text)


def test_ipv4_string_and_int():
    ip = IPv4Address(bytes([192, 168, 1, 1]))
    assert str(ip) == "192.168.1.1"
    assert ip.to_int() == 0xC0A80101


@pytest.mark.parametrize(
    "text, expected",
    [
        ("192.168.1.1", IPv4Address(bytes([192, 168, 1, 1]))),
        ("127.0.0.1", IPv4Address(bytes([127, 0, 0, 1]))),
        ("::ffff:10.0.0.1", IPv4Address(bytes([10, 0, 0, 1]))),
    ],
)
def test_parse_ipv4_valid(text, expected):
    assert parse_ipv4(text) == expected


@pytest.mark.parametrize("text", ["invalid", "::1", "256.1.1.1"])
def test_parse_ipv4_invalid(text):
    with pytest.raises(ValueError):
        parse_ipv4(text)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0xC0A80101, bytes([192, 168, 1, 1])),
        (0x7F000001, bytes([127, 0, 0, 1])),
        (0x00000000, bytes([0, 0, 0, 0])),
        (0xFFFFFFFF, bytes([255, 255, 255, 255])),
    ],
)
def test_ipv4_from_int(value, expected):
    assert ipv4_from_int(value) == IPv4Address(expected)


def test_ipv4_from_int_out_of_range():
    with pytest.raises(ValueError):
        ipv4_from_int(1 << 32)


def test_ipv4_roundtrip():
    original = IPv4Address(bytes([192, 168, 1, 100]))
    assert ipv4_from_int(original.to_int()) == original


def test_ipv6_loopback():
    ip = parse_ipv6("::1")
    assert ip.is_loopback() is True
    assert ip.is_multicast() is False
    assert str(ip) == "::1"


def test_ipv6_link_local():
    ip = parse_ipv6("fe80::1")
    assert ip.is_link_local() is True
    assert ip.is_loopback() is False


def test_ipv6_multicast():
    assert parse_ipv6("ff02::1").is_multicast() is True


def test_ipv6_string():
    assert str(parse_ipv6("2001:db8:0:0:0:0:0:1")) == "2001:db8::1"


def test_ipv6_from_ipv4_is_mapped():
    ip = parse_ipv6("192.168.1.1")
    assert ip == IPv6Address(b"\x00" * 10 + b"\xff\xff" + bytes([192, 168, 1, 1]))
    assert str(ip) == "192.168.1.1"


@pytest.mark.parametrize("text", ["invalid", "fe80::1%eth0"])
def test_parse_ipv6_invalid(text):
    with pytest.raises(ValueError):
        parse_ipv6(text)


@pytest.mark.parametrize(
    "ether_type, expected",
    [
        (EtherType.IPV4, "IPv4"),
        (EtherType.ARP, "ARP"),
        (EtherType.IPV6, "IPv6"),
        (EtherType(0x9999), "Unknown(0x9999)"),
    ],
)
def test_ethertype_string(ether_type, expected):
    assert str(ether_type) == expected


def test_ethertype_out_of_range():
    with pytest.raises(ValueError):
        EtherType(0x10000)


@pytest.mark.parametrize(
    "protocol, expected",
    [
        (Protocol.ICMP, "ICMP"),
        (Protocol.TCP, "TCP"),
        (Protocol.UDP, "UDP"),
        (Protocol.ICMPV6, "ICMPv6"),
        (Protocol.NO_NEXT, "NoNext"),
        (Protocol(99), "Unknown(99)"),
    ],
)
def test_protocol_string(protocol, expected):
    assert str(protocol) == expected


def test_protocol_values():
    assert Protocol(6) is Protocol.TCP
    assert Protocol(99) == 99