import random

import pytest

from netstack.common.checksum import (
    PseudoHeader,
    calculate_checksum,
    calculate_checksum_fast,
    calculate_checksum_optimized,
    calculate_checksum_with_pseudo_header,
    calculate_checksum_with_pseudo_header_optimized,
    select_checksum_function,
    update_checksum,
    update_checksum_optimized,
    verify_checksum,
)
from netstack.common.types import IPv4Address, Protocol

IP_HEADER = bytes(
    [0x45, 0x00, 0x00, 0x54, 0x00, 0x00, 0x40, 0x00, 0x40, 0x01,
     0x00, 0x00, 0xC0, 0xA8, 0x01, 0x01, 0xC0, 0xA8, 0x01, 0x02]
)


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"", 0xFFFF),
        (bytes([0x12]), 0xEDFF),
        (bytes([0x12, 0x34]), 0xEDCB),
        (bytes([0x00, 0x01, 0xF2, 0x03, 0xF4, 0xF5, 0xF6, 0xF7]), 0x220D),
        (bytes([0x00, 0x00, 0x00, 0x00]), 0xFFFF),
        (bytes([0xFF, 0xFF, 0xFF, 0xFF]), 0x0000),
        (bytes([0x12, 0x34, 0x56]), 0x97CB),
    ],
)
def test_calculate_checksum(data, expected):
    assert calculate_checksum(data) == expected


def test_verify_checksum_valid():
    data = bytearray(IP_HEADER)
    checksum = calculate_checksum(data)
    data[10:12] = checksum.to_bytes(2, "big")
    assert verify_checksum(data) is True


def test_verify_checksum_invalid():
    data = bytearray(IP_HEADER)
    data[10:12] = b"\xff\xff"
    assert verify_checksum(data) is False


def test_checksum_embedded_in_header_verifies():
    data = bytearray(
        [0x45, 0x00, 0x00, 0x3C, 0x1C, 0x46, 0x40, 0x00, 0x3F, 0x06,
         0x00, 0x00, 0xAC, 0x10, 0x0A, 0x63, 0xAC, 0x10, 0x0A, 0x0C]
    )
    checksum = calculate_checksum(data)
    data[10:12] = checksum.to_bytes(2, "big")
    assert verify_checksum(data) is True
    assert calculate_checksum(data) == 0


def test_update_checksum_matches_recalculation_for_words():
    data = bytearray(
        [0x45, 0x00, 0x00, 0x3C, 0x1C, 0x46, 0x40, 0x00, 0x40, 0x06,
         0x00, 0x00, 0xAC, 0x10, 0x0A, 0x63, 0xAC, 0x10, 0x0A, 0x0C]
    )
    old_checksum = calculate_checksum(data)
    old_word = bytes(data[8:10])
    new_word = bytes([0x3F, 0x06])
    data[8:10] = new_word
    assert update_checksum(old_checksum, old_word, new_word) == calculate_checksum(data)


def test_update_checksum_unequal_lengths():
    with pytest.raises(ValueError):
        update_checksum(0x1234, b"\x00\x01", b"\x00")


def test_update_checksum_optimized_matches():
    old_data = bytes([0x00, 0x01, 0x02, 0x03])
    new_data = bytes([0x04, 0x05, 0x06, 0x07])
    assert update_checksum_optimized(0x1234, old_data, new_data) == update_checksum(
        0x1234, old_data, new_data
    )


def test_pseudo_header_bytes():
    header = PseudoHeader(
        IPv4Address(bytes([192, 168, 1, 1])),
        IPv4Address(bytes([192, 168, 1, 2])),
        Protocol.TCP,
        20,
    )
    assert header.to_bytes() == bytes([192, 168, 1, 1, 192, 168, 1, 2, 0, 6, 0, 20])


def test_pseudo_header_length_out_of_range():
    with pytest.raises(ValueError):
        PseudoHeader(IPv4Address(), IPv4Address(), Protocol.UDP, 0x10000)


def test_checksum_with_pseudo_header():
    header = PseudoHeader(
        IPv4Address(bytes([192, 168, 1, 1])),
        IPv4Address(bytes([192, 168, 1, 2])),
        Protocol.TCP,
        8,
    )
    data = bytes([0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC, 0xDE, 0xF0])
    checksum = calculate_checksum_with_pseudo_header(header, data)
    assert checksum != 0
    assert checksum == calculate_checksum_with_pseudo_header(header, data)
    assert verify_checksum(header.to_bytes() + data + checksum.to_bytes(2, "big"))


@pytest.mark.parametrize(
    "size", [0, 1, 15, 16, 17, 31, 32, 64, 127, 128, 255, 256, 512, 1023, 1024, 1500, 4096]
)
def test_optimized_and_fast_match(size):
    data = random.Random(size).randbytes(size)
    original = calculate_checksum(data)
    assert calculate_checksum_optimized(data) == original
    assert calculate_checksum_fast(data) == original


@pytest.mark.parametrize("data", [bytes(64), b"\xff" * 64, b"\xff\xff\x00\x00"])
def test_fast_edge_sums(data):
    assert calculate_checksum_fast(data) == calculate_checksum(data)


@pytest.mark.parametrize("size", [0, 1, 20, 64, 128, 512, 1024, 1460])
def test_pseudo_header_optimized_matches(size):
    header = PseudoHeader(
        IPv4Address(bytes([192, 168, 1, 1])),
        IPv4Address(bytes([192, 168, 1, 2])),
        Protocol.TCP,
        1460,
    )
    data = random.Random(size + 7).randbytes(size)
    assert calculate_checksum_with_pseudo_header_optimized(
        header, data
    ) == calculate_checksum_with_pseudo_header(header, data)


@pytest.mark.parametrize(
    "size, expected",
    [
        (20, calculate_checksum),
        (127, calculate_checksum),
        (128, calculate_checksum_optimized),
        (1023, calculate_checksum_optimized),
        (1024, calculate_checksum_fast),
        (65536, calculate_checksum_fast),
    ],
)
def test_select_checksum_function(size, expected):
    assert select_checksum_function(size) is expected