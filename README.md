# netstack

Building blocks for a network stack written in user space:

- **Addresses and protocol numbers** (`netstack.common.types`):
  `MACAddress`, `IPv4Address`, `IPv6Address`, `EtherType` and `Protocol`,
  with parsing and formatting.
- **Internet checksums** (`netstack.common.checksum`, RFC 1071): plain,
  array-based and modular-reduction variants, a pseudo-header form for
  TCP/UDP, and incremental updates (RFC 1624).
- **Bulk and batch checksums** (`netstack.common.checksum_simd`) and a
  **checksum offload engine** (`netstack.common.offload`) that records
  which checksum work it could hand to hardware and which fell back.
- **Packet buffers** (`netstack.common.buffer`): a cursor over bytes that
  reads and writes big-endian integers, MAC and IPv4 addresses, plus a hex
  dump; and **buffer pools** (`netstack.common.bufferpool`).
- **Ethernet II frames** (`netstack.ethernet.frame`): parsing and
  serialising with padding to the minimum payload size; raw packet-socket
  access to an interface on Linux (`netstack.ethernet.interface`).
- **ICMP** (`netstack.icmp`, RFC 792): echo request and reply,
  destination unreachable and time exceeded messages, with the checksum
  filled in on serialising.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Addresses

```python
from netstack.common.types import parse_mac, parse_ipv4, ipv4_from_int, EtherType

mac = parse_mac("02:00:00:00:00:01")
print(mac)                   # 02:00:00:00:00:01
print(mac.is_broadcast())    # False
print(mac.is_multicast())    # False

ip = parse_ipv4("192.168.1.1")
print(ip.to_int() == 0xC0A80101)   # True
print(ipv4_from_int(0x7F000001))   # 127.0.0.1

print(EtherType(0x0806))           # ARP
print(EtherType(0x9999))           # Unknown(0x9999)
```

Malformed text raises `ValueError`. `parse_mac` accepts `aa:bb:..`,
`aa-bb-..` and `aabb.ccdd.eeff` forms. The address classes are
fixed-length `bytes`, so they compare equal to their raw octets.

## Checksums

```python
from netstack.common.checksum import calculate_checksum, verify_checksum

header = bytearray.fromhex("45000054000040004001" "0000" "c0a80101c0a80102")
value = calculate_checksum(header)
header[10:12] = value.to_bytes(2, "big")
print(verify_checksum(header))  # True
```

`calculate_checksum_optimized` and `calculate_checksum_fast` give the
same result as `calculate_checksum`; `select_checksum_function(size)`
picks one of them by payload size.

TCP and UDP checksums cover a pseudo-header holding both addresses, the
protocol and the segment length:

```python
from netstack.common.checksum import PseudoHeader, calculate_checksum_with_pseudo_header
from netstack.common.types import IPv4Address, Protocol

ph = PseudoHeader(IPv4Address(bytes([192, 168, 1, 1])),
                  IPv4Address(bytes([192, 168, 1, 2])),
                  Protocol.TCP, 8)
print(calculate_checksum_with_pseudo_header(ph, bytes(8)))
```

`update_checksum(old, old_data, new_data)` adjusts a checksum after a
run of bytes changed; the runs must have equal length, otherwise
`ValueError` is raised. `update_checksum_simd` instead returns the old
checksum unchanged for unequal or empty runs.

`ChecksumBatch` collects packets with `add()` and returns their
checksums in order from `process()`.

### Offload bookkeeping

```python
from netstack.common.offload import (
    OffloadCapability, init_checksum_offload,
    calculate_checksum_with_offload, format_offload_stats,
)
from netstack.common.types import Protocol

init_checksum_offload(OffloadCapability.TX_TCP | OffloadCapability.RX_TCP)
calculate_checksum_with_offload(b"\x12\x34", Protocol.TCP)   # counted as offloaded
calculate_checksum_with_offload(b"\x12\x34", Protocol.ICMP)  # counted as fallback
print(format_offload_stats())
```

The checksum is always computed in software; the engine only decides
whether the work counts as offloaded. `ChecksumOffloadEngine` can be
used directly instead of the process-wide functions, and
`PacketDescriptor.request_checksum_offload()` marks a packet for
offload when the engine allows it.

## Packet buffers

```python
from netstack.common.buffer import PacketBuffer

buf = PacketBuffer.zeroed(10)
buf.write_byte(0x12)
buf.write_uint16(0x3456)
buf.write_uint32(0x789ABCDE)
buf.reset()
print(hex(buf.read_byte()))    # 0x12
print(hex(buf.read_uint16()))  # 0x3456
print(buf.remaining)           # 7
print(buf.hex_dump())
```

Reading, writing or skipping past the end raises `EOFError`; `seek()`
outside the buffer raises `ValueError`. A `bytearray` passed to
`PacketBuffer` is used in place.

### Buffer pools

`BufferPool(size)` hands out zero-filled `bytearray`s with `get()` and
takes them back, cleared, with `put()`. `StatefulBufferPool` also counts
gets, puts and allocations (`stats()`, `reset()`). `get_buffer(size)`
returns a `memoryview` from the smallest global pool that fits (512,
1500 or 65536 bytes) and `put_buffer()` returns it.

## ICMP

```python
from netstack import icmp

request = icmp.echo_request(0x1234, 1, b"Hello, World!")
wire = request.serialize()

received = icmp.parse(wire)
print(received.is_echo_request())   # True
print(received.verify_checksum())   # True
print(received)   # ICMP{Type=EchoRequest(8), Code=0, ID=4660, Seq=1, DataLen=13}
```

`icmp.parse` raises `ValueError` for messages shorter than 8 bytes.

## Ethernet

```python
from netstack.ethernet.frame import Frame, parse
from netstack.common.types import BROADCAST_MAC, EtherType, parse_mac

frame = Frame(BROADCAST_MAC, parse_mac("02:00:00:00:00:01"), EtherType.ARP, b"\x01\x02")
wire = frame.serialize()       # payload zero-padded to 46 bytes
print(len(wire), frame.size()) # 60 60
print(parse(wire).is_broadcast())  # True
```

On Linux, with root privileges, an interface can be opened for raw
frames:

```python
from netstack.ethernet.interface import Interface, list_interfaces, get_interface_info

print(list_interfaces())          # up, non-loopback interfaces
print(get_interface_info("eth0"))

with Interface.open("eth0") as iface:
    frame = iface.read_frame()
    print(frame, frame.is_broadcast())
```

`Interface.set_promiscuous(True)` joins promiscuous mode for the socket
through a packet-socket membership request. Failures are raised as
`OSError`.

## What this package does not do

It stops at Ethernet frames and ICMP messages: there is no IPv4 or IPv6
packet layer, no ARP, routing, fragmentation, UDP or TCP, and no
command-line tool. ICMP messages are built and parsed but not sent; use
`Interface` with your own IP header to put them on the wire.