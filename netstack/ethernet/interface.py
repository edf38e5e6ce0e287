"""Raw link-layer access to a network interface (Linux packet sockets)."""

from __future__ import annotations

import ipaddress
import socket
import struct

import psutil

from netstack.common.types import MACAddress, parse_mac
from netstack.ethernet.frame import MAX_FRAME_SIZE, Frame, parse

__all__ = [
    "ETH_P_ALL",
    "SOL_PACKET",
    "PACKET_ADD_MEMBERSHIP",
    "PACKET_DROP_MEMBERSHIP",
    "PACKET_MR_PROMISC",
    "Interface",
    "list_interfaces",
    "get_interface_info",
]

ETH_P_ALL = 0x0003
SOL_PACKET = 263
PACKET_ADD_MEMBERSHIP = 1
PACKET_DROP_MEMBERSHIP = 2
PACKET_MR_PROMISC = 1

_PACKET_MREQ = struct.Struct("iHH8s")


def _hardware_text(name: str) -> str:
    for addr in psutil.net_if_addrs().get(name, []):
        if addr.family == psutil.AF_LINK:
            return addr.address or ""
    return ""


def _interface_index(name: str) -> int:
    try:
        return socket.if_nametoindex(name)
    except OSError:
        return 0


class Interface:
    """A network interface opened for sending and receiving raw Ethernet frames."""

    def __init__(self, name: str, sock, mac_address: MACAddress, index: int) -> None:
        self.name = name
        self.mac_address = MACAddress(mac_address)
        self.index = index
        self._sock = sock

    @classmethod
    def open(cls, name: str) -> "Interface":
        """Open a raw packet socket bound to the named interface (needs root)."""
        if name not in psutil.net_if_addrs():
            raise OSError(f"failed to get interface {name}: no such network interface")
        try:
            index = socket.if_nametoindex(name)
        except OSError as exc:
            raise OSError(f"failed to get interface {name}: {exc}") from exc

        hardware = _hardware_text(name)
        if not hardware:
            raise ValueError("invalid MAC address length: 0")
        mac = parse_mac(hardware)

        family = getattr(socket, "AF_PACKET", None)
        if family is None:
            raise OSError("failed to create raw socket: packet sockets are not supported here")
        try:
            sock = socket.socket(family, socket.SOCK_RAW, socket.htons(ETH_P_ALL))
        except OSError as exc:
            raise OSError(
                f"failed to create raw socket: {exc} (you may need root/sudo)"
            ) from exc
        try:
            sock.bind((name, ETH_P_ALL))
        except OSError as exc:
            sock.close()
            raise OSError(f"failed to bind socket to interface: {exc}") from exc
        return cls(name, sock, mac, index)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def _socket(self):
        if self._sock is None:
            raise ValueError(f"interface {self.name} is closed")
        return self._sock

    def close(self) -> None:
        """Close the socket; closing twice is harmless."""
        if self._sock is not None:
            sock, self._sock = self._sock, None
            sock.close()

    def __enter__(self) -> "Interface":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def read_frame(self) -> Frame:
        """Block until a frame arrives and return it parsed."""
        try:
            data = self._socket().recv(MAX_FRAME_SIZE)
        except OSError as exc:
            raise OSError(f"failed to receive packet: {exc}") from exc
        try:
            return parse(data)
        except ValueError as exc:
            raise ValueError(f"failed to parse frame: {exc}") from exc

    def write_frame(self, frame: Frame) -> None:
        """Send a frame out of the interface."""
        address = (self.name, ETH_P_ALL, 0, 0, bytes(frame.destination))
        try:
            self._socket().sendto(frame.serialize(), address)
        except OSError as exc:
            raise OSError(f"failed to send frame: {exc}") from exc

    def set_promiscuous(self, enable: bool) -> None:
        """Join or leave promiscuous mode for this socket."""
        request = _PACKET_MREQ.pack(self.index, PACKET_MR_PROMISC, 0, b"")
        option = PACKET_ADD_MEMBERSHIP if enable else PACKET_DROP_MEMBERSHIP
        try:
            self._socket().setsockopt(SOL_PACKET, option, request)
        except OSError as exc:
            raise OSError(f"failed to set promiscuous mode: {exc}") from exc

    def __repr__(self) -> str:
        return f"Interface(name={self.name!r}, mac={self.mac_address}, index={self.index})"


def _is_loopback(name: str, stats) -> bool:
    flags = getattr(stats, "flags", "") or ""
    if "loopback" in flags.split(","):
        return True
    for addr in psutil.net_if_addrs().get(name, []):
        if addr.family == socket.AF_INET and addr.address.startswith("127."):
            return True
        if addr.family == socket.AF_INET6 and addr.address.split("%")[0] == "::1":
            return True
    return False


def list_interfaces() -> list[str]:
    """Names of interfaces that are up and not loopback, ordered by index."""
    names = [
        name
        for name, stats in psutil.net_if_stats().items()
        if stats.isup and not _is_loopback(name, stats)
    ]
    return sorted(names, key=lambda name: (_interface_index(name), name))


def _format_address(addr) -> str | None:
    if addr.family not in (socket.AF_INET, socket.AF_INET6):
        return None
    host = addr.address.split("%")[0]
    if addr.netmask:
        try:
            return ipaddress.ip_interface(f"{host}/{addr.netmask}").with_prefixlen
        except ValueError:
            pass
    return host


def get_interface_info(name: str) -> str:
    """A multi-line description of an interface and its addresses."""
    all_stats = psutil.net_if_stats()
    if name not in all_stats:
        raise OSError(f"no such network interface: {name}")
    stats = all_stats[name]
    flags = getattr(stats, "flags", None)
    if flags is None:
        flags = "up" if stats.isup else ""
    info = (
        f"Interface: {name}\n"
        f"  Index: {_interface_index(name)}\n"
        f"  MTU: {stats.mtu}\n"
        f"  Hardware Addr: {_hardware_text(name)}\n"
        f"  Flags: {flags.replace(',', '|')}\n"
    )
    addresses = [
        text
        for text in (_format_address(a) for a in psutil.net_if_addrs().get(name, []))
        if text is not None
    ]
    if addresses:
        info += "  Addresses:\n" + "".join(f"    {text}\n" for text in addresses)
    return info