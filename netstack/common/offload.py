"""Checksum offload bookkeeping: capabilities, routing and statistics."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from enum import IntFlag

from netstack.common.checksum import PseudoHeader
from netstack.common.checksum_simd import (
    calculate_checksum_simd,
    calculate_checksum_with_pseudo_header_simd,
    verify_checksum_simd,
)
from netstack.common.types import Protocol

__all__ = [
    "OffloadCapability",
    "OffloadStats",
    "ChecksumOffloadEngine",
    "init_checksum_offload",
    "enable_checksum_offload",
    "disable_checksum_offload",
    "is_checksum_offload_enabled",
    "has_capability",
    "get_capabilities",
    "calculate_checksum_with_offload",
    "calculate_checksum_with_pseudo_header_offload",
    "verify_checksum_with_offload",
    "get_offload_stats",
    "reset_offload_stats",
    "format_offload_stats",
    "PacketDescriptor",
]


class OffloadCapability(IntFlag):
    """Hardware checksum offload features."""

    TX_IPV4 = 1 << 0
    TX_TCP = 1 << 1
    TX_UDP = 1 << 2
    RX_IPV4 = 1 << 3
    RX_TCP = 1 << 4
    RX_UDP = 1 << 5
    TX_TSO = 1 << 6
    RX_LRO = 1 << 7
    TX_IPV6 = 1 << 8
    RX_IPV6 = 1 << 9


_TX_CAPABILITY = {
    Protocol.TCP: OffloadCapability.TX_TCP,
    Protocol.UDP: OffloadCapability.TX_UDP,
}
_RX_CAPABILITY = {
    Protocol.TCP: OffloadCapability.RX_TCP,
    Protocol.UDP: OffloadCapability.RX_UDP,
}


@dataclass
class OffloadStats:
    """Counters of offloaded and fallback checksum work."""

    tx_offloaded: int = 0
    rx_offloaded: int = 0
    tx_fallback: int = 0
    rx_fallback: int = 0
    tx_errors: int = 0
    rx_errors: int = 0

    @property
    def offload_rate(self) -> float:
        """Percentage of transmit and receive work that was offloaded."""
        total = self.tx_offloaded + self.tx_fallback + self.rx_offloaded + self.rx_fallback
        if total == 0:
            return 0.0
        return (self.tx_offloaded + self.rx_offloaded) / total * 100.0


class ChecksumOffloadEngine:
    """Decides per packet whether checksum work counts as offloaded."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._capabilities = OffloadCapability(0)
        self._enabled = False
        self._stats = OffloadStats()

    def initialize(self, capabilities) -> None:
        """Set the available capabilities and enable offload."""
        with self._lock:
            self._capabilities = OffloadCapability(capabilities)
            self._enabled = True

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def has_capability(self, capability) -> bool:
        """True when any of the given capability bits is available."""
        with self._lock:
            return bool(self._capabilities & capability)

    def capabilities(self) -> OffloadCapability:
        with self._lock:
            return self._capabilities

    def _offloadable(self, protocol, table, tx: bool) -> bool:
        required = table.get(protocol) if self.is_enabled() else None
        offloaded = required is not None and self.has_capability(required)
        with self._lock:
            if tx and offloaded:
                self._stats.tx_offloaded += 1
            elif tx:
                self._stats.tx_fallback += 1
            elif offloaded:
                self._stats.rx_offloaded += 1
            else:
                self._stats.rx_fallback += 1
        return offloaded

    def calculate_checksum(self, data, protocol) -> int:
        """Checksum of outgoing data, counted as offloaded or fallback."""
        self._offloadable(protocol, _TX_CAPABILITY, tx=True)
        return calculate_checksum_simd(data)

    def calculate_checksum_with_pseudo_header(self, pseudo_header: PseudoHeader, data) -> int:
        """TCP/UDP checksum of outgoing data, counted by the header's protocol."""
        self._offloadable(pseudo_header.protocol, _TX_CAPABILITY, tx=True)
        return calculate_checksum_with_pseudo_header_simd(pseudo_header, data)

    def verify_checksum(self, data, expected_checksum: int, protocol) -> bool:
        """Check incoming data against its checksum, counted as offloaded or fallback."""
        self._offloadable(protocol, _RX_CAPABILITY, tx=False)
        return verify_checksum_simd(data, expected_checksum)

    def stats(self) -> OffloadStats:
        """A snapshot of the counters."""
        with self._lock:
            return replace(self._stats)

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = OffloadStats()

    def format_stats(self) -> str:
        """Human-readable summary of the counters and the offload rate."""
        stats = self.stats()
        return (
            "Checksum Offload Statistics:\n"
            f"  TX Offloaded: {stats.tx_offloaded}\n"
            f"  RX Offloaded: {stats.rx_offloaded}\n"
            f"  TX Fallback:  {stats.tx_fallback}\n"
            f"  RX Fallback:  {stats.rx_fallback}\n"
            f"  TX Errors:    {stats.tx_errors}\n"
            f"  RX Errors:    {stats.rx_errors}\n"
            f"  Offload Rate: {stats.offload_rate:.2f}%"
        )


_global_engine = ChecksumOffloadEngine()


def init_checksum_offload(capabilities) -> None:
    """Set the process-wide capabilities and enable offload."""
    _global_engine.initialize(capabilities)


def enable_checksum_offload() -> None:
    _global_engine.enable()


def disable_checksum_offload() -> None:
    _global_engine.disable()


def is_checksum_offload_enabled() -> bool:
    return _global_engine.is_enabled()


def has_capability(capability) -> bool:
    return _global_engine.has_capability(capability)


def get_capabilities() -> OffloadCapability:
    return _global_engine.capabilities()


def calculate_checksum_with_offload(data, protocol) -> int:
    return _global_engine.calculate_checksum(data, protocol)


def calculate_checksum_with_pseudo_header_offload(pseudo_header: PseudoHeader, data) -> int:
    return _global_engine.calculate_checksum_with_pseudo_header(pseudo_header, data)


def verify_checksum_with_offload(data, expected_checksum: int, protocol) -> bool:
    return _global_engine.verify_checksum(data, expected_checksum, protocol)


def get_offload_stats() -> OffloadStats:
    return _global_engine.stats()


def reset_offload_stats() -> None:
    _global_engine.reset_stats()


def format_offload_stats() -> str:
    return _global_engine.format_stats()


@dataclass
class PacketDescriptor:
    """A packet together with its checksum-offload state."""

    data: bytes
    protocol: Protocol
    length: int = field(init=False)
    checksum_start: int = 0
    checksum_offset: int = 0
    offload_requested: bool = False
    offload_completed: bool = False
    checksum_valid: bool = False
    engine: ChecksumOffloadEngine = field(
        default_factory=lambda: _global_engine, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        self.length = len(self.data)

    def request_checksum_offload(self, start: int, offset: int) -> bool:
        """Mark the packet for hardware checksumming; False when unavailable."""
        if not self.engine.is_enabled():
            return False
        required = _TX_CAPABILITY.get(self.protocol)
        if required is None or not self.engine.has_capability(required):
            return False
        self.checksum_start = start
        self.checksum_offset = offset
        self.offload_requested = True
        return True

    def mark_checksum_valid(self, valid: bool) -> None:
        """Record the hardware's verdict on the checksum."""
        self.checksum_valid = valid
        self.offload_completed = True