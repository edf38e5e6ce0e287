"""Pools of reusable byte buffers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace

__all__ = [
    "SMALL_BUFFER_SIZE",
    "MEDIUM_BUFFER_SIZE",
    "LARGE_BUFFER_SIZE",
    "BufferPool",
    "SMALL_BUFFER_POOL",
    "MEDIUM_BUFFER_POOL",
    "LARGE_BUFFER_POOL",
    "get_buffer",
    "put_buffer",
    "BufferPoolStats",
    "StatefulBufferPool",
]

SMALL_BUFFER_SIZE = 512
MEDIUM_BUFFER_SIZE = 1500
LARGE_BUFFER_SIZE = 65536


class BufferPool:
    """A thread-safe pool of fixed-size bytearrays."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"buffer size must not be negative: {size}")
        self.size = size
        self._free: list[bytearray] = []
        self._lock = threading.Lock()

    def _allocate(self) -> bytearray:
        return bytearray(self.size)

    def get(self) -> bytearray:
        """Take a buffer from the pool, allocating one when it is empty."""
        with self._lock:
            if self._free:
                return self._free.pop()
        return self._allocate()

    def put(self, buf: bytearray) -> None:
        """Clear a buffer and return it to the pool."""
        buf[:] = bytes(len(buf))
        with self._lock:
            self._free.append(buf)


SMALL_BUFFER_POOL = BufferPool(SMALL_BUFFER_SIZE)
MEDIUM_BUFFER_POOL = BufferPool(MEDIUM_BUFFER_SIZE)
LARGE_BUFFER_POOL = BufferPool(LARGE_BUFFER_SIZE)

_POOLS_BY_SIZE = {
    SMALL_BUFFER_SIZE: SMALL_BUFFER_POOL,
    MEDIUM_BUFFER_SIZE: MEDIUM_BUFFER_POOL,
    LARGE_BUFFER_SIZE: LARGE_BUFFER_POOL,
}


def get_buffer(size: int) -> memoryview:
    """A view of size bytes over a buffer from the smallest global pool that fits.

    Sizes above LARGE_BUFFER_SIZE get a freshly allocated buffer.
    """
    if size < 0:
        raise ValueError(f"buffer size must not be negative: {size}")
    for pool_size, pool in _POOLS_BY_SIZE.items():
        if size <= pool_size:
            return memoryview(pool.get())[:size]
    return memoryview(bytearray(size))


def put_buffer(buf) -> None:
    """Return a buffer from get_buffer to its global pool.

    Buffers whose backing size matches no pool are left to the garbage collector.
    """
    if buf is None:
        return
    backing = buf.obj if isinstance(buf, memoryview) else buf
    if isinstance(buf, memoryview):
        buf.release()
    pool = _POOLS_BY_SIZE.get(len(backing))
    if pool is not None and isinstance(backing, bytearray):
        pool.put(backing)


@dataclass
class BufferPoolStats:
    """Counters kept by a StatefulBufferPool."""

    gets: int = 0
    puts: int = 0
    allocated: int = 0
    reused: int = 0


class StatefulBufferPool(BufferPool):
    """A buffer pool that counts gets, puts and allocations."""

    def __init__(self, size: int) -> None:
        super().__init__(size)
        self._stats = BufferPoolStats()
        self._stats_lock = threading.Lock()

    def _allocate(self) -> bytearray:
        with self._stats_lock:
            self._stats.allocated += 1
        return super()._allocate()

    def get(self) -> bytearray:
        with self._stats_lock:
            self._stats.gets += 1
        return super().get()

    def put(self, buf: bytearray) -> None:
        with self._stats_lock:
            self._stats.puts += 1
            if self._stats.puts > self._stats.allocated:
                self._stats.reused = self._stats.puts - self._stats.allocated
        super().put(buf)

    def stats(self) -> BufferPoolStats:
        """A snapshot of the counters."""
        with self._stats_lock:
            return replace(self._stats)

    def reset(self) -> None:
        """Zero the counters."""
        with self._stats_lock:
            self._stats = BufferPoolStats()