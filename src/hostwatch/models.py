"""Data models for hostwatch."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from hostwatch.errors import FatalTickError


@dataclass(slots=True, frozen=True)
class MemoryStats:
    """Virtual memory totals."""

    total_bytes: int
    used_percent: float  # 0.0 - 100.0


@dataclass(slots=True, frozen=True)
class DiskUsage:
    """Usage of one mounted partition."""

    mount: str
    used_bytes: int
    total_bytes: int
    used_percent: float


@dataclass(slots=True, frozen=True)
class NetworkRate:
    """Per-second transfer rates of one network interface."""

    interface: str
    download_bytes_per_sec: float
    upload_bytes_per_sec: float


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of a process state."""

    pid: int
    name: str
    cpu_percent: float  # 0.0 - 100.0 * core_count
    io_priority: int


EMPTY_MEMORY = MemoryStats(total_bytes=0, used_percent=0.0)


@dataclass(slots=True, frozen=True)
class Snapshot:
    """
    Everything sampled during one tick.

    A snapshot with ``error`` set carries no other data: every other field is
    empty or zero-valued and must not be read as a stale partial fill.
    """

    timestamp: datetime
    cpu_percent: float
    memory: MemoryStats
    disks: tuple[DiskUsage, ...] = ()
    networks: tuple[NetworkRate, ...] = ()
    processes: tuple[ProcessSnapshot, ...] = ()
    error: FatalTickError | None = None

    @classmethod
    def failed(cls, error: FatalTickError, timestamp: datetime) -> Snapshot:
        """Build the snapshot for a tick that could not complete."""
        return cls(timestamp=timestamp, cpu_percent=0.0, memory=EMPTY_MEMORY, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
