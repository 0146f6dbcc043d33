"""Shared fixtures: an in-memory metrics source."""

from dataclasses import dataclass, field

import pytest

from hostwatch.errors import MetricsSourceError, ProcessGoneError
from hostwatch.models import DiskUsage, MemoryStats
from hostwatch.source import NetworkCounters


@dataclass
class FakeProcess:
    """ProcessHandle with canned answers."""

    pid: int
    proc_name: str | None = "proc"
    cpu: float | None = 1.0
    ionice: int | None = 2
    gone: bool = False

    def name(self) -> str:
        if self.proc_name is None:
            raise MetricsSourceError("access denied")
        return self.proc_name

    def cpu_percent(self) -> float:
        if self.gone:
            raise ProcessGoneError(self.pid)
        if self.cpu is None:
            raise MetricsSourceError("access denied")
        return self.cpu

    def io_nice(self) -> int:
        if self.ionice is None:
            raise MetricsSourceError("ionice unsupported")
        return self.ionice


@dataclass
class FakeSource:
    """MetricsSource returning whatever the test puts in it."""

    cpu: float = 45.2
    memory: MemoryStats = field(
        default_factory=lambda: MemoryStats(total_bytes=16_000_000_000, used_percent=62.3)
    )
    disks: dict[str, DiskUsage | None] = field(
        default_factory=lambda: {
            "/": DiskUsage(
                mount="/", used_bytes=50_000_000_000, total_bytes=100_000_000_000, used_percent=50.0
            )
        }
    )
    counters: list[NetworkCounters] = field(default_factory=list)
    procs: list[FakeProcess] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def _check(self, category: str) -> None:
        self.calls.append(category)
        if category in self.failing:
            raise MetricsSourceError(f"{category} unavailable")

    def cpu_percent(self) -> float:
        self._check("cpu")
        return self.cpu

    def virtual_memory(self) -> MemoryStats:
        self._check("memory")
        return self.memory

    def disk_partitions(self) -> list[str]:
        self._check("partitions")
        return list(self.disks)

    def disk_usage(self, mount: str) -> DiskUsage:
        self._check("disk_usage")
        usage = self.disks[mount]
        if usage is None:
            raise MetricsSourceError(f"cannot stat {mount}")
        return usage

    def network_counters(self) -> list[NetworkCounters]:
        self._check("network")
        return list(self.counters)

    def processes(self) -> list[FakeProcess]:
        self._check("processes")
        return list(self.procs)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
