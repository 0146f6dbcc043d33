"""Metric sources consumed by the sampling engine."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

import psutil

from hostwatch.errors import MetricsSourceError, ProcessGoneError
from hostwatch.models import DiskUsage, MemoryStats


@dataclass(slots=True, frozen=True)
class NetworkCounters:
    """Cumulative byte counters of one network interface."""

    name: str
    bytes_recv: int
    bytes_sent: int


class ProcessHandle(Protocol):
    """A live process whose attributes are queried on demand."""

    pid: int

    def name(self) -> str: ...

    def cpu_percent(self) -> float: ...

    def io_nice(self) -> int: ...


class MetricsSource(Protocol):
    """
    Host metric queries.

    Every method raises MetricsSourceError when the underlying query fails.
    """

    def cpu_percent(self) -> float: ...

    def virtual_memory(self) -> MemoryStats: ...

    def disk_partitions(self) -> list[str]: ...

    def disk_usage(self, mount: str) -> DiskUsage: ...

    def network_counters(self) -> list[NetworkCounters]: ...

    def processes(self) -> Iterable[ProcessHandle]: ...


@contextmanager
def _psutil_errors(what: str, pid: int | None = None) -> Iterator[None]:
    """Translate psutil failures into MetricsSourceError."""
    try:
        yield
    except psutil.NoSuchProcess as e:
        # ZombieProcess is a NoSuchProcess too
        raise ProcessGoneError(pid if pid is not None else e.pid) from e
    except (psutil.Error, OSError) as e:
        raise MetricsSourceError(f"{what}: {e}") from e


class PsutilProcess:
    """ProcessHandle backed by a psutil.Process."""

    __slots__ = ("_proc", "pid")

    def __init__(self, proc: psutil.Process) -> None:
        self._proc = proc
        self.pid = proc.pid

    def name(self) -> str:
        with _psutil_errors("name", self.pid):
            return self._proc.name()

    def cpu_percent(self) -> float:
        # Non-blocking: measured against this process's previous call
        with _psutil_errors("cpu_percent", self.pid):
            return self._proc.cpu_percent(interval=None)

    def io_nice(self) -> int:
        """
        Return the IO priority of the process.

        On Linux this is the ionice class (0 none, 1 realtime, 2 best-effort,
        3 idle); on Windows the IO priority level.
        """
        if not hasattr(self._proc, "ionice"):
            raise MetricsSourceError("ionice is not supported on this platform")
        with _psutil_errors("ionice", self.pid):
            value = self._proc.ionice()
        ioclass = getattr(value, "ioclass", value)
        return int(ioclass)


class PsutilSource:
    """MetricsSource implementation using psutil."""

    def __init__(self) -> None:
        # Prime the CPU counter (first call returns 0.0)
        psutil.cpu_percent(interval=None)

    def cpu_percent(self) -> float:
        with _psutil_errors("cpu_percent"):
            return psutil.cpu_percent(interval=None)

    def virtual_memory(self) -> MemoryStats:
        with _psutil_errors("virtual_memory"):
            mem = psutil.virtual_memory()
        return MemoryStats(total_bytes=mem.total, used_percent=mem.percent)

    def disk_partitions(self) -> list[str]:
        with _psutil_errors("disk_partitions"):
            partitions = psutil.disk_partitions(all=False)
        return [part.mountpoint for part in partitions]

    def disk_usage(self, mount: str) -> DiskUsage:
        with _psutil_errors(f"disk_usage({mount})"):
            usage = psutil.disk_usage(mount)
        return DiskUsage(
            mount=mount,
            used_bytes=usage.used,
            total_bytes=usage.total,
            used_percent=usage.percent,
        )

    def network_counters(self) -> list[NetworkCounters]:
        with _psutil_errors("net_io_counters"):
            counters = psutil.net_io_counters(pernic=True)
        return [
            NetworkCounters(name=name, bytes_recv=c.bytes_recv, bytes_sent=c.bytes_sent)
            for name, c in counters.items()
        ]

    def processes(self) -> list[PsutilProcess]:
        # process_iter() reuses cached Process objects, which keeps the
        # per-process CPU baselines alive between ticks
        with _psutil_errors("process_iter"):
            return [PsutilProcess(proc) for proc in psutil.process_iter()]
