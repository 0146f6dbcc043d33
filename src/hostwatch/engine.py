"""Sampling engine: one consistent Snapshot per tick."""

import time
from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from hostwatch.errors import FatalTickError, MetricsSourceError
from hostwatch.models import DiskUsage, NetworkRate, ProcessSnapshot, Snapshot
from hostwatch.ranker import ProcessRanker
from hostwatch.rates import RateTracker
from hostwatch.source import MetricsSource, ProcessHandle

log = structlog.get_logger()

LOOPBACK_INTERFACES = frozenset({"lo", "lo0"})

_RECV = "recv"
_SENT = "sent"


class SamplingEngine:
    """
    Collect every metric category and assemble a Snapshot.

    Failure handling is tiered:

    - CPU and memory are required. If either query fails the tick ends and
      the snapshot carries only the error.
    - Disk partitions and processes are best-effort per item. A mount point
      or process that cannot be queried is skipped.
    - Network counters are best-effort for the whole category. Any failure
      leaves ``networks`` empty for the tick.

    The engine owns a RateTracker baseline that assumes ticks never overlap,
    so ``sample()`` must not be called concurrently.
    """

    def __init__(
        self,
        source: MetricsSource,
        ranker: ProcessRanker | None = None,
        rate_tracker: RateTracker | None = None,
        excluded_interfaces: Iterable[str] = LOOPBACK_INTERFACES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._ranker = ranker or ProcessRanker()
        self._rates = rate_tracker or RateTracker()
        self._excluded_interfaces = frozenset(excluded_interfaces)
        self._clock = clock

    @property
    def ranker(self) -> ProcessRanker:
        return self._ranker

    def sample(self) -> Snapshot:
        """Run one sampling pass and return its Snapshot."""
        timestamp = datetime.now()

        try:
            cpu_percent = self._source.cpu_percent()
        except MetricsSourceError as e:
            return self._fatal("cpu", e, timestamp)

        try:
            memory = self._source.virtual_memory()
        except MetricsSourceError as e:
            return self._fatal("memory", e, timestamp)

        return Snapshot(
            timestamp=timestamp,
            cpu_percent=cpu_percent,
            memory=memory,
            disks=tuple(self._sample_disks()),
            networks=tuple(self._sample_networks()),
            processes=tuple(self._sample_processes()),
        )

    def _fatal(self, category: str, cause: MetricsSourceError, timestamp: datetime) -> Snapshot:
        error = FatalTickError(category, cause)
        log.warning("tick_failed", category=category, error=str(cause))
        return Snapshot.failed(error, timestamp)

    def _sample_disks(self) -> list[DiskUsage]:
        try:
            mounts = self._source.disk_partitions()
        except MetricsSourceError as e:
            log.debug("soft_category_failure", category="disk", error=str(e))
            return []

        disks: list[DiskUsage] = []
        for mount in mounts:
            try:
                disks.append(self._source.disk_usage(mount))
            except MetricsSourceError as e:
                log.debug("soft_item_failure", category="disk", mount=mount, error=str(e))
        return disks

    def _sample_networks(self) -> list[NetworkRate]:
        try:
            counters = [
                c for c in self._source.network_counters()
                if c.name not in self._excluded_interfaces
            ]
        except MetricsSourceError as e:
            log.debug("soft_category_failure", category="network", error=str(e))
            return []

        samples: dict[tuple[str, str], float] = {}
        for c in counters:
            samples[(c.name, _RECV)] = c.bytes_recv
            samples[(c.name, _SENT)] = c.bytes_sent

        rates = self._rates.update(samples, self._clock())

        networks: list[NetworkRate] = []
        for c in counters:
            download = rates.get((c.name, _RECV))
            upload = rates.get((c.name, _SENT))
            if download is None or upload is None:
                continue  # no baseline yet
            networks.append(
                NetworkRate(
                    interface=c.name,
                    download_bytes_per_sec=download,
                    upload_bytes_per_sec=upload,
                )
            )
        return networks

    def _sample_processes(self) -> list[ProcessSnapshot]:
        try:
            handles = self._source.processes()
            processes: list[ProcessSnapshot] = []
            for handle in handles:
                snapshot = self._sample_process(handle)
                if snapshot is not None:
                    processes.append(snapshot)
        except MetricsSourceError as e:
            log.debug("soft_category_failure", category="process", error=str(e))
            return []

        return self._ranker.rank(processes)

    def _sample_process(self, handle: ProcessHandle) -> ProcessSnapshot | None:
        """Query one process; None when it cannot report its CPU usage."""
        try:
            cpu_percent = handle.cpu_percent()
        except MetricsSourceError as e:
            log.debug("soft_item_failure", category="process", pid=handle.pid, error=str(e))
            return None

        # Name and IO priority fall back to defaults
        try:
            name = handle.name()
        except MetricsSourceError:
            name = ""
        try:
            io_priority = handle.io_nice()
        except MetricsSourceError:
            io_priority = 0

        return ProcessSnapshot(
            pid=handle.pid,
            name=name or "",
            cpu_percent=cpu_percent,
            io_priority=io_priority,
        )
