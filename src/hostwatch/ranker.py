"""Top-K selection of busy processes."""

from collections.abc import Iterable
from dataclasses import dataclass

from hostwatch.models import ProcessSnapshot

DEFAULT_THRESHOLD = 0.01  # CPU% at or below this is noise
DEFAULT_LIMIT = 30


def rank(
    processes: Iterable[ProcessSnapshot],
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> list[ProcessSnapshot]:
    """
    Return the busiest processes, highest CPU first.

    Entries at or below ``threshold`` are dropped. The sort is stable, so
    processes with equal CPU keep their enumeration order and do not swap
    places between ticks. Truncation to ``limit`` happens after sorting.
    """
    if limit <= 0:
        return []
    notable = [proc for proc in processes if proc.cpu_percent > threshold]
    notable.sort(key=lambda proc: proc.cpu_percent, reverse=True)
    return notable[:limit]


@dataclass(slots=True, frozen=True)
class ProcessRanker:
    """Ranking policy applied to every tick's process list."""

    threshold: float = DEFAULT_THRESHOLD
    limit: int = DEFAULT_LIMIT

    def rank(self, processes: Iterable[ProcessSnapshot]) -> list[ProcessSnapshot]:
        return rank(processes, threshold=self.threshold, limit=self.limit)
