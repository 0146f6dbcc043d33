"""Exceptions raised while sampling host metrics."""


class MetricsSourceError(Exception):
    """A metric query against the host failed."""


class ProcessGoneError(MetricsSourceError):
    """The process exited while it was being queried."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"process {pid} no longer exists")
        self.pid = pid


class FatalTickError(Exception):
    """
    A required aggregate metric could not be sampled.

    Ends the tick: the resulting snapshot carries only this error.
    """

    def __init__(self, category: str, cause: BaseException) -> None:
        super().__init__(f"{category} query failed: {cause}")
        self.category = category
        self.cause = cause
