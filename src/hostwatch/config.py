"""Configuration for hostwatch."""

from dataclasses import asdict, dataclass, field
from pathlib import Path

import tomlkit

from hostwatch.engine import LOOPBACK_INTERFACES
from hostwatch.ranker import DEFAULT_LIMIT, DEFAULT_THRESHOLD


@dataclass
class SamplingConfig:
    """Sampling and ranking configuration."""

    interval: float = 2.0  # Seconds between ticks
    process_limit: int = DEFAULT_LIMIT  # Rows in the process table
    cpu_threshold: float = DEFAULT_THRESHOLD  # CPU% at or below this is hidden
    excluded_interfaces: list[str] = field(default_factory=lambda: sorted(LOOPBACK_INTERFACES))

    def validate(self) -> None:
        """Raise ValueError for values the engine cannot work with."""
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.process_limit < 1:
            raise ValueError(f"process_limit must be at least 1, got {self.process_limit}")
        if self.cpu_threshold < 0:
            raise ValueError(f"cpu_threshold must not be negative, got {self.cpu_threshold}")
        if not isinstance(self.excluded_interfaces, list) or not all(
            isinstance(name, str) for name in self.excluded_interfaces
        ):
            raise ValueError(
                f"excluded_interfaces must be a list of interface names, "
                f"got {self.excluded_interfaces!r}"
            )


LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass
class LoggingConfig:
    """Log file configuration."""

    enabled: bool = True
    level: str = "info"
    max_bytes: int = 1024 * 1024  # Max log file size (1MB)
    backup_count: int = 2

    def validate(self) -> None:
        """Raise ValueError for values the log setup cannot work with."""
        if self.level.lower() not in LOG_LEVELS:
            raise ValueError(
                f"level must be one of {', '.join(LOG_LEVELS)}, got {self.level!r}"
            )
        if self.max_bytes < 0:
            raise ValueError(f"max_bytes must not be negative, got {self.max_bytes}")
        if self.backup_count < 0:
            raise ValueError(f"backup_count must not be negative, got {self.backup_count}")


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "hostwatch"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "hostwatch"

    @property
    def log_path(self) -> Path:
        """Log file path."""
        return self.state_dir / "hostwatch.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("sampling", "logging"):
            table = tomlkit.table()
            for key, value in asdict(getattr(self, name)).items():
                table.add(key, value)
            doc.add(name, table)
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values."""
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        sampling_data = data.get("sampling", {})
        logging_data = data.get("logging", {})
        sam = defaults.sampling
        lg = defaults.logging

        excluded = sampling_data.get("excluded_interfaces", sam.excluded_interfaces)
        if isinstance(excluded, str):
            excluded = [excluded]

        config = cls(
            sampling=SamplingConfig(
                interval=float(sampling_data.get("interval", sam.interval)),
                process_limit=int(sampling_data.get("process_limit", sam.process_limit)),
                cpu_threshold=float(sampling_data.get("cpu_threshold", sam.cpu_threshold)),
                excluded_interfaces=list(excluded) if isinstance(excluded, list) else excluded,
            ),
            logging=LoggingConfig(
                enabled=bool(logging_data.get("enabled", lg.enabled)),
                level=str(logging_data.get("level", lg.level)),
                max_bytes=int(logging_data.get("max_bytes", lg.max_bytes)),
                backup_count=int(logging_data.get("backup_count", lg.backup_count)),
            ),
        )
        config.sampling.validate()
        config.logging.validate()
        return config
