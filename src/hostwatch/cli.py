"""CLI commands for hostwatch."""

from pathlib import Path

import click
import structlog

from hostwatch.app import DashboardApp, View
from hostwatch.config import Config
from hostwatch.engine import SamplingEngine
from hostwatch.logging import configure
from hostwatch.ranker import ProcessRanker
from hostwatch.source import PsutilSource

log = structlog.get_logger()


def _sampling_options(func):
    """Options shared by every dashboard command."""
    func = click.option(
        "--config",
        "config_path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Config file (default ~/.config/hostwatch/config.toml)",
    )(func)
    func = click.option(
        "--threshold",
        type=click.FloatRange(min=0.0),
        default=None,
        help="Hide processes at or below this CPU%",
    )(func)
    func = click.option(
        "--limit",
        "-n",
        type=click.IntRange(min=1),
        default=None,
        help="Number of processes to show",
    )(func)
    func = click.option(
        "--interval",
        "-i",
        type=click.FloatRange(min=0.1),
        default=None,
        help="Seconds between refreshes",
    )(func)
    return func


def load_config(
    config_path: Path | None,
    interval: float | None,
    limit: int | None,
    threshold: float | None,
) -> Config:
    """Load the config file and apply command line overrides."""
    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if interval is not None:
        config.sampling.interval = interval
    if limit is not None:
        config.sampling.process_limit = limit
    if threshold is not None:
        config.sampling.cpu_threshold = threshold
    return config


def build_app(config: Config, view: View) -> DashboardApp:
    """Wire the psutil source, engine and dashboard together."""
    sampling = config.sampling
    engine = SamplingEngine(
        PsutilSource(),
        ranker=ProcessRanker(threshold=sampling.cpu_threshold, limit=sampling.process_limit),
        excluded_interfaces=sampling.excluded_interfaces,
    )
    return DashboardApp(engine, view=view, interval=sampling.interval)


def _run(view: View, config: Config) -> None:
    configure(config)
    log.info(
        "dashboard_starting",
        view=view.value,
        interval=config.sampling.interval,
        limit=config.sampling.process_limit,
    )
    build_app(config, view).run()
    log.info("dashboard_stopped")


@click.group()
@click.version_option(None, "-V", "--version", package_name="hostwatch")
def main() -> None:
    """Live terminal dashboard of host resource usage."""
    pass


@main.command()
@_sampling_options
def scan(interval, limit, threshold, config_path) -> None:
    """Show system usage and the busiest processes in one table."""
    _run(View.TABLE, load_config(config_path, interval, limit, threshold))


@main.command()
@_sampling_options
def profile(interval, limit, threshold, config_path) -> None:
    """Show CPU, memory, disk, network and process panels."""
    _run(View.PANELS, load_config(config_path, interval, limit, threshold))


@main.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init_config(force: bool) -> None:
    """Write a config file with default values."""
    config = Config()
    if config.config_path.exists() and not force:
        raise click.ClickException(f"Config already exists at {config.config_path}")
    config.save()
    click.echo(f"Created config at {config.config_path}")


if __name__ == "__main__":
    main()
