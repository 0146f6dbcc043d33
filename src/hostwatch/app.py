"""hostwatch - Textual dashboard rendering engine snapshots."""

from enum import Enum
from queue import Empty, Queue
from typing import Protocol, runtime_checkable

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Static

from hostwatch.engine import SamplingEngine
from hostwatch.models import DiskUsage, NetworkRate, ProcessSnapshot, Snapshot
from hostwatch.scheduler import Scheduler

BAR_WIDTH = 20


class View(Enum):
    """Dashboard layouts."""

    TABLE = "table"  # summary line and process table
    PANELS = "panels"  # summary, disk and network panels, process table


@runtime_checkable
class Renderer(Protocol):
    """Anything that can display a snapshot."""

    def show_snapshot(self, snapshot: Snapshot) -> None: ...


def render_latest(update_queue: "Queue[Snapshot]", renderer: Renderer | None) -> Snapshot | None:
    """
    Drain the queue and hand the newest snapshot to the renderer.

    Older snapshots are discarded. With no renderer the queue is still
    drained so stale snapshots do not pile up.
    """
    snapshot = None
    while True:
        try:
            snapshot = update_queue.get_nowait()
        except Empty:
            break

    if snapshot is not None and renderer is not None:
        renderer.show_snapshot(snapshot)
    return snapshot


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_rate(bytes_per_sec: float) -> str:
    """Format a transfer rate as human-readable string."""
    return f"{format_bytes(bytes_per_sec).strip()}/s"


def _bar(percent: float, color: str) -> str:
    filled = min(max(int(percent / (100 / BAR_WIDTH)), 0), BAR_WIDTH)
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (BAR_WIDTH - filled)


class SystemSummary(Static):
    """Header widget showing CPU and memory usage, or the tick error."""

    DEFAULT_CSS = """
    SystemSummary {
        height: auto;
        min-height: 3;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._snapshot: Snapshot | None = None

    def compose(self) -> ComposeResult:
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def update_stats(self, snapshot: Snapshot) -> None:
        """Update the statistics from a snapshot."""
        self._snapshot = snapshot
        try:
            self.query_one("#cpu-info", Static).update(self._get_cpu_info())
            self.query_one("#mem-info", Static).update(self._get_mem_info())
        except NoMatches:
            pass  # Not mounted yet

    def _get_cpu_info(self) -> str:
        snapshot = self._snapshot
        if snapshot is None:
            return "Loading CPU info..."
        if snapshot.error is not None:
            return f"[bold red]Error:[/bold red] {escape(str(snapshot.error))}"
        # Escaped bracket opens the bar container
        return f"CPU \\[{_bar(snapshot.cpu_percent, 'green')}] {snapshot.cpu_percent:5.1f}%"

    def _get_mem_info(self) -> str:
        snapshot = self._snapshot
        if snapshot is None:
            return "Loading memory info..."
        if snapshot.error is not None:
            return ""
        mem = snapshot.memory
        total_gb = mem.total_bytes / 1e9
        return (
            f"Mem \\[{_bar(mem.used_percent, 'cyan')}] "
            f"{mem.used_percent:5.1f}% of {total_gb:.1f}GB"
        )


class DiskPanel(Static):
    """Usage of every mounted partition."""

    DEFAULT_CSS = """
    DiskPanel {
        width: 1fr;
        height: auto;
        border: solid $secondary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__("No disks", *args, **kwargs)
        self._disks: tuple[DiskUsage, ...] = ()

    def update_disks(self, disks: tuple[DiskUsage, ...]) -> None:
        self._disks = disks
        self.update(self._get_disk_info())

    def _get_disk_info(self) -> str:
        if not self._disks:
            return "No disks"
        lines = []
        for disk in self._disks:
            lines.append(
                f"{escape(disk.mount):<16} \\[{_bar(disk.used_percent, 'yellow')}] "
                f"{format_bytes(disk.used_bytes)}/{format_bytes(disk.total_bytes)} "
                f"{disk.used_percent:5.1f}%"
            )
        return "\n".join(lines)


class NetworkPanel(Static):
    """Download and upload rate per interface."""

    DEFAULT_CSS = """
    NetworkPanel {
        width: 1fr;
        height: auto;
        border: solid $secondary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__("Measuring network...", *args, **kwargs)
        self._networks: tuple[NetworkRate, ...] = ()

    def update_networks(self, networks: tuple[NetworkRate, ...]) -> None:
        self._networks = networks
        self.update(self._get_network_info())

    def _get_network_info(self) -> str:
        # Empty on the first tick: rates need two samples
        if not self._networks:
            return "Measuring network..."
        return "\n".join(
            f"{escape(net.interface):<12} "
            f"[green]↓[/green] {format_rate(net.download_bytes_per_sec):>10} "
            f"[magenta]↑[/magenta] {format_rate(net.upload_bytes_per_sec):>10}"
            for net in self._networks
        )


class ProcessTable(Container):
    """Container for the ranked process table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._current_pids: list[int] = []

    @property
    def pids(self) -> list[int]:
        """PIDs currently shown, in rank order."""
        return list(self._current_pids)

    def compose(self) -> ComposeResult:
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("Program", key="name", width=30)
        table.add_column("CPU%", key="cpu", width=8)
        table.add_column("IO", key="io", width=4)

    def update_processes(self, processes: tuple[ProcessSnapshot, ...]) -> None:
        """
        Replace the table rows with the ranked processes.

        Rows are rebuilt every tick because rank order changes; the cursor
        stays on the same row index.
        """
        table = self.query_one("#process-table", DataTable)
        cursor_row = table.cursor_row

        table.clear()
        for proc in processes:
            table.add_row(
                str(proc.pid),
                proc.name[:30],
                f"{proc.cpu_percent:6.2f}%",
                str(proc.io_priority),
                key=str(proc.pid),
            )
        self._current_pids = [proc.pid for proc in processes]

        if processes:
            table.move_cursor(row=min(cursor_row, len(processes) - 1))


class DashboardApp(App):
    """Main hostwatch application."""

    TITLE = "hostwatch"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary {
        dock: top;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        ("p", "toggle_pause", "Pause"),
    ]

    def __init__(
        self,
        engine: SamplingEngine,
        view: View = View.PANELS,
        interval: float = 2.0,
    ) -> None:
        """Initialize the DashboardApp."""
        super().__init__()
        self._view = view
        self._update_queue: Queue[Snapshot] = Queue()
        self._scheduler = Scheduler(engine, self._update_queue, interval=interval)
        self._paused = False
        self._last_snapshot: Snapshot | None = None
        self.sub_title = (
            "Process Monitor" if view is View.TABLE else "System Resource Monitor"
        ) + " (press q to quit)"

    @property
    def view(self) -> View:
        return self._view

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def last_snapshot(self) -> Snapshot | None:
        """The snapshot currently on screen."""
        return self._last_snapshot

    def compose(self) -> ComposeResult:
        yield SystemSummary(id="summary")
        if self._view is View.PANELS:
            yield Horizontal(
                DiskPanel(id="disks"),
                NetworkPanel(id="networks"),
                id="panels",
            )
        yield ProcessTable(id="processes")
        yield Footer()

    def on_mount(self) -> None:
        """Start the scheduler when the app is mounted."""
        self._scheduler.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and render the most recent snapshot."""
        render_latest(self._update_queue, None if self._paused else self)

    def show_snapshot(self, snapshot: Snapshot) -> None:
        """Render a snapshot into every widget of the current view."""
        self._last_snapshot = snapshot
        try:
            self.query_one("#summary", SystemSummary).update_stats(snapshot)
            self.query_one(ProcessTable).update_processes(snapshot.processes)
            if self._view is View.PANELS:
                self.query_one("#disks", DiskPanel).update_disks(snapshot.disks)
                self.query_one("#networks", NetworkPanel).update_networks(snapshot.networks)
        except NoMatches:
            pass  # Screen not composed yet

    def action_toggle_pause(self) -> None:
        """Freeze or resume the display; sampling continues."""
        self._paused = not self._paused
        self.notify("Paused" if self._paused else "Resumed")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._scheduler.stop()
        self.exit()
