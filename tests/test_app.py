"""Tests for the hostwatch application."""

from datetime import datetime
from queue import Queue

import pytest
from conftest import FakeProcess, FakeSource

from hostwatch.app import (
    DashboardApp,
    DiskPanel,
    NetworkPanel,
    ProcessTable,
    Renderer,
    SystemSummary,
    View,
    format_bytes,
    format_rate,
    render_latest,
)
from hostwatch.engine import SamplingEngine
from hostwatch.errors import FatalTickError, MetricsSourceError
from hostwatch.models import (
    DiskUsage,
    MemoryStats,
    NetworkRate,
    ProcessSnapshot,
    Snapshot,
)


def make_app(view: View = View.PANELS, source: FakeSource | None = None) -> DashboardApp:
    engine = SamplingEngine(source or FakeSource())
    return DashboardApp(engine, view=view, interval=0.1)


def make_snapshot(**kwargs) -> Snapshot:
    fields = dict(
        timestamp=datetime.now(),
        cpu_percent=45.2,
        memory=MemoryStats(total_bytes=16 * 10**9, used_percent=62.3),
    )
    fields.update(kwargs)
    return Snapshot(**fields)


def test_format_bytes_bytes():
    """Test format_bytes with byte values."""
    assert "B" in format_bytes(500)


def test_format_bytes_kilobytes():
    """Test format_bytes with kilobyte values."""
    assert "K" in format_bytes(2048)


def test_format_bytes_megabytes():
    """Test format_bytes with megabyte values."""
    assert "M" in format_bytes(5242880)


def test_format_bytes_gigabytes():
    """Test format_bytes with gigabyte values."""
    assert "G" in format_bytes(1073741824)


def test_format_bytes_accepts_float():
    """Test format_bytes with fractional byte counts from rates."""
    assert format_bytes(12.7) == "   12B"


def test_format_rate():
    """Test format_rate appends a per-second suffix."""
    assert format_rate(1_000_000.0) == "976.6K/s"
    assert format_rate(0.0) == "0B/s"


class TestView:
    """Tests for View enum."""

    def test_view_values(self):
        assert View.TABLE.value == "table"
        assert View.PANELS.value == "panels"


@pytest.mark.asyncio
async def test_app_creation():
    """Test DashboardApp can be instantiated."""
    app = make_app()
    assert app.title == "hostwatch"
    assert "q to quit" in app.sub_title
    assert app.view is View.PANELS


@pytest.mark.asyncio
async def test_panels_view_compose():
    """Test the panel view shows every widget."""
    app = make_app(View.PANELS)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#summary") is not None
        assert pilot.app.query_one("#disks") is not None
        assert pilot.app.query_one("#networks") is not None
        assert pilot.app.query_one("#process-table") is not None
        await pilot.press("q")


@pytest.mark.asyncio
async def test_table_view_compose():
    """Test the table view has no disk or network panels."""
    app = make_app(View.TABLE)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#process-table") is not None
        assert len(pilot.app.query(DiskPanel)) == 0
        assert len(pilot.app.query(NetworkPanel)) == 0
        await pilot.press("q")


@pytest.mark.asyncio
async def test_app_quit_binding():
    """Test that 'q' binding stops the scheduler and quits."""
    app = make_app()
    async with app.run_test() as pilot:
        assert app._scheduler.is_running
        await pilot.press("q")
        assert not app._scheduler.is_running
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_pause_binding():
    """Test that 'p' toggles pause."""
    app = make_app()
    async with app.run_test() as pilot:
        assert not app.paused
        await pilot.press("p")
        assert app.paused
        await pilot.press("p")
        assert not app.paused
        await pilot.press("q")


@pytest.mark.asyncio
async def test_ctrl_c_quits():
    """Test that ctrl+c stops the scheduler and quits like 'q'."""
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("ctrl+c")
        assert not app._scheduler.is_running
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_app_is_a_renderer():
    """Test the dashboard satisfies the Renderer protocol."""
    assert isinstance(make_app(), Renderer)


class RecordingRenderer:
    def __init__(self):
        self.shown: list[Snapshot] = []

    def show_snapshot(self, snapshot: Snapshot) -> None:
        self.shown.append(snapshot)


class TestRenderLatest:
    """Handing queued snapshots to a renderer."""

    def test_only_newest_is_shown(self):
        update_queue: Queue[Snapshot] = Queue()
        older, newer = make_snapshot(cpu_percent=1.0), make_snapshot(cpu_percent=2.0)
        update_queue.put(older)
        update_queue.put(newer)
        renderer = RecordingRenderer()

        assert render_latest(update_queue, renderer) is newer
        assert renderer.shown == [newer]
        assert update_queue.empty()

    def test_empty_queue_shows_nothing(self):
        renderer = RecordingRenderer()

        assert render_latest(Queue(), renderer) is None
        assert renderer.shown == []

    def test_without_renderer_still_drains(self):
        update_queue: Queue[Snapshot] = Queue()
        update_queue.put(make_snapshot())

        assert render_latest(update_queue, None) is not None
        assert update_queue.empty()


@pytest.mark.asyncio
async def test_app_receives_updates_from_scheduler():
    """Test that app renders snapshots produced by the scheduler."""
    source = FakeSource(procs=[FakeProcess(pid=42, proc_name="worker", cpu=12.0)])
    app = make_app(source=source)
    async with app.run_test() as pilot:
        await pilot.pause(1.0)

        assert app.last_snapshot is not None
        process_table = pilot.app.query_one(ProcessTable)
        assert process_table.pids == [42]
        await pilot.press("q")


@pytest.mark.asyncio
async def test_paused_app_keeps_last_snapshot():
    """Test a paused app does not render new snapshots."""
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("p")
        shown = make_snapshot()
        app.show_snapshot(shown)
        await pilot.pause(0.6)

        assert app.last_snapshot is shown
        await pilot.press("q")


@pytest.mark.asyncio
async def test_process_table_keeps_rank_order():
    """Test ProcessTable rows follow the snapshot's rank order."""
    app = make_app()
    async with app.run_test() as pilot:
        app._scheduler.stop()
        process_table = pilot.app.query_one(ProcessTable)

        process_table.update_processes(
            (
                ProcessSnapshot(pid=200, name="busy", cpu_percent=80.0, io_priority=2),
                ProcessSnapshot(pid=100, name="quiet", cpu_percent=5.0, io_priority=0),
            )
        )
        assert process_table.pids == [200, 100]

        process_table.update_processes(
            (ProcessSnapshot(pid=100, name="quiet", cpu_percent=90.0, io_priority=0),)
        )
        assert process_table.pids == [100]


@pytest.mark.asyncio
async def test_show_snapshot_updates_widgets():
    """Test that a snapshot reaches every panel."""
    app = make_app()
    async with app.run_test() as pilot:
        app._scheduler.stop()
        disk = DiskUsage(mount="/", used_bytes=50 * 10**9, total_bytes=100 * 10**9, used_percent=50.0)
        net = NetworkRate(
            interface="eth0", download_bytes_per_sec=1_000_000.0, upload_bytes_per_sec=0.0
        )
        snapshot = make_snapshot(disks=(disk,), networks=(net,))

        app.show_snapshot(snapshot)

        summary = pilot.app.query_one("#summary", SystemSummary)
        assert "45.2%" in summary._get_cpu_info()
        assert "62.3% of 16.0GB" in summary._get_mem_info()
        disks = pilot.app.query_one("#disks", DiskPanel)
        assert disks._disks == (disk,)
        assert "50.0%" in disks._get_disk_info()
        networks = pilot.app.query_one("#networks", NetworkPanel)
        assert "eth0" in networks._get_network_info()
        assert "976.6K/s" in networks._get_network_info()


@pytest.mark.asyncio
async def test_error_snapshot_shown():
    """Test a failed tick shows the error and clears the tables."""
    app = make_app()
    async with app.run_test() as pilot:
        app._scheduler.stop()
        process_table = pilot.app.query_one(ProcessTable)
        process_table.update_processes(
            (ProcessSnapshot(pid=1, name="init", cpu_percent=1.0, io_priority=0),)
        )
        error = FatalTickError("cpu", MetricsSourceError("permission denied"))

        app.show_snapshot(Snapshot.failed(error, datetime.now()))

        summary = pilot.app.query_one("#summary", SystemSummary)
        assert "Error:" in summary._get_cpu_info()
        assert "permission denied" in summary._get_cpu_info()
        assert summary._get_mem_info() == ""
        assert process_table.pids == []


def test_network_panel_waits_for_second_sample():
    """Test the network panel explains an empty first tick."""
    panel = NetworkPanel()
    assert panel._get_network_info() == "Measuring network..."


def test_summary_before_first_snapshot():
    summary = SystemSummary()
    assert summary._get_cpu_info() == "Loading CPU info..."
    assert summary._get_mem_info() == "Loading memory info..."
