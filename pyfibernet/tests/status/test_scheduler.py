import threading
from unittest.mock import MagicMock

import pytest

from pyfibernet.status.models import RawState, RawStatusResult, StatusState, TrackedService
from pyfibernet.status.orchestrator import StatusOrchestrator
from pyfibernet.status.scheduler import StatusScheduler


@pytest.fixture
def orchestrator():
    source = MagicMock()
    source.fetch_status.return_value = RawStatusResult(state=RawState.DEGRADED, source_label="downdetector")
    orch = StatusOrchestrator([TrackedService(key="netflix", name="Netflix"),
                               TrackedService(key="discord", name="Discord")], source, ttl=60)
    yield orch
    orch.close()


def test_start_populates_cache_before_returning(orchestrator):
    scheduler = StatusScheduler(orchestrator)
    assert scheduler.start(interval_seconds=3600) is True
    try:
        assert scheduler.running
        assert scheduler.ticks == 1
        assert orchestrator.get_cached("netflix").state == StatusState.MINOR
        assert orchestrator.get_cached("discord").state == StatusState.MINOR
    finally:
        scheduler.stop()
    assert not scheduler.running


def test_ticks_repeat_on_interval():
    orch = MagicMock()
    ticked = threading.Event()

    def refresh():
        if orch.force_refresh_all.call_count >= 3:
            ticked.set()

    orch.force_refresh_all.side_effect = refresh
    scheduler = StatusScheduler(orch)
    scheduler.start(interval_seconds=0.01)
    try:
        assert ticked.wait(5)
    finally:
        scheduler.stop()
    assert scheduler.ticks >= 3


def test_tick_errors_do_not_stop_scheduler():
    orch = MagicMock()
    orch.force_refresh_all.side_effect = RuntimeError("network down")
    scheduler = StatusScheduler(orch)
    assert scheduler.start(interval_seconds=3600) is True
    assert scheduler.running
    scheduler.stop()


def test_start_twice_is_noop():
    orch = MagicMock()
    scheduler = StatusScheduler(orch)
    scheduler.start(interval_seconds=3600)
    try:
        assert scheduler.start(interval_seconds=3600) is True
        assert orch.force_refresh_all.call_count == 1
    finally:
        scheduler.stop()


def test_invalid_interval():
    scheduler = StatusScheduler(MagicMock())
    with pytest.raises(ValueError):
        scheduler.start(interval_seconds=0)


def test_restart_after_timed_out_stop_runs_one_loop():
    release = threading.Event()
    orch = MagicMock()
    orch.force_refresh_all.side_effect = lambda: release.wait(5)
    scheduler = StatusScheduler(orch)
    scheduler.start(interval_seconds=0.01, wait=False)
    old_thread = scheduler._thread
    scheduler.stop(timeout=0.01)
    assert old_thread.is_alive()
    assert not scheduler.running

    scheduler.start(interval_seconds=3600, wait=False)
    try:
        release.set()
        old_thread.join(5)
        assert not old_thread.is_alive()
        assert scheduler.running
        alive = [t for t in threading.enumerate() if t.name == "pyfibernet-scheduler"]
        assert len(alive) == 1
    finally:
        scheduler.stop()
