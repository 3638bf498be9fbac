from __future__ import annotations

import json

from mission_control.core.events import FLUSH_JOB_ID, EventStore, Run
from mission_control.core.ops.scheduler import SchedulerService


def test_start_registers_flush_job_on_shared_scheduler(tmp_path) -> None:
    scheduler = SchedulerService(test_mode=True)
    store = EventStore(tmp_path, flush_interval_seconds=5, scheduler=scheduler).init()

    store.start()
    store.start()

    assert scheduler.job_ids() == [FLUSH_JOB_ID]
    assert store.timer_active is True
    assert scheduler.running is False


def test_stop_is_safe_without_start_and_when_repeated(tmp_path) -> None:
    store = EventStore(tmp_path, scheduler=SchedulerService(test_mode=True)).init()

    store.stop()
    store.start()
    store.stop()
    store.stop()

    assert store.timer_active is False


def test_stop_removes_job_and_performs_final_flush(tmp_path) -> None:
    scheduler = SchedulerService(test_mode=True)
    store = EventStore(tmp_path, scheduler=scheduler).init()
    store.start()
    store.create_run(Run(id="r1", started_at_iso="2026-01-01T00:00:00+00:00"))
    store.record("r1", "run.start")

    store.stop()

    assert scheduler.job_ids() == []
    runs = json.loads((tmp_path / "runs.json").read_text(encoding="utf-8"))
    assert runs["r1"]["event_count"] == 1
    assert (tmp_path / "events-r1.jsonl").exists()


def test_owned_scheduler_is_started_and_shut_down(tmp_path) -> None:
    store = EventStore(tmp_path, flush_interval_seconds=3600).init()

    store.start()
    try:
        assert store._scheduler is not None
        assert store._scheduler.running is True
    finally:
        store.stop()

    assert store._scheduler.running is False
