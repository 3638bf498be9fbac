from __future__ import annotations

import json

from mission_control.core.events import EventStore, Run
from mission_control.core.workspace import WorkspaceFile, WorkspaceSnapshot


def test_create_run_forces_flush_of_run_metadata(tmp_path) -> None:
    store = EventStore(tmp_path).init()
    store.create_run(Run(id="r1", started_at_iso="2026-01-01T00:00:00+00:00", prompt="go"))

    payload = json.loads((tmp_path / "runs.json").read_text(encoding="utf-8"))

    assert payload["r1"]["prompt"] == "go"


def test_events_reach_disk_only_on_flush(tmp_path) -> None:
    store = EventStore(tmp_path).init()
    store.create_run(Run(id="r1", started_at_iso="2026-01-01T00:00:00+00:00"))
    store.record("r1", "run.start")
    store.record("r1", "tool.invoke", {"tool": "echo"})

    events_path = tmp_path / "events-r1.jsonl"
    assert not events_path.exists()

    assert store.flush() is True
    lines = [json.loads(line) for line in events_path.read_text(encoding="utf-8").splitlines()]
    assert [line["sequence"] for line in lines] == [1, 2]
    assert store.flush_count >= 1


def test_startup_loads_run_metadata_and_reads_events_lazily(tmp_path) -> None:
    first = EventStore(tmp_path).init()
    first.create_run(Run(id="r1", started_at_iso="2026-01-01T00:00:00+00:00"))
    for _ in range(3):
        first.record("r1", "system.info")
    first.flush()

    second = EventStore(tmp_path).init()

    assert second.get_run("r1").event_count == 3
    assert "r1" not in second._events
    assert [event.sequence for event in second.get_events("r1")] == [1, 2, 3]
    assert second.record("r1", "system.info").sequence == 4


def test_corrupt_event_lines_are_skipped(tmp_path) -> None:
    store = EventStore(tmp_path).init()
    store.record("r1", "system.info")
    store.flush()
    with (tmp_path / "events-r1.jsonl").open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")

    reloaded = EventStore(tmp_path).init()

    assert len(reloaded.get_events("r1")) == 1


def test_failed_flush_is_counted_and_retried(tmp_path, monkeypatch) -> None:
    store = EventStore(tmp_path).init()
    store.record("r1", "system.info")

    import mission_control.core.events.store as store_module

    def broken_write(path, text):
        raise OSError("disk full")

    original = store_module.atomic_write_text
    monkeypatch.setattr(store_module, "atomic_write_text", broken_write)
    assert store.flush() is False
    assert store.flush_failures == 1

    monkeypatch.setattr(store_module, "atomic_write_text", original)
    assert store.flush() is True
    assert (tmp_path / "events-r1.jsonl").exists()


def test_unwritable_directory_disables_persistence_but_keeps_memory(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    store = EventStore(blocker / "events").init()

    assert store.persistence_enabled is False
    store.create_run(Run(id="r1", started_at_iso="2026-01-01T00:00:00+00:00"))
    store.record("r1", "system.info")

    assert store.flush() is False
    assert len(store.get_events("r1")) == 1


def test_workspace_snapshot_round_trips_through_disk(tmp_path) -> None:
    snapshot = WorkspaceSnapshot(
        run_id="r1",
        ts_iso="2026-01-01T00:00:00+00:00",
        files=[WorkspaceFile(path="a.txt", size_bytes=5, modified_at_iso="2026-01-01T00:00:00+00:00", content="hello")],
        total_size_bytes=5,
    )
    EventStore(tmp_path).init().store_workspace_snapshot("r1", snapshot)

    loaded = EventStore(tmp_path).init().get_workspace_snapshot("r1")

    assert (tmp_path / "snapshot-r1.json").exists()
    assert loaded == snapshot
    assert EventStore(tmp_path).init().get_workspace_snapshot("other") is None


def test_idle_runs_are_unloaded_after_flush(tmp_path) -> None:
    store = EventStore(tmp_path, max_runs_in_memory=2).init()
    for run_id in ("a", "b", "c"):
        store.record(run_id, "system.info")

    store.flush()

    assert len(store._events) == 2
    assert [event.sequence for event in store.get_events("a")] == [1]
