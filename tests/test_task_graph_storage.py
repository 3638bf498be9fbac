from __future__ import annotations

import json
import os
import time

from mission_control.core.graph import GraphEvent, GraphStore, TaskGraph, TaskGraphBuilder


def _graph(run_id: str = "r1", day: int = 1) -> TaskGraph:
    events = [
        GraphEvent(id="e0", type="user_message", timestamp_iso=f"2026-01-{day:02d}T00:00:00+00:00", data={"text": "go"}),
        GraphEvent(id="e1", type="task_start", timestamp_iso=f"2026-01-{day:02d}T00:00:01+00:00", data={"name": "T"}),
        GraphEvent(id="e2", type="step", timestamp_iso=f"2026-01-{day:02d}T00:00:02+00:00", data={}),
        GraphEvent(
            id="e3",
            type="tool_call",
            timestamp_iso=f"2026-01-{day:02d}T00:00:03+00:00",
            data={"tool": "echo", "args": {"x": 1}, "result": {"ok": True}},
        ),
    ]
    return TaskGraphBuilder(include_event_nodes=True).build_from_events(run_id, events)


def test_storage_form_round_trips_to_identical_graph() -> None:
    graph = _graph()

    stored = json.loads(json.dumps(graph.to_storage()))
    restored = TaskGraph.from_storage(stored)

    assert restored == graph
    assert stored["edges"][0]["from"] == "goal"
    assert {node["type"] for node in stored["nodes"].values()} == {"goal", "task", "step", "tool_call"}


def test_edges_serialize_with_from_key_by_default() -> None:
    graph = _graph()

    assert graph.model_dump()["edges"][0]["from"] == "goal"
    assert "from_" not in graph.model_dump_json()


def test_store_save_load_exists_delete(tmp_path) -> None:
    store = GraphStore(tmp_path, retention_days=0, max_graphs=0)
    graph = _graph("run/with:odd chars")

    store.save("run/with:odd chars", graph)

    assert store.exists("run/with:odd chars")
    assert (tmp_path / "run_with_odd_chars.json").exists()
    assert store.load("run/with:odd chars") == graph
    assert store.delete("run/with:odd chars") is True
    assert store.delete("run/with:odd chars") is False
    assert store.load("run/with:odd chars") is None


def test_store_treats_corrupt_documents_as_missing(tmp_path) -> None:
    store = GraphStore(tmp_path)
    (tmp_path / "bad.json").write_text("{nope", encoding="utf-8")

    assert store.load("bad") is None
    assert store.list() == []


def test_list_is_newest_first_and_cleanup_caps_count(tmp_path) -> None:
    store = GraphStore(tmp_path, retention_days=0, max_graphs=0)
    for day in (1, 3, 2):
        store.save(f"r{day}", _graph(f"r{day}", day))

    assert [entry.run_id for entry in store.list()] == ["r3", "r2", "r1"]

    store.max_graphs = 2
    assert store.cleanup() == 1
    assert [entry.run_id for entry in store.list()] == ["r3", "r2"]


def test_cleanup_ages_documents_by_write_time(tmp_path) -> None:
    store = GraphStore(tmp_path, retention_days=30, max_graphs=1)
    store.save("stale", _graph("stale", 3))
    store.save("recent", _graph("recent", 1))
    stale = time.time() - 40 * 86400
    os.utime(tmp_path / "stale.json", (stale, stale))

    assert store.exists("stale") and store.exists("recent")
    assert store.cleanup() == 1
    assert store.exists("recent")
    assert not store.exists("stale")


def test_stats_report_sizes_and_times(tmp_path) -> None:
    store = GraphStore(tmp_path, retention_days=0, max_graphs=0)
    assert store.stats().total_graphs == 0

    store.save("a", _graph("a"))
    store.save("b", _graph("b"))
    old = time.time() - 3600
    os.utime(tmp_path / "a.json", (old, old))

    stats = store.stats()

    assert stats.total_graphs == 2
    assert stats.total_size_bytes > 0
    assert stats.oldest_graph_iso < stats.newest_graph_iso
