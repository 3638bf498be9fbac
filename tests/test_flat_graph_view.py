from __future__ import annotations

from mission_control.core.events import Event, EventStore, build_flat_graph


def _event(sequence: int, type: str, parent_id: str | None = None, agent_id: str | None = None, **payload) -> Event:
    return Event(
        id=f"e{sequence}",
        run_id="r1",
        ts_iso="2026-01-01T00:00:00+00:00",
        type=type,
        agent_id=agent_id,
        parent_id=parent_id,
        sequence=sequence,
        payload=payload,
    )


def test_flat_graph_infers_type_label_and_status() -> None:
    events = [
        _event(1, "agent.spawn", agent_id="main"),
        _event(2, "tool.invoke", parent_id="e1", name="search", tool="web"),
        _event(3, "tool.error", parent_id="e2", tool="web"),
        _event(4, "checkpoint.create"),
        _event(5, "agent.complete", parent_id="e1"),
    ]

    graph = build_flat_graph("r1", events)

    nodes = {node.id: node for node in graph.nodes}
    assert nodes["e1"].type == "agent"
    assert nodes["e1"].label == "agent.spawn (main)"
    assert nodes["e2"].label == "search"
    assert nodes["e3"].label == "web"
    assert nodes["e3"].status == "failed"
    assert nodes["e4"].type == "checkpoint"
    assert nodes["e4"].status == "pending"
    assert nodes["e5"].status == "completed"
    assert [(edge.from_, edge.to) for edge in graph.edges] == [("e1", "e2"), ("e2", "e3"), ("e1", "e5")]


def test_flat_graph_serializes_edges_with_from_key() -> None:
    graph = build_flat_graph("r1", [_event(1, "run.start"), _event(2, "system.info", parent_id="e1")])

    dumped = graph.model_dump()

    assert dumped["edges"] == [{"from": "e1", "to": "e2", "type": "sequence"}]
    assert '"from":"e1"' in graph.model_dump_json()


def test_store_serves_flat_graph(tmp_path) -> None:
    store = EventStore(tmp_path)
    store.append_event(_event(1, "run.start"))

    graph = store.get_task_graph("r1")

    assert graph is not None
    assert graph.run_id == "r1"
    assert [node.id for node in graph.nodes] == ["e1"]
