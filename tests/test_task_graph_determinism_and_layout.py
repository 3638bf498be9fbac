from __future__ import annotations

from mission_control.core.graph import GraphEvent, TaskGraphBuilder, compute_graph_stats
from mission_control.core.graph.layout import LEVEL_GAP, NODE_HEIGHT, NODE_WIDTH, SIBLING_GAP


def _events() -> list[GraphEvent]:
    rows = [
        ("message", {"text": "Summarise the repo"}),
        ("task_start", {"name": "Read"}),
        ("step", {"name": "List files"}),
        ("tool_call", {"tool": "ls"}),
        ("tool_result", {"result": ["a", "b"]}),
        ("tool_call", {"tool": "cat"}),
        ("tool_result", {"result": "text"}),
        ("task_end", {}),
        ("task_start", {"name": "Write"}),
        ("tool_call", {"tool": "write", "error": "denied"}),
        ("task_end", {"status": "failed"}),
    ]
    return [
        GraphEvent(id=f"ev{index}", type=kind, timestamp_iso=f"2026-01-01T00:00:{index:02d}+00:00", data=data)
        for index, (kind, data) in enumerate(rows)
    ]


def test_identical_input_yields_byte_identical_graph() -> None:
    builder = TaskGraphBuilder()

    first = builder.build_from_events("r1", _events())
    second = builder.build_from_events("r1", _events())

    assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)
    assert list(first.nodes) == ["goal", "task_0", "step_0", "tool_0", "tool_1", "task_1", "tool_2"]


def test_merge_events_matches_full_rebuild() -> None:
    builder = TaskGraphBuilder()
    events = _events()
    partial = builder.build_from_events("r1", events[:4])

    merged = builder.merge_events(partial, events)

    assert merged == builder.build_from_events("r1", events)


def test_layout_stacks_leaves_and_centres_parents() -> None:
    graph = TaskGraphBuilder().build_from_events("r1", _events())
    pos = {node_id: node.position for node_id, node in graph.nodes.items()}
    leaf_step = NODE_HEIGHT + SIBLING_GAP
    column = NODE_WIDTH + LEVEL_GAP

    assert (pos["tool_0"].x, pos["tool_0"].y) == (3 * column, 0)
    assert (pos["tool_1"].x, pos["tool_1"].y) == (3 * column, leaf_step)
    assert pos["step_0"].y == leaf_step / 2
    assert pos["task_0"].y == leaf_step / 2
    assert (pos["tool_2"].x, pos["tool_2"].y) == (2 * column, 2 * leaf_step)
    assert pos["task_1"].y == 2 * leaf_step
    assert pos["goal"].x == 0
    assert pos["goal"].y == (pos["task_0"].y + pos["task_1"].y) / 2


def test_layout_can_be_disabled_without_changing_structure() -> None:
    laid_out = TaskGraphBuilder().build_from_events("r1", _events())
    bare = TaskGraphBuilder(auto_layout=False).build_from_events("r1", _events())

    assert all(node.position is None for node in bare.nodes.values())
    assert [(n.id, n.status, n.parent_id) for n in bare.nodes.values()] == [
        (n.id, n.status, n.parent_id) for n in laid_out.nodes.values()
    ]


def test_graph_stats_summarise_nodes_and_depth() -> None:
    graph = TaskGraphBuilder().build_from_events("r1", _events())

    stats = compute_graph_stats(graph)

    assert stats.node_count == 7
    assert stats.nodes_by_type["tool_call"] == 3
    assert stats.nodes_by_type["event"] == 0
    assert stats.nodes_by_status["failed"] == 3
    assert stats.edge_count == 6
    assert stats.max_depth == 3
    assert stats.total_duration_ms == 10_000
