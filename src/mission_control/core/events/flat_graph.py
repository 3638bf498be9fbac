from __future__ import annotations

from typing import Iterable

from .fields import node_label
from .schemas import Event, FlatNodeStatus, FlatNodeType, FlatTaskEdge, FlatTaskGraph, FlatTaskNode


def infer_node_type(event_type: str) -> FlatNodeType:
    if event_type.startswith("agent."):
        return "agent"
    if event_type.startswith("tool."):
        return "tool"
    if event_type.startswith("checkpoint."):
        return "checkpoint"
    return "event"


def infer_node_label(event: Event) -> str:
    label = node_label(event.payload)
    if label is not None:
        return label
    if event.agent_id:
        return f"{event.type} ({event.agent_id})"
    return event.type


def infer_node_status(event_type: str) -> FlatNodeStatus:
    if event_type.endswith(".error"):
        return "failed"
    if event_type.endswith(".complete"):
        return "completed"
    if event_type.endswith(".cancel"):
        return "cancelled"
    if event_type.endswith(".start"):
        return "running"
    return "pending"


def build_flat_graph(run_id: str, events: Iterable[Event]) -> FlatTaskGraph | None:
    """One node per event, one ``sequence`` edge per parent link.

    This is the lightweight view served straight from the store; the
    hierarchical Goal/Task/Step view lives in ``mission_control.core.graph``.
    """
    graph = FlatTaskGraph(run_id=run_id)
    seen: set[str] = set()
    for event in events:
        if event.id not in seen:
            seen.add(event.id)
            graph.nodes.append(
                FlatTaskNode(
                    id=event.id,
                    type=infer_node_type(event.type),
                    label=infer_node_label(event),
                    status=infer_node_status(event.type),
                    started_at_iso=event.ts_iso,
                    event_ids=[event.id],
                    parent_ids=[event.parent_id] if event.parent_id else [],
                )
            )
        if event.parent_id:
            graph.edges.append(FlatTaskEdge(from_=event.parent_id, to=event.id, type="sequence"))
    if not graph.nodes:
        return None
    return graph
