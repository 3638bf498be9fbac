from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from mission_control.core.events import fields
from mission_control.core.events.schemas import Event
from mission_control.core.events.store import parse_iso

from .adapter import GraphEvent, to_graph_event
from .layout import apply_tree_layout
from .schemas import (
    NODE_STATUSES,
    EventNode,
    GoalNode,
    GraphEdge,
    NodeBase,
    NodeStatus,
    StepNode,
    TaskGraph,
    TaskNode,
    ToolCallNode,
)

logger = logging.getLogger("mission_control.graph")

GOAL_KINDS = frozenset({"message", "user_message", "wake"})
TASK_START_KINDS = frozenset({"task_start", "objective_start", "plan_start", "subagent_spawn"})
TASK_END_KINDS = frozenset({"task_end", "objective_complete", "plan_complete", "subagent_complete", "subagent_error"})
STEP_KINDS = frozenset({"step", "action", "thinking", "reasoning"})
TOOL_CALL_KINDS = frozenset({"tool_call", "function_call", "invoke"})
TOOL_RESULT_KINDS = frozenset({"tool_result", "function_result"})

GOAL_NAME_MAX_CHARS = 100
UNTITLED_GOAL = "Untitled Goal"

# Checked in order; the first keyword found in the event kind decides.
_STATUS_KEYWORDS: tuple[tuple[tuple[str, ...], NodeStatus], ...] = (
    (("error", "fail"), "failed"),
    (("complete", "success"), "completed"),
    (("skip",), "skipped"),
    (("cancel",), "cancelled"),
    (("start", "begin"), "running"),
)


def is_task_start(event: GraphEvent) -> bool:
    return event.type in TASK_START_KINDS


def is_task_end(event: GraphEvent) -> bool:
    return event.type in TASK_END_KINDS


def is_step(event: GraphEvent) -> bool:
    return event.type in STEP_KINDS or "step" in event.type


def is_tool_call(event: GraphEvent) -> bool:
    return event.type in TOOL_CALL_KINDS


def is_tool_result(event: GraphEvent) -> bool:
    return event.type in TOOL_RESULT_KINDS


def map_status(event: GraphEvent, default: NodeStatus = "pending") -> NodeStatus:
    explicit = event.data.get("status")
    if isinstance(explicit, str) and explicit in NODE_STATUSES:
        return explicit  # type: ignore[return-value]
    for keywords, status in _STATUS_KEYWORDS:
        if any(keyword in event.type for keyword in keywords):
            return status
    return default


def duration_ms(start_iso: str | None, end_iso: str | None) -> int | None:
    start = parse_iso(start_iso)
    end = parse_iso(end_iso)
    if start is None or end is None:
        return None
    return int(round((end - start).total_seconds() * 1000))


def _complete(node: NodeBase, status: NodeStatus, ts_iso: str) -> None:
    node.status = status
    node.completed_at_iso = ts_iso
    node.duration_ms = duration_ms(node.created_at_iso, ts_iso)


class TaskGraphBuilder:
    """Folds an ordered event list into a Goal -> Task -> Step -> ToolCall tree.

    The walk is strictly sequential: at most one task and one step are open at
    a time. Events that fit none of the node kinds are dropped from the tree
    (or attached as Event nodes when ``include_event_nodes`` is on). Input must
    already be in sequence order.

    Node ids come from per-graph counters and every timestamp comes from the
    events, so the same input always yields the same graph.
    """

    def __init__(self, auto_layout: bool = True, include_event_nodes: bool = False) -> None:
        self.auto_layout = auto_layout
        self.include_event_nodes = include_event_nodes

    def configure(self, auto_layout: bool | None = None, include_event_nodes: bool | None = None) -> None:
        if auto_layout is not None:
            self.auto_layout = auto_layout
        if include_event_nodes is not None:
            self.include_event_nodes = include_event_nodes

    def build_from_events(
        self,
        run_id: str,
        events: Sequence[Event | GraphEvent],
        now_iso: str | None = None,
    ) -> TaskGraph:
        graph_events = [to_graph_event(item) if isinstance(item, Event) else item for item in events]
        fallback_iso = now_iso or datetime.now(timezone.utc).isoformat()
        first_iso = graph_events[0].timestamp_iso if graph_events else fallback_iso
        last_iso = graph_events[-1].timestamp_iso if graph_events else fallback_iso

        goal = self._goal_node(graph_events, first_iso, last_iso)
        nodes: dict[str, Any] = {goal.id: goal}
        edges: list[GraphEdge] = []

        def attach(node: NodeBase, parent_id: str) -> None:
            nodes[node.id] = node
            nodes[parent_id].children.append(node.id)
            edges.append(GraphEdge(from_=parent_id, to=node.id, type="child"))

        counters = {"task": 0, "step": 0, "tool": 0, "event": 0}
        current_task: TaskNode | None = None
        current_step: StepNode | None = None
        step_index = 0

        for event in graph_events:
            data = event.data
            if is_task_start(event):
                task_number = counters["task"]
                counters["task"] += 1
                complexity = data.get("complexity")
                current_task = TaskNode(
                    id=f"task_{task_number}",
                    name=fields.title(data) or f"Task {task_number + 1}",
                    status="running",
                    parent_id=goal.id,
                    created_at_iso=event.timestamp_iso,
                    description=fields.description(data) or "",
                    complexity=complexity if isinstance(complexity, (int, float)) and not isinstance(complexity, bool) else None,
                    metadata={"event_id": event.id},
                )
                attach(current_task, goal.id)
                current_step = None
                step_index = 0
            elif is_task_end(event) and current_task is not None:
                _complete(current_task, map_status(event, "completed"), event.timestamp_iso)
                current_task = None
                current_step = None
            elif is_step(event) and current_task is not None:
                step_index += 1
                current_step = StepNode(
                    id=f"step_{counters['step']}",
                    name=str(data.get("name") or f"Step {step_index}"),
                    status=map_status(event, "running"),
                    parent_id=current_task.id,
                    created_at_iso=event.timestamp_iso,
                    description=fields.description(data) or "",
                    index=step_index,
                    metadata={"event_id": event.id},
                )
                counters["step"] += 1
                attach(current_step, current_task.id)
            elif is_tool_call(event):
                parent = current_step or current_task or goal
                tool = fields.tool_name(data) or "unknown"
                error = data.get("error")
                node = ToolCallNode(
                    id=f"tool_{counters['tool']}",
                    name=tool,
                    status=map_status(event, "running"),
                    parent_id=parent.id,
                    created_at_iso=event.timestamp_iso,
                    tool=tool,
                    arguments=fields.tool_arguments(data) or {},
                    result=data.get("result"),
                    error=str(error) if error else None,
                    metadata={"event_id": event.id},
                )
                counters["tool"] += 1
                attach(node, parent.id)
                if "result" in data and data["result"] is not None:
                    node.status = "completed"
                    node.completed_at_iso = event.timestamp_iso
                elif error:
                    node.status = "failed"
                    node.completed_at_iso = event.timestamp_iso
            elif is_tool_result(event):
                self._complete_open_tool_call(nodes, event)
            elif self.include_event_nodes and (current_step or current_task) is not None:
                parent = current_step or current_task
                attach(
                    EventNode(
                        id=f"event_{counters['event']}",
                        name=event.type,
                        status=map_status(event, "completed"),
                        parent_id=parent.id,
                        created_at_iso=event.timestamp_iso,
                        event_type=event.type,
                        timestamp_iso=event.timestamp_iso,
                        event_ref=event.id,
                        metadata={"event_id": event.id},
                    ),
                    parent.id,
                )
                counters["event"] += 1

        if any(nodes[child].status == "failed" for child in goal.children):
            goal.status = "failed"

        if self.auto_layout:
            apply_tree_layout(nodes, goal.id)

        graph = TaskGraph(
            run_id=run_id,
            created_at_iso=first_iso,
            updated_at_iso=last_iso,
            root_id=goal.id,
            nodes=nodes,
            edges=edges,
            event_count=len(graph_events),
            last_event_id=graph_events[-1].id if graph_events else None,
        )
        logger.debug(
            "task_graph_built",
            extra={"extra_fields": {"run_id": run_id, "nodes": len(nodes), "events": len(graph_events)}},
        )
        return graph

    def merge_events(self, graph: TaskGraph, events: Sequence[Event | GraphEvent]) -> TaskGraph:
        """Rebuild ``graph`` from ``events``, which must be the run's full event list."""
        return self.build_from_events(graph.run_id, events)

    def _goal_node(self, events: Iterable[GraphEvent], first_iso: str, last_iso: str) -> GoalNode:
        seed = next((event for event in events if event.type in GOAL_KINDS), None)
        prompt = fields.prompt_text(seed.data) if seed is not None else None
        created_iso = seed.timestamp_iso if seed is not None else first_iso
        return GoalNode(
            id="goal",
            name=(prompt or "")[:GOAL_NAME_MAX_CHARS] or UNTITLED_GOAL,
            status="completed",
            parent_id=None,
            created_at_iso=created_iso,
            completed_at_iso=last_iso,
            duration_ms=duration_ms(created_iso, last_iso),
            prompt=prompt or "",
            session_key=(fields.session_key(seed.data) if seed is not None else None) or "default",
            agent_id=fields.agent_id(seed.data) if seed is not None else None,
        )

    def _complete_open_tool_call(self, nodes: dict[str, Any], event: GraphEvent) -> None:
        for node in reversed(list(nodes.values())):
            if isinstance(node, ToolCallNode) and node.completed_at_iso is None:
                node.result = event.data.get("result")
                error = event.data.get("error")
                if error:
                    node.error = str(error)
                _complete(node, "failed" if error else "completed", event.timestamp_iso)
                return
