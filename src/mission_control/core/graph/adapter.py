from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, Field

from mission_control.core.events.schemas import Event

# Event Store types renamed into the builder's vocabulary. A producer can
# override the mapping per event with ``payload["kind"]``.
EVENT_KIND_MAP: dict[str, str] = {
    "run.start": "wake",
    "message.receive": "user_message",
    "agent.spawn": "subagent_spawn",
    "agent.complete": "subagent_complete",
    "agent.error": "subagent_error",
    "tool.invoke": "tool_call",
    "tool.result": "tool_result",
    "tool.error": "tool_result",
}


class GraphEvent(BaseModel):
    """The builder's view of an event: a kind, a timestamp and its data."""

    id: str
    type: str
    timestamp_iso: str
    data: dict[str, Any] = Field(default_factory=dict)


def event_kind(event: Event) -> str:
    override = event.payload.get("kind")
    if isinstance(override, str) and override:
        return override
    return EVENT_KIND_MAP.get(event.type, event.type)


def to_graph_event(event: Event) -> GraphEvent:
    data = dict(event.payload)
    if event.agent_id and "agentId" not in data and "agent_id" not in data:
        data["agent_id"] = event.agent_id
    if event.type == "tool.error" and "error" not in data:
        data["error"] = data.get("message") or "tool error"
    return GraphEvent(id=event.id, type=event_kind(event), timestamp_iso=event.ts_iso, data=data)


def to_graph_events(events: Iterable[Event]) -> list[GraphEvent]:
    return [to_graph_event(event) for event in events]
