from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

EventType = Literal[
    "run.start",
    "run.end",
    "agent.spawn",
    "agent.complete",
    "agent.error",
    "tool.invoke",
    "tool.result",
    "tool.error",
    "message.send",
    "message.receive",
    "file.read",
    "file.write",
    "file.delete",
    "checkpoint.create",
    "checkpoint.restore",
    "approval.request",
    "approval.grant",
    "approval.deny",
    "system.error",
    "system.warning",
    "system.info",
]

EVENT_TYPES: tuple[str, ...] = get_args(EventType)

RunStatus = Literal["running", "completed", "failed", "cancelled"]


class Run(BaseModel):
    id: str
    started_at_iso: str
    ended_at_iso: str | None = None
    status: RunStatus = "running"
    prompt: str | None = None
    root_agent_id: str | None = None
    event_count: int = 0
    error: str | None = None


class Event(BaseModel):
    """An immutable fact recorded during a run."""

    model_config = ConfigDict(frozen=True)

    id: str
    run_id: str
    ts_iso: str
    type: EventType
    agent_id: str | None = None
    parent_id: str | None = None
    sequence: int = Field(ge=0)
    payload: dict[str, Any] = Field(default_factory=dict)


class EventFilter(BaseModel):
    event_types: list[EventType] | None = None
    agent_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    parent_id: str | None = None


class RunPage(BaseModel):
    runs: list[Run]
    total: int


class StoreHealth(BaseModel):
    status: Literal["healthy", "degraded"]
    event_count: int
    run_count: int


FlatNodeType = Literal["agent", "tool", "event", "checkpoint"]
FlatNodeStatus = Literal["pending", "running", "completed", "failed", "cancelled"]


class FlatTaskNode(BaseModel):
    id: str
    type: FlatNodeType
    label: str
    status: FlatNodeStatus
    started_at_iso: str
    ended_at_iso: str | None = None
    event_ids: list[str] = Field(default_factory=list)
    parent_ids: list[str] = Field(default_factory=list)


class FlatTaskEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    from_: str = Field(alias="from")
    to: str
    type: Literal["spawn", "invoke", "depend", "sequence"] = "sequence"


class FlatTaskGraph(BaseModel):
    run_id: str
    nodes: list[FlatTaskNode] = Field(default_factory=list)
    edges: list[FlatTaskEdge] = Field(default_factory=list)
