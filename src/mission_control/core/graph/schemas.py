from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

NodeStatus = Literal["pending", "running", "completed", "failed", "skipped", "cancelled"]
NodeType = Literal["goal", "task", "step", "tool_call", "event"]
EdgeType = Literal["child", "depends_on", "triggers"]

NODE_STATUSES: tuple[str, ...] = ("pending", "running", "completed", "failed", "skipped", "cancelled")
NODE_TYPES: tuple[str, ...] = ("goal", "task", "step", "tool_call", "event")


class Position(BaseModel):
    x: float
    y: float


class NodeBase(BaseModel):
    """Envelope shared by every task graph node."""

    id: str
    name: str
    status: NodeStatus = "pending"
    parent_id: str | None = None
    children: list[str] = Field(default_factory=list)
    created_at_iso: str
    completed_at_iso: str | None = None
    duration_ms: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    position: Position | None = None


class GoalNode(NodeBase):
    type: Literal["goal"] = "goal"
    prompt: str = ""
    session_key: str = "default"
    agent_id: str | None = None


class TaskNode(NodeBase):
    type: Literal["task"] = "task"
    description: str = ""
    complexity: float | None = None


class StepNode(NodeBase):
    type: Literal["step"] = "step"
    description: str = ""
    index: int = 0


class ToolCallNode(NodeBase):
    type: Literal["tool_call"] = "tool_call"
    tool: str = "unknown"
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    error: str | None = None


class EventNode(NodeBase):
    type: Literal["event"] = "event"
    event_type: str
    timestamp_iso: str
    event_ref: str


TaskGraphNode = Annotated[
    Union[GoalNode, TaskNode, StepNode, ToolCallNode, EventNode],
    Field(discriminator="type"),
]


class GraphEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    from_: str = Field(alias="from")
    to: str
    type: EdgeType = "child"
    metadata: dict[str, Any] | None = None


class TaskGraph(BaseModel):
    """Hierarchical view of a run, rebuilt from its events on demand.

    ``nodes`` keeps insertion order, so the goal is always first and
    children follow the order their events arrived in.
    """

    run_id: str
    version: int = 1
    created_at_iso: str
    updated_at_iso: str
    root_id: str
    nodes: dict[str, TaskGraphNode] = Field(default_factory=dict)
    edges: list[GraphEdge] = Field(default_factory=list)
    event_count: int = 0
    last_event_id: str | None = None

    @property
    def root(self) -> GoalNode:
        return self.nodes[self.root_id]  # type: ignore[return-value]

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_storage(cls, payload: dict[str, Any]) -> "TaskGraph":
        return cls.model_validate(payload)


class GraphStats(BaseModel):
    node_count: int
    nodes_by_type: dict[str, int]
    nodes_by_status: dict[str, int]
    edge_count: int
    max_depth: int
    total_duration_ms: int | None = None


class StoredGraphInfo(BaseModel):
    run_id: str
    created_at_iso: str
    updated_at_iso: str


class GraphStoreStats(BaseModel):
    total_graphs: int = 0
    total_size_bytes: int = 0
    oldest_graph_iso: str | None = None
    newest_graph_iso: str | None = None
