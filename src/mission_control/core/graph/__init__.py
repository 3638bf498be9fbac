from .adapter import EVENT_KIND_MAP, GraphEvent, event_kind, to_graph_event, to_graph_events
from .builder import TaskGraphBuilder, map_status
from .layout import apply_tree_layout
from .schemas import (
    EventNode,
    GoalNode,
    GraphEdge,
    GraphStats,
    GraphStoreStats,
    Position,
    StepNode,
    StoredGraphInfo,
    TaskGraph,
    TaskGraphNode,
    TaskNode,
    ToolCallNode,
)
from .service import GraphService
from .stats import compute_graph_stats
from .store import GraphStore

__all__ = [
    "EVENT_KIND_MAP",
    "EventNode",
    "GoalNode",
    "GraphEdge",
    "GraphEvent",
    "GraphService",
    "GraphStats",
    "GraphStore",
    "GraphStoreStats",
    "Position",
    "StepNode",
    "StoredGraphInfo",
    "TaskGraph",
    "TaskGraphBuilder",
    "TaskGraphNode",
    "TaskNode",
    "ToolCallNode",
    "apply_tree_layout",
    "compute_graph_stats",
    "event_kind",
    "map_status",
    "to_graph_event",
    "to_graph_events",
]
