from .flat_graph import build_flat_graph
from .schemas import (
    EVENT_TYPES,
    Event,
    EventFilter,
    EventType,
    FlatTaskEdge,
    FlatTaskGraph,
    FlatTaskNode,
    Run,
    RunPage,
    RunStatus,
    StoreHealth,
)
from .store import FLUSH_JOB_ID, EventStore, parse_iso

__all__ = [
    "EVENT_TYPES",
    "Event",
    "EventFilter",
    "EventStore",
    "EventType",
    "FLUSH_JOB_ID",
    "FlatTaskEdge",
    "FlatTaskGraph",
    "FlatTaskNode",
    "Run",
    "RunPage",
    "RunStatus",
    "StoreHealth",
    "build_flat_graph",
    "parse_iso",
]
