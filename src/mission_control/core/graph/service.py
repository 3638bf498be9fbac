from __future__ import annotations

import logging

from mission_control.core.errors import PersistenceError
from mission_control.core.events.store import EventStore
from mission_control.core.logging.context import log_context

from .builder import TaskGraphBuilder
from .schemas import TaskGraph
from .store import GraphStore

logger = logging.getLogger("mission_control.graph")


class GraphService:
    def __init__(self, events: EventStore, builder: TaskGraphBuilder | None = None, cache: GraphStore | None = None) -> None:
        self.events = events
        self.builder = builder or TaskGraphBuilder()
        self.cache = cache

    def get_graph(self, run_id: str) -> TaskGraph | None:
        """Hierarchical graph for ``run_id``, or None when the run has no events.

        A cached graph is reused while its event count and last event id still
        match the store; otherwise the graph is rebuilt and re-cached.
        """
        events = self.events.get_events(run_id)
        if not events:
            return None
        with log_context(run_id=run_id):
            if self.cache is not None:
                cached = self.cache.load(run_id)
                if cached is not None and cached.event_count == len(events) and cached.last_event_id == events[-1].id:
                    return cached
            graph = self.builder.build_from_events(run_id, events)
            if self.cache is not None:
                try:
                    self.cache.save(run_id, graph)
                except PersistenceError as exc:
                    logger.warning("graph_cache_write_failed", extra={"extra_fields": {"error": str(exc)}})
            return graph
