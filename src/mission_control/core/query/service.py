from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel

from mission_control.core.errors import DiffNotFoundError, NotFoundError, QueryValidationError, RunNotFoundError
from mission_control.core.events.schemas import Event, FlatTaskGraph, Run, StoreHealth
from mission_control.core.events.store import EventStore
from mission_control.core.graph.schemas import TaskGraph
from mission_control.core.graph.service import GraphService
from mission_control.core.redaction import Redactor
from mission_control.core.workspace.schemas import DiffSummary, FileOperation, TrackingStats, WorkspaceSnapshot
from mission_control.core.workspace.tracker import WorkspaceTracker

from .params import DEFAULT_FILES_PAGE_SIZE, MAX_FILES_PAGE_SIZE, ParamValue, build_event_filter, parse_page


class RunListing(BaseModel):
    runs: list[Run]
    limit: int
    offset: int
    total: int
    has_more: bool


class EventListing(BaseModel):
    run_id: str
    events: list[Event]
    count: int


class QueryService:
    """Read side handed to the external API layer.

    Lookups of unknown ids raise ``NotFoundError`` subclasses and malformed
    parameters raise ``QueryValidationError``; the caller maps both to
    responses. ``redact=True`` runs the result through the redactor first.
    """

    def __init__(
        self,
        store: EventStore,
        graph_service: GraphService,
        tracker: WorkspaceTracker,
        redactor: Redactor | None = None,
    ) -> None:
        self.store = store
        self.graph_service = graph_service
        self.tracker = tracker
        self.redactor = redactor or Redactor()

    def _require_run(self, run_id: str) -> Run:
        run = self.store.get_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run

    def list_runs(self, limit: Any = None, offset: Any = None, redact: bool = False) -> RunListing:
        page = parse_page(limit, offset)
        result = self.store.list_runs(limit=page.limit, offset=page.offset)
        runs = [self._redact_run(run) for run in result.runs] if redact else result.runs
        return RunListing(
            runs=runs,
            limit=page.limit,
            offset=page.offset,
            total=result.total,
            has_more=page.offset + len(runs) < result.total,
        )

    def get_run(self, run_id: str, redact: bool = False) -> Run:
        run = self._require_run(run_id)
        return self._redact_run(run) if redact else run

    def get_events(
        self,
        run_id: str,
        params: Mapping[str, ParamValue] | None = None,
        redact: bool = False,
    ) -> EventListing:
        self._require_run(run_id)
        events = self.store.get_events(run_id, build_event_filter(params))
        if redact:
            events = self.redactor.redact_events(events)
        return EventListing(run_id=run_id, events=events, count=len(events))

    def get_task_graph(self, run_id: str, redact: bool = False) -> TaskGraph:
        self._require_run(run_id)
        graph = self.graph_service.get_graph(run_id)
        if graph is None:
            raise NotFoundError("graph", run_id)
        return self.redactor.redact_task_graph(graph) if redact else graph

    def get_flat_graph(self, run_id: str, redact: bool = False) -> FlatTaskGraph:
        self._require_run(run_id)
        graph = self.store.get_task_graph(run_id)
        if graph is None:
            raise NotFoundError("graph", run_id)
        if redact:
            nodes = [node.model_copy(update={"label": self.redactor.redact_string(node.label)}) for node in graph.nodes]
            graph = graph.model_copy(update={"nodes": nodes})
        return graph

    def get_workspace_snapshot(self, run_id: str, redact: bool = False) -> WorkspaceSnapshot:
        self._require_run(run_id)
        snapshot = self.store.get_workspace_snapshot(run_id)
        if snapshot is None:
            raise NotFoundError("workspace snapshot", run_id)
        return self.redactor.redact_workspace_snapshot(snapshot) if redact else snapshot

    def list_tracked_files(
        self,
        type: str | None = None,
        limit: Any = None,
        offset: Any = None,
        redact: bool = False,
    ) -> list[FileOperation]:
        if type is not None and type not in ("read", "write"):
            raise QueryValidationError("type", "must be 'read' or 'write'")
        page = parse_page(limit, offset, default_limit=DEFAULT_FILES_PAGE_SIZE, max_limit=MAX_FILES_PAGE_SIZE)
        operations = self.tracker.get_tracked_files(type=type, limit=page.limit, offset=page.offset)  # type: ignore[arg-type]
        if redact:
            operations = [op.model_copy(update={"path": self.redactor.redact_string(op.path)}) for op in operations]
        return operations

    def get_diff(self, diff_or_file_id: str, redact: bool = False) -> DiffSummary:
        """Look up by diff id, falling back to the newest diff of a file operation."""
        diff = self.tracker.get_diff(diff_or_file_id)
        if diff is None:
            diffs = self.tracker.get_diffs_for_operation(diff_or_file_id)
            diff = diffs[0] if diffs else None
        if diff is None:
            raise DiffNotFoundError(diff_or_file_id)
        summary = DiffSummary.from_diff(diff)
        if redact:
            summary = summary.model_copy(update={"unified_diff": self.redactor.redact_string(summary.unified_diff)})
        return summary

    def get_tracking_stats(self) -> TrackingStats:
        return self.tracker.get_stats()

    def get_health(self) -> StoreHealth:
        return self.store.get_health()

    def _redact_run(self, run: Run) -> Run:
        update: dict[str, Any] = {}
        if run.prompt is not None:
            update["prompt"] = self.redactor.redact_string(run.prompt)
        if run.error is not None:
            update["error"] = self.redactor.redact_string(run.error)
        return run.model_copy(update=update) if update else run
