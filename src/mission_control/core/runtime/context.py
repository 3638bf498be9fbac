from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from mission_control.core.errors import MissionControlError
from mission_control.core.events.schemas import Event, EventType, Run, RunStatus, StoreHealth
from mission_control.core.events.store import EventStore
from mission_control.core.graph.builder import TaskGraphBuilder
from mission_control.core.graph.service import GraphService
from mission_control.core.graph.store import GraphStore
from mission_control.core.logging.context import log_context
from mission_control.core.logging.setup import configure_logging
from mission_control.core.ops.maintenance import (
    RETENTION_JOB_ID,
    RETENTION_SWEEP_HOUR,
    RETENTION_SWEEP_MINUTE,
    run_retention_sweep,
)
from mission_control.core.ops.scheduler import SchedulerService
from mission_control.core.query.service import QueryService
from mission_control.core.redaction import Redactor
from mission_control.core.safety.modes import SafetyController, SafetyDecision, SafetyStatus
from mission_control.core.settings import Settings, load_settings
from mission_control.core.workspace.bootstrap import initialize_workspace, shutdown_workspace, workspace_status
from mission_control.core.workspace.hooks import FileHooks
from mission_control.core.workspace.schemas import (
    FileDiff,
    FileOperation,
    TrackingStats,
    WorkspaceSnapshot,
    WorkspaceStatus,
)
from mission_control.core.workspace.snapshot import capture_workspace_snapshot
from mission_control.core.workspace.tracker import WorkspaceTracker

logger = logging.getLogger("mission_control.runtime")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RuntimeHealth(BaseModel):
    enabled: bool
    started: bool
    scheduler_running: bool
    store: StoreHealth
    flush_count: int
    flush_failures: int
    persistence_enabled: bool
    tracking: TrackingStats
    workspace: WorkspaceStatus
    safety: SafetyStatus


class MissionControl:
    """Every mission control component for one process, built once and passed around.

    Ingestion methods (``start_run``, ``record_event``, ``finish_run``) never
    raise; they log and return None so a broken observer cannot stop the agent
    it observes. Reads go through ``query``, which does raise.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.scheduler = SchedulerService(test_mode=settings.test_mode)
        self.redactor = Redactor(redact_file_contents=settings.redact_file_contents)
        self.store = EventStore(
            settings.events_dir,
            max_events_per_run=settings.max_events_per_run,
            max_runs_in_memory=settings.max_runs_in_memory,
            flush_interval_seconds=settings.flush_interval_seconds,
            scheduler=self.scheduler,
        )
        self.tracker = WorkspaceTracker(
            settings.diffs_dir,
            enabled=settings.workspace_tracking,
            session_id=settings.session_id,
            max_operations=settings.max_tracked_operations,
            retention_days=settings.diff_retention_days,
            on_operation=self._on_file_operation,
        )
        self.hooks = FileHooks(self.tracker)
        self.graph_store = GraphStore(
            settings.graphs_dir,
            retention_days=settings.graph_retention_days,
            max_graphs=settings.max_graphs,
        )
        self.graph_service = GraphService(
            self.store,
            builder=TaskGraphBuilder(
                auto_layout=settings.graph_auto_layout,
                include_event_nodes=settings.graph_include_event_nodes,
            ),
            cache=self.graph_store,
        )
        self.safety = SafetyController(
            settings.state_dir,
            force_safe_mode=settings.safe_mode,
            force_kill_switch=settings.kill_switch,
        )
        self.query = QueryService(self.store, self.graph_service, self.tracker, self.redactor)
        self.current_run_id: str | None = None
        self._started = False
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> MissionControl:
        return cls(settings or load_settings())

    @property
    def started(self) -> bool:
        return self._started

    @property
    def recording(self) -> bool:
        return self.settings.enabled and self.settings.trace_logging

    # lifecycle

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            if not self.settings.enabled:
                logger.info("mission_control_disabled")
                return
            configure_logging(self.settings)
            self.store.init()
            if self.settings.trace_logging:
                self.store.start()
            initialize_workspace(self.tracker, self.hooks)
            self.scheduler.add_cron(
                RETENTION_JOB_ID,
                RETENTION_SWEEP_HOUR,
                RETENTION_SWEEP_MINUTE,
                run_retention_sweep,
                kwargs={"control": self},
            )
            self.scheduler.start()
            self._started = True
        logger.info(
            "mission_control_started",
            extra={
                "extra_fields": {
                    "state_dir": str(self.settings.state_dir),
                    "workspace_tracking": self.tracker.enabled,
                    "test_mode": self.settings.test_mode,
                }
            },
        )

    def stop(self) -> None:
        with self._lock:
            shutdown_workspace(self.hooks)
            self.store.stop()
            self.scheduler.remove_job(RETENTION_JOB_ID)
            self.scheduler.shutdown()
            was_started = self._started
            self._started = False
        if was_started:
            logger.info("mission_control_stopped")

    # ingestion

    def start_run(
        self,
        prompt: str | None = None,
        run_id: str | None = None,
        root_agent_id: str | None = None,
    ) -> Run | None:
        if not self.recording:
            return None
        run_id = run_id or str(uuid4())
        with log_context(run_id=run_id):
            try:
                run = self.store.create_run(
                    Run(id=run_id, started_at_iso=_now_iso(), prompt=prompt, root_agent_id=root_agent_id)
                )
                self.store.record(run_id, "run.start", {"prompt": prompt} if prompt else {}, agent_id=root_agent_id)
            except (MissionControlError, ValidationError) as exc:
                logger.warning("run_start_failed", extra={"extra_fields": {"error": str(exc)}})
                return None
        self.current_run_id = run_id
        return run

    def record_event(
        self,
        run_id: str,
        type: EventType,
        payload: dict[str, Any] | None = None,
        agent_id: str | None = None,
        parent_id: str | None = None,
    ) -> Event | None:
        if not self.recording:
            return None
        with log_context(run_id=run_id):
            try:
                event = self.store.record(run_id, type, payload, agent_id=agent_id, parent_id=parent_id)
            except (MissionControlError, ValidationError) as exc:
                logger.warning(
                    "event_record_failed",
                    extra={"extra_fields": {"type": type, "error": str(exc)}},
                )
                return None
        return event

    def finish_run(self, run_id: str, status: RunStatus = "completed", error: str | None = None) -> Run | None:
        if not self.recording:
            return None
        with log_context(run_id=run_id):
            try:
                self.store.record(run_id, "run.end", {"status": status, **({"error": error} if error else {})})
                run = self.store.update_run(run_id, status=status, ended_at_iso=_now_iso(), error=error)
            except (MissionControlError, ValidationError) as exc:
                logger.warning("run_finish_failed", extra={"extra_fields": {"error": str(exc)}})
                return None
        if self.current_run_id == run_id:
            self.current_run_id = None
        return run

    def capture_snapshot(self, run_id: str, root: str | os.PathLike[str]) -> WorkspaceSnapshot | None:
        with log_context(run_id=run_id):
            try:
                snapshot = capture_workspace_snapshot(run_id, root)
            except OSError as exc:
                logger.warning("workspace_snapshot_failed", extra={"extra_fields": {"error": str(exc)}})
                return None
            self.store.store_workspace_snapshot(run_id, snapshot)
        return snapshot

    def _on_file_operation(self, operation: FileOperation, diff: FileDiff | None) -> None:
        run_id = self.current_run_id or operation.session_id
        if run_id is None or self.store.get_run(run_id) is None:
            return
        payload: dict[str, Any] = {
            "path": operation.path,
            "operation_id": operation.id,
            "size": operation.size,
        }
        if operation.type == "write":
            payload["has_diff"] = operation.has_diff
            if diff is not None:
                payload["diff_id"] = diff.id
        self.record_event(run_id, "file.write" if operation.type == "write" else "file.read", payload)

    # safety and health

    def is_action_blocked(self, action: str) -> SafetyDecision:
        decision = self.safety.check(action)
        if decision.blocked:
            logger.info(
                "action_blocked",
                extra={"extra_fields": {"action": action, "safety_system": decision.safety_system}},
            )
        return decision

    def health(self) -> RuntimeHealth:
        return RuntimeHealth(
            enabled=self.settings.enabled,
            started=self._started,
            scheduler_running=self.scheduler.running,
            store=self.store.get_health(),
            flush_count=self.store.flush_count,
            flush_failures=self.store.flush_failures,
            persistence_enabled=self.store.persistence_enabled,
            tracking=self.tracker.get_stats(),
            workspace=workspace_status(self.tracker, self.hooks),
            safety=self.safety.status(),
        )
