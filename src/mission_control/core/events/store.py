from __future__ import annotations

import json
import logging
import threading
from collections import OrderedDict, deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from mission_control.core.errors import (
    ConfigurationError,
    DuplicateRunError,
    EventSequenceError,
    PersistenceError,
    QueryValidationError,
    RunNotFoundError,
    validation_error_from_pydantic,
)
from mission_control.core.logging.context import log_context
from mission_control.core.ops.files import atomic_write_json, atomic_write_text, ensure_writable_dir, read_json, safe_name
from mission_control.core.ops.scheduler import SchedulerService
from mission_control.core.workspace.schemas import WorkspaceSnapshot

from .flat_graph import build_flat_graph
from .schemas import Event, EventFilter, EventType, FlatTaskGraph, Run, RunPage, StoreHealth

MAX_EVENTS_PER_RUN = 10_000
MAX_RUNS_IN_MEMORY = 100
FLUSH_INTERVAL_SECONDS = 30
FLUSH_JOB_ID = "event_store_flush"
RUNS_FILE = "runs.json"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _filter_bound(value: str | None, field: str) -> datetime | None:
    if value is None:
        return None
    parsed = parse_iso(value)
    if parsed is None:
        raise QueryValidationError(field, f"not an ISO-8601 timestamp: {value!r}")
    return parsed


class EventStore:
    """In-memory run/event store flushed to ``base_dir`` on a timer.

    Layout: ``runs.json`` holds every run's metadata, ``events-<run>.jsonl`` one
    run's retained events, ``snapshot-<run>.json`` its workspace snapshot.
    Mutations land in memory first; anything appended after the last flush is
    lost on a crash. Only run metadata is read at startup, event logs are loaded
    the first time a run is touched. Events are deep-copied on the way in and
    out, so no caller ever holds a stored payload.

    Health counts every retained event, including runs unloaded from memory.
    """

    def __init__(
        self,
        base_dir: str | Path,
        max_events_per_run: int = MAX_EVENTS_PER_RUN,
        max_runs_in_memory: int = MAX_RUNS_IN_MEMORY,
        flush_interval_seconds: int = FLUSH_INTERVAL_SECONDS,
        scheduler: SchedulerService | None = None,
    ) -> None:
        self.base_dir = Path(base_dir).expanduser()
        self.max_events_per_run = max(1, max_events_per_run)
        self.max_runs_in_memory = max(1, max_runs_in_memory)
        self.flush_interval_seconds = max(1, flush_interval_seconds)
        self.logger = logging.getLogger("mission_control.events")

        self._runs: dict[str, Run] = {}
        self._events: OrderedDict[str, deque[Event]] = OrderedDict()
        self._last_sequence: dict[str, int] = {}
        self._retained_counts: dict[str, int] = {}
        self._snapshots: dict[str, WorkspaceSnapshot] = {}
        self._dirty_runs = False
        self._dirty_events: set[str] = set()
        self._lock = threading.RLock()
        self._flush_lock = threading.Lock()

        self._scheduler = scheduler
        self._owns_scheduler = scheduler is None
        self._timer_active = False

        self.persistence_enabled = True
        self.flush_count = 0
        self.flush_failures = 0

    # lifecycle

    def init(self) -> EventStore:
        try:
            self._ensure_storage()
        except ConfigurationError as exc:
            self.persistence_enabled = False
            self.logger.error(
                "event_store_persistence_disabled",
                extra={"extra_fields": {"base_dir": str(self.base_dir), "reason": str(exc)}},
            )
            return self
        self._load_runs()
        return self

    def start(self) -> None:
        with self._lock:
            if self._timer_active:
                return
            if self._scheduler is None:
                self._scheduler = SchedulerService()
                self._owns_scheduler = True
            self._scheduler.add_interval(FLUSH_JOB_ID, self.flush_interval_seconds, self.flush)
            self._timer_active = True
        if self._owns_scheduler:
            self._scheduler.start()

    def stop(self) -> None:
        with self._lock:
            if self._timer_active and self._scheduler is not None:
                self._scheduler.remove_job(FLUSH_JOB_ID)
                if self._owns_scheduler:
                    self._scheduler.shutdown()
                self._timer_active = False
        self.flush()

    @property
    def timer_active(self) -> bool:
        return self._timer_active

    # runs

    def create_run(self, run: Run) -> Run:
        with self._lock:
            if run.id in self._runs:
                raise DuplicateRunError(run.id)
            stored = run.model_copy(deep=True)
            stored.event_count = len(self._events_for(run.id, create=True))
            self._runs[run.id] = stored
            self._dirty_runs = True
            created = stored.model_copy()
        self.flush()
        return created

    def update_run(self, run_id: str, updates: dict[str, Any] | None = None, **fields: Any) -> Run:
        changes = {**(updates or {}), **fields}
        changes.pop("id", None)
        with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                raise RunNotFoundError(run_id)
            try:
                merged = Run.model_validate({**run.model_dump(), **changes})
            except ValidationError as exc:
                raise validation_error_from_pydantic(exc) from exc
            self._runs[run_id] = merged
            self._dirty_runs = True
            return merged.model_copy()

    def get_run(self, run_id: str) -> Run | None:
        with self._lock:
            run = self._runs.get(run_id)
            return run.model_copy() if run is not None else None

    def list_runs(self, limit: int = 50, offset: int = 0) -> RunPage:
        with self._lock:
            runs = [run.model_copy() for run in self._runs.values()]
        runs.sort(key=lambda item: parse_iso(item.started_at_iso) or _EPOCH, reverse=True)
        start = max(0, offset)
        return RunPage(runs=runs[start : start + max(0, limit)], total=len(runs))

    # events

    def next_sequence(self, run_id: str) -> int:
        with self._lock:
            self._events_for(run_id, create=False)
            return self._last_sequence.get(run_id, 0) + 1

    def append_event(self, event: Event) -> Event:
        with self._lock:
            events = self._events_for(event.run_id, create=True)
            last = self._last_sequence.get(event.run_id)
            if last is not None and event.sequence <= last:
                raise EventSequenceError(event.run_id, event.sequence, last)
            stored = event.model_copy(deep=True)
            events.append(stored)
            self._last_sequence[event.run_id] = event.sequence
            self._retained_counts[event.run_id] = len(events)
            self._dirty_events.add(event.run_id)

            run = self._runs.get(event.run_id)
            if run is not None:
                run.event_count = len(events)
                self._dirty_runs = True
            return stored.model_copy(deep=True)

    def record(
        self,
        run_id: str,
        type: EventType,
        payload: dict[str, Any] | None = None,
        agent_id: str | None = None,
        parent_id: str | None = None,
        ts_iso: str | None = None,
    ) -> Event:
        """Build an event with the run's next sequence number and append it."""
        with self._lock:
            event = Event(
                id=str(uuid4()),
                run_id=run_id,
                ts_iso=ts_iso or _now_iso(),
                type=type,
                agent_id=agent_id,
                parent_id=parent_id,
                sequence=self.next_sequence(run_id),
                payload=payload or {},
            )
            return self.append_event(event)

    def get_events(self, run_id: str, filter: EventFilter | None = None) -> list[Event]:
        with self._lock:
            events = self._events_for(run_id, create=False)
            retained = [event.model_copy(deep=True) for event in events] if events else []
        if filter is None:
            return retained

        start = _filter_bound(filter.start_date, "start_date")
        end = _filter_bound(filter.end_date, "end_date")
        types = set(filter.event_types) if filter.event_types is not None else None

        matches: list[Event] = []
        for event in retained:
            if types is not None and event.type not in types:
                continue
            if filter.agent_id is not None and event.agent_id != filter.agent_id:
                continue
            if filter.parent_id is not None and event.parent_id != filter.parent_id:
                continue
            if start is not None or end is not None:
                ts = parse_iso(event.ts_iso)
                if ts is None:
                    continue
                if start is not None and ts < start:
                    continue
                if end is not None and ts > end:
                    continue
            matches.append(event)
        return matches

    def get_task_graph(self, run_id: str) -> FlatTaskGraph | None:
        return build_flat_graph(run_id, self.get_events(run_id))

    # workspace snapshots

    def store_workspace_snapshot(self, run_id: str, snapshot: WorkspaceSnapshot) -> None:
        with self._lock:
            self._snapshots[run_id] = snapshot
        if not self.persistence_enabled:
            return
        try:
            atomic_write_json(self._snapshot_path(run_id), snapshot.model_dump(mode="json"))
        except OSError as exc:
            self.logger.warning(
                "workspace_snapshot_write_failed",
                extra={"extra_fields": {"run_id": run_id, "error": str(exc)}},
            )

    def get_workspace_snapshot(self, run_id: str) -> WorkspaceSnapshot | None:
        with self._lock:
            cached = self._snapshots.get(run_id)
        if cached is not None:
            return cached
        if not self.persistence_enabled:
            return None
        payload = read_json(self._snapshot_path(run_id))
        if not isinstance(payload, dict):
            return None
        try:
            snapshot = WorkspaceSnapshot.model_validate(payload)
        except ValidationError:
            return None
        with self._lock:
            self._snapshots[run_id] = snapshot
        return snapshot

    # health

    def get_health(self) -> StoreHealth:
        with self._lock:
            run_count = len(self._runs)
            event_count = sum(self._retained_counts.values())
        ceiling = self.max_events_per_run * self.max_runs_in_memory
        status = "degraded" if event_count > ceiling else "healthy"
        return StoreHealth(status=status, event_count=event_count, run_count=run_count)

    # persistence

    def flush(self) -> bool:
        if not self.persistence_enabled:
            return False
        with self._flush_lock:
            with self._lock:
                runs_payload = (
                    {run_id: run.model_dump(mode="json") for run_id, run in self._runs.items()}
                    if self._dirty_runs
                    else None
                )
                self._dirty_runs = False
                event_lines = {
                    run_id: "".join(event.model_dump_json() + "\n" for event in self._events.get(run_id, ()))
                    for run_id in self._dirty_events
                }
                self._dirty_events.clear()

            runs_failed = False
            failed_runs: set[str] = set()
            if runs_payload is not None:
                try:
                    self._write(lambda: atomic_write_json(self.base_dir / RUNS_FILE, runs_payload))
                except PersistenceError as exc:
                    runs_failed = True
                    self._log_flush_failure(RUNS_FILE, exc)
            for run_id, text in event_lines.items():
                try:
                    self._write(lambda: atomic_write_text(self._events_path(run_id), text))
                except PersistenceError as exc:
                    failed_runs.add(run_id)
                    with log_context(run_id=run_id):
                        self._log_flush_failure(self._events_path(run_id).name, exc)

            if runs_failed or failed_runs:
                with self._lock:
                    self._dirty_runs = self._dirty_runs or runs_failed
                    self._dirty_events.update(failed_runs)
                self.flush_failures += 1
                return False

            self.flush_count += 1
            self._unload_idle_runs()
        if runs_payload is not None or event_lines:
            self.logger.debug(
                "event_store_flushed",
                extra={"extra_fields": {"runs": runs_payload is not None, "event_logs": len(event_lines)}},
            )
        return True

    def _write(self, action) -> None:
        try:
            action()
        except OSError as exc:
            raise PersistenceError(str(exc)) from exc

    def _log_flush_failure(self, name: str, exc: Exception) -> None:
        self.logger.warning("event_store_flush_failed", extra={"extra_fields": {"file": name, "error": str(exc)}})

    def _ensure_storage(self) -> None:
        if not ensure_writable_dir(self.base_dir):
            raise ConfigurationError(f"event store directory is not writable: {self.base_dir}")

    def _load_runs(self) -> None:
        payload = read_json(self.base_dir / RUNS_FILE)
        if not isinstance(payload, dict):
            return
        loaded: dict[str, Run] = {}
        for run_id, raw in payload.items():
            if not isinstance(raw, dict):
                continue
            try:
                loaded[str(run_id)] = Run.model_validate(raw)
            except ValidationError:
                continue
        with self._lock:
            self._runs.update(loaded)
            for run_id, run in loaded.items():
                self._retained_counts.setdefault(run_id, min(run.event_count, self.max_events_per_run))
        self.logger.info("event_store_loaded", extra={"extra_fields": {"runs": len(loaded)}})

    def _events_path(self, run_id: str) -> Path:
        return self.base_dir / f"events-{safe_name(run_id)}.jsonl"

    def _snapshot_path(self, run_id: str) -> Path:
        return self.base_dir / f"snapshot-{safe_name(run_id)}.json"

    def _events_for(self, run_id: str, create: bool) -> deque[Event] | None:
        events = self._events.get(run_id)
        if events is not None:
            self._events.move_to_end(run_id)
            return events
        loaded = self._load_events(run_id)
        if loaded is None and not create:
            return None
        events = deque(loaded or (), maxlen=self.max_events_per_run)
        self._events[run_id] = events
        self._retained_counts[run_id] = len(events)
        if events:
            self._last_sequence[run_id] = max(self._last_sequence.get(run_id, 0), events[-1].sequence)
        return events

    def _load_events(self, run_id: str) -> list[Event] | None:
        if not self.persistence_enabled:
            return None
        path = self._events_path(run_id)
        if not path.exists():
            return None
        events: list[Event] = []
        try:
            with path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        events.append(Event.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValueError):
                        continue
        except OSError as exc:
            self.logger.warning("event_log_read_failed", extra={"extra_fields": {"run_id": run_id, "error": str(exc)}})
            return None
        events.sort(key=lambda item: item.sequence)
        return events

    def _unload_idle_runs(self) -> None:
        with self._lock:
            while len(self._events) > self.max_runs_in_memory:
                idle = next((run_id for run_id in self._events if run_id not in self._dirty_events), None)
                if idle is None:
                    return
                self._events.pop(idle)
