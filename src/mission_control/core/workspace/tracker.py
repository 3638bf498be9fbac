from __future__ import annotations

import json
import logging
import os
import threading
import time
from collections import OrderedDict, deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from uuid import uuid4

from pydantic import ValidationError

from mission_control.core.errors import ConfigurationError, PersistenceError, TrackingError
from mission_control.core.logging.context import log_context
from mission_control.core.ops.files import atomic_write_json, ensure_writable_dir, safe_name

from .diff import unified_diff
from .paths import should_track_path
from .schemas import FileDiff, FileOperation, FileOperationType, TrackingStats

MAX_TRACKED_OPERATIONS = 10_000
DIFF_RETENTION_DAYS = 30

OperationListener = Callable[[FileOperation, "FileDiff | None"], None]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _read_existing_text(path: Path) -> str | None:
    if not path.is_file():
        return None
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError:
        return None


class WorkspaceTracker:
    """Records file reads and writes made by agent code, with diffs for edits.

    Nothing here ever raises into the caller's file operation: failures are
    logged and counted in ``tracking_failures``. When ``enabled`` is false every
    ``track_*`` call returns before touching the filesystem.
    """

    def __init__(
        self,
        diffs_dir: str | Path,
        enabled: bool = False,
        session_id: str | None = None,
        max_operations: int = MAX_TRACKED_OPERATIONS,
        retention_days: int = DIFF_RETENTION_DAYS,
        on_operation: OperationListener | None = None,
    ) -> None:
        self.diffs_dir = Path(diffs_dir).expanduser()
        self.enabled = enabled
        self.session_id = session_id
        self.max_operations = max(1, max_operations)
        self.retention_days = retention_days
        self.on_operation = on_operation
        self.logger = logging.getLogger("mission_control.workspace")

        self._operations: deque[FileOperation] = deque()
        self._by_id: dict[str, FileOperation] = {}
        self._diffs: OrderedDict[str, FileDiff] = OrderedDict()
        self._lock = threading.RLock()
        self._initialized = False
        self.persist_diffs = True

        self.read_count = 0
        self.write_count = 0
        self.diff_count = 0
        self.tracking_failures = 0

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        if self._initialized:
            return self.enabled
        if not self.enabled:
            self.logger.info("workspace_tracking_disabled")
            return False
        try:
            if not ensure_writable_dir(self.diffs_dir):
                raise ConfigurationError(f"diff directory is not writable: {self.diffs_dir}")
        except ConfigurationError as exc:
            self.enabled = False
            self.logger.error("workspace_tracking_unavailable", extra={"extra_fields": {"reason": str(exc)}})
            return False
        self._initialized = True
        self.logger.info("workspace_tracking_enabled", extra={"extra_fields": {"diffs_dir": str(self.diffs_dir)}})
        return True

    # tracking

    def track_read(self, path: str | os.PathLike[str]) -> FileOperation | None:
        if not self.enabled or not should_track_path(path):
            return None
        try:
            resolved = Path(path).resolve()
            if resolved.is_dir():
                raise TrackingError(f"not a file: {resolved}")
            size = resolved.stat().st_size if resolved.exists() else None
            operation = FileOperation(
                id=str(uuid4()),
                type="read",
                path=str(resolved),
                ts_iso=_now_iso(),
                session_id=self.session_id,
                size=size,
            )
            with self._lock:
                self._remember(operation)
                self.read_count += 1
        except Exception as exc:
            self._failed("read", path, exc)
            return None
        self.logger.debug("file_read_tracked", extra={"extra_fields": {"path": operation.path}})
        self._notify(operation, None)
        return operation

    def track_write(self, path: str | os.PathLike[str], content: str | bytes) -> FileOperation | None:
        """Record a write before it happens, diffing against the file on disk.

        No diff is produced for a new file, for unchanged content, or when
        either side is not valid UTF-8 text.
        """
        if not self.enabled or not should_track_path(path):
            return None
        try:
            resolved = Path(path).resolve()
            if resolved.is_dir():
                raise TrackingError(f"not a file: {resolved}")
            if isinstance(content, bytes):
                size = len(content)
                try:
                    after: str | None = content.decode("utf-8")
                except UnicodeDecodeError:
                    after = None
            else:
                after = content
                size = len(content.encode("utf-8"))

            before = _read_existing_text(resolved)
            operation = FileOperation(
                id=str(uuid4()),
                type="write",
                path=str(resolved),
                ts_iso=_now_iso(),
                session_id=self.session_id,
                size=size,
            )
            diff: FileDiff | None = None
            if before is not None and after is not None and before != after:
                diff = FileDiff(
                    id=str(uuid4()),
                    file_id=operation.id,
                    path=operation.path,
                    before=before,
                    after=after,
                    unified_diff=unified_diff(before, after, operation.path),
                    ts_iso=operation.ts_iso,
                )
                operation.has_diff = True
                operation.diff_id = diff.id

            with self._lock:
                self._remember(operation)
                self.write_count += 1
                if diff is not None:
                    self._cache_diff(diff)
                    self.diff_count += 1
        except Exception as exc:
            self._failed("write", path, exc)
            return None

        if diff is not None:
            self._persist_diff(diff)
        self.logger.debug(
            "file_write_tracked",
            extra={"extra_fields": {"path": operation.path, "has_diff": operation.has_diff}},
        )
        self._notify(operation, diff)
        return operation

    # queries

    def get_tracked_files(
        self,
        type: FileOperationType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[FileOperation]:
        with self._lock:
            operations = [op for op in reversed(self._operations) if type is None or op.type == type]
        start = max(0, offset)
        return operations[start : start + max(0, limit)]

    def get_operation(self, operation_id: str) -> FileOperation | None:
        with self._lock:
            return self._by_id.get(operation_id)

    def get_diff(self, diff_id: str) -> FileDiff | None:
        with self._lock:
            cached = self._diffs.get(diff_id)
        if cached is not None:
            return cached
        if safe_name(diff_id) != diff_id:
            return None
        path = self.diffs_dir / f"{diff_id}.json"
        if not path.exists():
            return None
        try:
            diff = FileDiff.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            with log_context(diff_id=diff_id):
                self.logger.warning("diff_load_failed", extra={"extra_fields": {"error": str(exc)}})
            return None
        with self._lock:
            self._cache_diff(diff)
        return diff

    def get_diffs_for_operation(self, file_id: str) -> list[FileDiff]:
        with self._lock:
            matches = [diff for diff in self._diffs.values() if diff.file_id == file_id]
        if not matches:
            operation = self.get_operation(file_id)
            if operation is not None and operation.diff_id:
                loaded = self.get_diff(operation.diff_id)
                matches = [loaded] if loaded is not None else []
        return sorted(matches, key=lambda item: item.ts_iso, reverse=True)

    def get_stats(self) -> TrackingStats:
        with self._lock:
            return TrackingStats(
                read_count=self.read_count,
                write_count=self.write_count,
                diff_count=self.diff_count,
                total_tracked=len(self._operations),
                tracking_failures=self.tracking_failures,
                enabled=self.enabled,
            )

    # maintenance

    def clear(self) -> None:
        with self._lock:
            self._operations.clear()
            self._by_id.clear()
            self._diffs.clear()
            self.read_count = 0
            self.write_count = 0
            self.diff_count = 0
            self.tracking_failures = 0

    def cleanup_old_diffs(self, retention_days: int | None = None) -> int:
        days = self.retention_days if retention_days is None else retention_days
        if days <= 0 or not self.diffs_dir.exists():
            return 0
        cutoff = time.time() - days * 86400
        removed = 0
        for path in self.diffs_dir.glob("*.json"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
                    with self._lock:
                        self._diffs.pop(path.stem, None)
            except OSError:
                continue
        if removed:
            self.logger.info("old_diffs_removed", extra={"extra_fields": {"removed": removed, "retention_days": days}})
        return removed

    # internals

    def _remember(self, operation: FileOperation) -> None:
        if len(self._operations) >= self.max_operations:
            evicted = self._operations.popleft()
            self._by_id.pop(evicted.id, None)
        self._operations.append(operation)
        self._by_id[operation.id] = operation

    def _cache_diff(self, diff: FileDiff) -> None:
        self._diffs[diff.id] = diff
        self._diffs.move_to_end(diff.id)
        while len(self._diffs) > self.max_operations:
            self._diffs.popitem(last=False)

    def _persist_diff(self, diff: FileDiff) -> None:
        if not self.persist_diffs:
            return
        try:
            atomic_write_json(self.diffs_dir / f"{diff.id}.json", diff.model_dump(mode="json"))
        except OSError as exc:
            error = PersistenceError(f"could not write diff {diff.id}: {exc}")
            with self._lock:
                self.tracking_failures += 1
            with log_context(diff_id=diff.id):
                self.logger.warning("diff_write_failed", extra={"extra_fields": {"path": diff.path, "error": str(error)}})
            return
        with log_context(diff_id=diff.id):
            self.logger.debug("diff_captured", extra={"extra_fields": {"path": diff.path}})

    def _notify(self, operation: FileOperation, diff: FileDiff | None) -> None:
        if self.on_operation is None:
            return
        try:
            self.on_operation(operation, diff)
        except Exception as exc:
            self._failed("listener", operation.path, exc)

    def _failed(self, action: str, path: object, exc: Exception) -> None:
        with self._lock:
            self.tracking_failures += 1
        self.logger.debug(
            "tracking_failed",
            extra={"extra_fields": {"action": action, "path": str(path), "error": str(exc), "error_type": type(exc).__name__}},
        )
