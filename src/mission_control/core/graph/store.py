from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from mission_control.core.errors import PersistenceError
from mission_control.core.events.store import parse_iso
from mission_control.core.ops.files import atomic_write_json, safe_name

from .schemas import GraphStoreStats, StoredGraphInfo, TaskGraph

logger = logging.getLogger("mission_control.graph")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class GraphStore:
    """One JSON document per run under ``base_dir``.

    A cache only: any graph here can be rebuilt from the run's events, so
    unreadable documents are treated as missing.
    """

    def __init__(self, base_dir: str | Path, retention_days: int = 30, max_graphs: int = 1000) -> None:
        self.base_dir = Path(base_dir).expanduser()
        self.retention_days = max(0, retention_days)
        self.max_graphs = max(0, max_graphs)

    def path_for(self, run_id: str) -> Path:
        return self.base_dir / f"{safe_name(run_id)}.json"

    def save(self, run_id: str, graph: TaskGraph) -> None:
        try:
            atomic_write_json(self.path_for(run_id), graph.to_storage())
        except OSError as exc:
            raise PersistenceError(f"could not save graph for {run_id}: {exc}") from exc

    def load(self, run_id: str) -> TaskGraph | None:
        path = self.path_for(run_id)
        if not path.exists():
            return None
        try:
            return TaskGraph.from_storage(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning("graph_cache_unreadable", extra={"extra_fields": {"run_id": run_id, "error": str(exc)}})
            return None

    def exists(self, run_id: str) -> bool:
        return self.path_for(run_id).exists()

    def delete(self, run_id: str) -> bool:
        path = self.path_for(run_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def list(self) -> list[StoredGraphInfo]:
        if not self.base_dir.exists():
            return []
        entries: list[StoredGraphInfo] = []
        for path in self.base_dir.glob("*.json"):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
                entries.append(
                    StoredGraphInfo(
                        run_id=str(payload.get("run_id") or path.stem),
                        created_at_iso=str(payload["created_at_iso"]),
                        updated_at_iso=str(payload["updated_at_iso"]),
                    )
                )
            except (OSError, json.JSONDecodeError, KeyError, AttributeError):
                continue
        entries.sort(key=lambda item: parse_iso(item.updated_at_iso) or _EPOCH, reverse=True)
        return entries

    def _saved_at(self, run_id: str) -> float | None:
        try:
            return self.path_for(run_id).stat().st_mtime
        except OSError:
            return None

    def cleanup(self) -> int:
        """Drop documents not rewritten within ``retention_days``, then cap the count.

        Age is the file's write time, not the graph's own timestamps, which
        come from the events and can be arbitrarily old.
        """
        entries = self.list()
        deleted = 0
        kept = entries
        if self.retention_days > 0:
            cutoff = (datetime.now(timezone.utc) - timedelta(days=self.retention_days)).timestamp()
            kept = []
            for entry in entries:
                saved_at = self._saved_at(entry.run_id)
                if saved_at is not None and saved_at < cutoff:
                    deleted += int(self.delete(entry.run_id))
                else:
                    kept.append(entry)
        if self.max_graphs and len(kept) > self.max_graphs:
            for entry in kept[self.max_graphs :]:
                deleted += int(self.delete(entry.run_id))
        if deleted:
            logger.info("graph_cache_cleaned", extra={"extra_fields": {"deleted": deleted}})
        return deleted

    def stats(self) -> GraphStoreStats:
        if not self.base_dir.exists():
            return GraphStoreStats()
        count = 0
        total = 0
        oldest: float | None = None
        newest: float | None = None
        for path in self.base_dir.glob("*.json"):
            try:
                stat = path.stat()
            except OSError:
                continue
            count += 1
            total += stat.st_size
            oldest = stat.st_mtime if oldest is None else min(oldest, stat.st_mtime)
            newest = stat.st_mtime if newest is None else max(newest, stat.st_mtime)

        def iso(ts: float | None) -> str | None:
            return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat() if ts is not None else None

        return GraphStoreStats(total_graphs=count, total_size_bytes=total, oldest_graph_iso=iso(oldest), newest_graph_iso=iso(newest))
