from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from mission_control.core.logging.context import log_context

from .files import atomic_write_json, read_json

if TYPE_CHECKING:
    from mission_control.core.runtime.context import MissionControl

logger = logging.getLogger("mission_control.ops")

MAINTENANCE_STATUS_FILE = "maintenance.json"
RETENTION_JOB_ID = "retention_sweep"
RETENTION_SWEEP_HOUR = 3
RETENTION_SWEEP_MINUTE = 30


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _default_job_status() -> dict[str, Any]:
    return {
        "last_run_iso": None,
        "ok": None,
        "summary": {},
        "correlation_id": None,
    }


def default_maintenance_status() -> dict[str, dict[str, Any]]:
    return {RETENTION_JOB_ID: _default_job_status()}


def load_maintenance_status(state_dir: str | Path) -> dict[str, dict[str, Any]]:
    status = default_maintenance_status()
    loaded = read_json(Path(state_dir).expanduser() / MAINTENANCE_STATUS_FILE)
    if not isinstance(loaded, dict):
        return status
    for key in status:
        value = loaded.get(key)
        if isinstance(value, dict):
            status[key] = {**status[key], **value}
    return status


def save_maintenance_status(state_dir: str | Path, status: dict[str, dict[str, Any]]) -> None:
    atomic_write_json(Path(state_dir).expanduser() / MAINTENANCE_STATUS_FILE, status)


def run_retention_sweep(control: MissionControl) -> dict[str, Any]:
    """Delete diffs and cached graphs past retention and record the outcome."""
    correlation_id = str(uuid4())
    state_dir = control.settings.state_dir
    summary: dict[str, Any] = {"diffs_removed": 0, "graphs_removed": 0}
    ok = True
    with log_context(job_id=RETENTION_JOB_ID):
        try:
            summary["diffs_removed"] = control.tracker.cleanup_old_diffs()
            summary["graphs_removed"] = control.graph_store.cleanup()
        except OSError as exc:
            ok = False
            summary["error"] = str(exc)
            logger.warning("retention_sweep_failed", extra={"extra_fields": {"error": str(exc)}})

        status = load_maintenance_status(state_dir)
        status[RETENTION_JOB_ID] = {
            "last_run_iso": _now_iso(),
            "ok": ok,
            "summary": summary,
            "correlation_id": correlation_id,
        }
        try:
            save_maintenance_status(state_dir, status)
        except OSError as exc:
            logger.warning("maintenance_status_write_failed", extra={"extra_fields": {"error": str(exc)}})
        logger.info("retention_sweep_finished", extra={"extra_fields": {"ok": ok, **summary}})
    return {"ok": ok, "summary": summary, "correlation_id": correlation_id}
