"""Environment-driven settings for mission control."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

ENV_PREFIX = "MISSION_CONTROL_"
_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.strip().casefold() in _TRUTHY


def env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def default_state_dir() -> Path:
    configured = _env("STATE_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".mission_control"


class Settings(BaseModel):
    state_dir: Path = Field(default_factory=default_state_dir)
    enabled: bool = False
    trace_logging: bool = True
    workspace_tracking: bool = False
    safe_mode: bool = False
    kill_switch: bool = False
    test_mode: bool = False

    max_events_per_run: int = 10_000
    max_runs_in_memory: int = 100
    flush_interval_seconds: int = 30

    max_tracked_operations: int = 10_000
    diff_retention_days: int = 30
    session_id: str | None = None

    graph_retention_days: int = 30
    max_graphs: int = 1000
    graph_auto_layout: bool = True
    graph_include_event_nodes: bool = False

    redact_file_contents: bool = False

    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: Path | None = None
    log_max_bytes: int = 5_000_000
    log_backup_count: int = 5

    @property
    def events_dir(self) -> Path:
        return self.state_dir / "events"

    @property
    def diffs_dir(self) -> Path:
        return self.state_dir / "diffs"

    @property
    def graphs_dir(self) -> Path:
        return self.state_dir / "graphs"

    @property
    def logs_dir(self) -> Path:
        return self.log_dir or self.state_dir / "logs"


def load_settings(state_dir: str | Path | None = None) -> Settings:
    """Build settings from ``MISSION_CONTROL_*`` environment variables."""
    return Settings(
        state_dir=Path(state_dir).expanduser() if state_dir is not None else default_state_dir(),
        enabled=env_flag("ENABLED", False),
        trace_logging=env_flag("TRACE_LOGGING", True),
        workspace_tracking=env_flag("WORKSPACE_TRACKING", False),
        safe_mode=env_flag("SAFE_MODE", False),
        kill_switch=env_flag("KILL_SWITCH", False),
        test_mode=env_flag("TEST_MODE", False),
        max_events_per_run=max(1, env_int("MAX_EVENTS_PER_RUN", 10_000)),
        max_runs_in_memory=max(1, env_int("MAX_RUNS_IN_MEMORY", 100)),
        flush_interval_seconds=max(1, env_int("FLUSH_INTERVAL_SECONDS", 30)),
        max_tracked_operations=max(1, env_int("MAX_TRACKED_OPERATIONS", 10_000)),
        diff_retention_days=env_int("DIFF_RETENTION_DAYS", 30),
        session_id=_env("SESSION_ID") or None,
        graph_retention_days=env_int("GRAPH_RETENTION_DAYS", 30),
        max_graphs=env_int("MAX_GRAPHS", 1000),
        graph_auto_layout=env_flag("GRAPH_AUTO_LAYOUT", True),
        graph_include_event_nodes=env_flag("GRAPH_INCLUDE_EVENT_NODES", False),
        redact_file_contents=env_flag("REDACT_FILE_CONTENTS", False),
        log_level=(_env("LOG_LEVEL") or "INFO").strip().upper(),
        log_to_file=env_flag("LOG_TO_FILE", True),
        log_dir=Path(_env("LOG_DIR")).expanduser() if _env("LOG_DIR") else None,
        log_max_bytes=max(1, env_int("LOG_MAX_BYTES", 5_000_000)),
        log_backup_count=max(0, env_int("LOG_BACKUP_COUNT", 5)),
    )
