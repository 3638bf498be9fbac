from .bootstrap import initialize_workspace, shutdown_workspace, workspace_status
from .diff import hunk_count, unified_diff
from .hooks import DEFAULT_PRIMITIVES, FileHooks
from .paths import BINARY_EXTENSIONS, IGNORED_SEGMENTS, should_track_path
from .schemas import (
    DiffSummary,
    FileDiff,
    FileOperation,
    TrackingStats,
    WorkspaceFile,
    WorkspaceSnapshot,
    WorkspaceStatus,
)
from .snapshot import capture_workspace_snapshot
from .tracker import WorkspaceTracker

__all__ = [
    "BINARY_EXTENSIONS",
    "DEFAULT_PRIMITIVES",
    "DiffSummary",
    "FileDiff",
    "FileHooks",
    "FileOperation",
    "IGNORED_SEGMENTS",
    "TrackingStats",
    "WorkspaceFile",
    "WorkspaceSnapshot",
    "WorkspaceStatus",
    "WorkspaceTracker",
    "capture_workspace_snapshot",
    "hunk_count",
    "initialize_workspace",
    "shutdown_workspace",
    "should_track_path",
    "unified_diff",
]
