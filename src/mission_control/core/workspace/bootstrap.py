from __future__ import annotations

import logging

from .hooks import FileHooks
from .schemas import WorkspaceStatus
from .tracker import WorkspaceTracker

logger = logging.getLogger("mission_control.workspace")


def initialize_workspace(tracker: WorkspaceTracker, hooks: FileHooks) -> bool:
    """Startup sequence for tracking: prepare storage, install hooks, prune old diffs.

    Safe to call more than once; returns whether tracking is active.
    """
    if tracker.initialized and hooks.installed:
        return True
    if not tracker.initialize():
        return False
    hooks.install()
    removed = tracker.cleanup_old_diffs()
    logger.info(
        "workspace_initialized",
        extra={"extra_fields": {"hooks_installed": hooks.installed, "diffs_removed": removed}},
    )
    return True


def shutdown_workspace(hooks: FileHooks) -> None:
    hooks.uninstall()


def workspace_status(tracker: WorkspaceTracker, hooks: FileHooks) -> WorkspaceStatus:
    return WorkspaceStatus(
        initialized=tracker.initialized,
        enabled=tracker.enabled,
        hooks_installed=hooks.installed,
    )
