from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

from mission_control.core.ops.files import atomic_write_json, read_json

logger = logging.getLogger("mission_control.safety")

SAFETY_FILE = "safety.json"

SAFE_MODE_BLOCKED_ACTIONS: tuple[str, ...] = (
    "file.write",
    "file.delete",
    "file.rename",
    "file.move",
    "terminal.exec",
    "terminal.spawn",
    "deploy",
    "exec",
    "process",
    "write",
    "edit",
)

SafetySystem = Literal["none", "safe_mode", "kill_switch"]


class SafetyState(BaseModel):
    safe_mode: bool = False
    kill_switch: bool = False
    safe_mode_activated_at_iso: str | None = None
    kill_switch_activated_at_iso: str | None = None
    safe_mode_activated_by: str | None = None
    kill_switch_activated_by: str | None = None


class SafetyStatus(SafetyState):
    safe_mode_forced: bool = False
    kill_switch_forced: bool = False


class SafetyDecision(BaseModel):
    blocked: bool
    reason: str | None = None
    safety_system: SafetySystem = "none"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def blocked_pattern(action: str) -> str | None:
    """Return the denylist entry ``action`` falls under in safe mode, if any."""
    if action in SAFE_MODE_BLOCKED_ACTIONS:
        return action
    for blocked in SAFE_MODE_BLOCKED_ACTIONS:
        if action.startswith(blocked + ".") or action.startswith(blocked + ":"):
            return blocked
    return None


class SafetyController:
    """Safe mode and kill switch, persisted to ``<state_dir>/safety.json``.

    Environment flags force a mode on; while forced it stays on whatever the
    stored state says. The kill switch blocks every action and turns safe mode
    on when activated.
    """

    def __init__(self, state_dir: str | Path, force_safe_mode: bool = False, force_kill_switch: bool = False) -> None:
        self.path = Path(state_dir).expanduser() / SAFETY_FILE
        self.force_safe_mode = force_safe_mode
        self.force_kill_switch = force_kill_switch
        self._lock = threading.Lock()
        self._state = self._load()
        if force_safe_mode and not self._state.safe_mode_activated_by:
            self._state.safe_mode_activated_at_iso = _now_iso()
            self._state.safe_mode_activated_by = "environment"
        if force_kill_switch and not self._state.kill_switch_activated_by:
            self._state.kill_switch_activated_at_iso = _now_iso()
            self._state.kill_switch_activated_by = "environment"
            logger.error("kill_switch_forced_by_environment")

    def _load(self) -> SafetyState:
        payload = read_json(self.path)
        if not isinstance(payload, dict):
            return SafetyState()
        try:
            return SafetyState.model_validate(payload)
        except ValidationError:
            return SafetyState()

    def _save(self) -> None:
        try:
            atomic_write_json(self.path, self._state.model_dump(mode="json"))
        except OSError as exc:
            logger.warning("safety_state_write_failed", extra={"extra_fields": {"error": str(exc)}})

    @property
    def safe_mode(self) -> bool:
        return self.force_safe_mode or self._state.safe_mode

    @property
    def kill_switch(self) -> bool:
        return self.force_kill_switch or self._state.kill_switch

    def status(self) -> SafetyStatus:
        with self._lock:
            return SafetyStatus(
                **{
                    **self._state.model_dump(),
                    "safe_mode": self.safe_mode,
                    "kill_switch": self.kill_switch,
                },
                safe_mode_forced=self.force_safe_mode,
                kill_switch_forced=self.force_kill_switch,
            )

    def enable_safe_mode(self, activated_by: str = "system") -> None:
        with self._lock:
            if self._state.safe_mode:
                return
            self._state.safe_mode = True
            self._state.safe_mode_activated_at_iso = _now_iso()
            self._state.safe_mode_activated_by = activated_by
            self._save()
        logger.warning("safe_mode_enabled", extra={"extra_fields": {"by": activated_by}})

    def disable_safe_mode(self, deactivated_by: str = "system") -> None:
        with self._lock:
            if not self._state.safe_mode:
                return
            self._state.safe_mode = False
            self._save()
        logger.warning(
            "safe_mode_disabled",
            extra={"extra_fields": {"by": deactivated_by, "still_forced": self.force_safe_mode}},
        )

    def toggle_safe_mode(self, toggled_by: str = "system") -> bool:
        if self._state.safe_mode:
            self.disable_safe_mode(toggled_by)
        else:
            self.enable_safe_mode(toggled_by)
        return self.safe_mode

    def activate_kill_switch(self, activated_by: str = "system") -> None:
        with self._lock:
            if self._state.kill_switch:
                return
            self._state.kill_switch = True
            self._state.kill_switch_activated_at_iso = _now_iso()
            self._state.kill_switch_activated_by = activated_by
            self._save()
        self.enable_safe_mode("kill-switch-cascade")
        logger.error("kill_switch_activated", extra={"extra_fields": {"by": activated_by}})

    def deactivate_kill_switch(self, deactivated_by: str = "system") -> None:
        with self._lock:
            if not self._state.kill_switch:
                return
            self._state.kill_switch = False
            self._save()
        logger.warning(
            "kill_switch_deactivated",
            extra={"extra_fields": {"by": deactivated_by, "still_forced": self.force_kill_switch}},
        )

    def reset(self, for_testing: bool = False) -> bool:
        if not for_testing:
            logger.warning("safety_reset_refused")
            return False
        with self._lock:
            self._state = SafetyState()
            self._save()
        logger.info("safety_reset")
        return True

    def check(self, action: str) -> SafetyDecision:
        if self.kill_switch:
            return SafetyDecision(
                blocked=True,
                reason="Kill switch activated. Emergency stop in effect.",
                safety_system="kill_switch",
            )
        if self.safe_mode:
            pattern = blocked_pattern(action)
            if pattern == action:
                return SafetyDecision(
                    blocked=True,
                    reason=f'Safe mode enabled. Action "{action}" is blocked.',
                    safety_system="safe_mode",
                )
            if pattern is not None:
                return SafetyDecision(
                    blocked=True,
                    reason=f'Safe mode enabled. Action "{action}" matches blocked pattern "{pattern}".',
                    safety_system="safe_mode",
                )
        return SafetyDecision(blocked=False)
