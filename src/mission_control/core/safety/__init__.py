from .modes import (
    SAFE_MODE_BLOCKED_ACTIONS,
    SafetyController,
    SafetyDecision,
    SafetyState,
    SafetyStatus,
    blocked_pattern,
)

__all__ = [
    "SAFE_MODE_BLOCKED_ACTIONS",
    "SafetyController",
    "SafetyDecision",
    "SafetyState",
    "SafetyStatus",
    "blocked_pattern",
]
