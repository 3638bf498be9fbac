from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError


class MissionControlError(RuntimeError):
    """Base error for mission control components."""

    code = "mission_control_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class NotFoundError(MissionControlError):
    code = "not_found"

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"kind": self.kind, "id": self.identifier})
        return payload


class RunNotFoundError(NotFoundError):
    def __init__(self, run_id: str) -> None:
        super().__init__("run", run_id)


class DiffNotFoundError(NotFoundError):
    def __init__(self, diff_id: str) -> None:
        super().__init__("diff", diff_id)


class QueryValidationError(MissionControlError):
    code = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.detail = message

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload


class DuplicateRunError(MissionControlError):
    code = "duplicate_run"

    def __init__(self, run_id: str) -> None:
        super().__init__(f"run already exists: {run_id}")
        self.run_id = run_id


class EventSequenceError(QueryValidationError):
    def __init__(self, run_id: str, sequence: int, last_sequence: int) -> None:
        super().__init__(
            "sequence",
            f"sequence {sequence} for run {run_id} must be greater than {last_sequence}",
        )
        self.run_id = run_id
        self.sequence = sequence
        self.last_sequence = last_sequence


class TrackingError(MissionControlError):
    """Raised inside the workspace tracker; never escapes a tracked file operation."""

    code = "tracking_failure"


class PersistenceError(MissionControlError):
    """Raised when a flush or diff write cannot reach storage."""

    code = "persistence_failure"


class ConfigurationError(MissionControlError):
    """Raised once at initialization when a subsystem's prerequisites are missing."""

    code = "configuration_error"


def validation_error_from_pydantic(exc: PydanticValidationError, default_field: str = "value") -> QueryValidationError:
    errors = exc.errors()
    if not errors:
        return QueryValidationError(default_field, str(exc))
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or default_field
    return QueryValidationError(location, str(first.get("msg", "invalid value")))
