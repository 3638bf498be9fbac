from .errors import (
    ConfigurationError,
    DiffNotFoundError,
    DuplicateRunError,
    EventSequenceError,
    MissionControlError,
    NotFoundError,
    PersistenceError,
    QueryValidationError,
    RunNotFoundError,
    TrackingError,
    validation_error_from_pydantic,
)

__all__ = [
    "MissionControlError",
    "NotFoundError",
    "RunNotFoundError",
    "DiffNotFoundError",
    "QueryValidationError",
    "DuplicateRunError",
    "EventSequenceError",
    "TrackingError",
    "PersistenceError",
    "ConfigurationError",
    "validation_error_from_pydantic",
]
