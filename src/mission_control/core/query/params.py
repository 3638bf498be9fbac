from __future__ import annotations

from typing import Any, Mapping, Sequence

from pydantic import BaseModel

from mission_control.core.errors import QueryValidationError
from mission_control.core.events.schemas import EVENT_TYPES, EventFilter
from mission_control.core.events.store import parse_iso

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
DEFAULT_FILES_PAGE_SIZE = 100
MAX_FILES_PAGE_SIZE = 1000

ParamValue = str | Sequence[str] | int | None


class Page(BaseModel):
    limit: int
    offset: int


def _single(value: ParamValue) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _string(params: Mapping[str, ParamValue], key: str) -> str | None:
    value = _single(params.get(key))
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(params: Mapping[str, ParamValue], key: str) -> list[str] | None:
    value = params.get(key)
    if value is None:
        return None
    raw = [value] if isinstance(value, str) else list(value)  # type: ignore[arg-type]
    items = [item.strip() for entry in raw for item in str(entry).split(",") if item.strip()]
    return items or None


def parse_int(value: Any, field: str, default: int, minimum: int = 0) -> int:
    value = _single(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise QueryValidationError(field, "must be an integer")
    try:
        parsed = int(str(value).strip()) if not isinstance(value, int) else value
    except ValueError:
        raise QueryValidationError(field, f"must be an integer, got {value!r}") from None
    if parsed < minimum:
        raise QueryValidationError(field, f"must be >= {minimum}")
    return parsed


def parse_page(
    limit: Any = None,
    offset: Any = None,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
) -> Page:
    """Validate paging input; a limit above ``max_limit`` is clamped, not rejected."""
    parsed_limit = parse_int(limit, "limit", default_limit, minimum=0)
    parsed_offset = parse_int(offset, "offset", 0, minimum=0)
    return Page(limit=min(parsed_limit, max_limit), offset=parsed_offset)


def build_event_filter(params: Mapping[str, ParamValue] | None) -> EventFilter:
    params = params or {}
    event_types = _string_list(params, "event_type")
    if event_types is not None:
        unknown = [item for item in event_types if item not in EVENT_TYPES]
        if unknown:
            raise QueryValidationError("event_type", f"unknown event type(s): {', '.join(unknown)}")

    start_date = _string(params, "start_date")
    end_date = _string(params, "end_date")
    for field, value in (("start_date", start_date), ("end_date", end_date)):
        if value is not None and parse_iso(value) is None:
            raise QueryValidationError(field, f"not an ISO-8601 timestamp: {value!r}")

    return EventFilter(
        event_types=event_types,
        agent_id=_string(params, "agent_id"),
        start_date=start_date,
        end_date=end_date,
        parent_id=_string(params, "parent_id"),
    )
