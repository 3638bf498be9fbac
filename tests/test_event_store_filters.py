from __future__ import annotations

import pytest

from mission_control.core.errors import QueryValidationError
from mission_control.core.events import Event, EventFilter, EventStore


def _seed(store: EventStore) -> None:
    rows = [
        ("e1", "run.start", None, None, "2026-01-01T10:00:00+00:00"),
        ("e2", "tool.invoke", "main", "e1", "2026-01-01T10:05:00+00:00"),
        ("e3", "tool.result", "main", "e2", "2026-01-01T10:06:00+00:00"),
        ("e4", "tool.invoke", "helper", "e1", "2026-01-01T11:00:00+00:00"),
        ("e5", "run.end", None, None, "2026-01-01T12:00:00Z"),
    ]
    for sequence, (event_id, event_type, agent_id, parent_id, ts_iso) in enumerate(rows, start=1):
        store.append_event(
            Event(
                id=event_id,
                run_id="r1",
                ts_iso=ts_iso,
                type=event_type,
                agent_id=agent_id,
                parent_id=parent_id,
                sequence=sequence,
            )
        )


def _ids(events: list[Event]) -> list[str]:
    return [event.id for event in events]


def test_empty_filter_returns_all_retained_events(tmp_path) -> None:
    store = EventStore(tmp_path)
    _seed(store)

    assert _ids(store.get_events("r1")) == ["e1", "e2", "e3", "e4", "e5"]
    assert _ids(store.get_events("r1", EventFilter())) == ["e1", "e2", "e3", "e4", "e5"]


def test_filters_compose_as_logical_and(tmp_path) -> None:
    store = EventStore(tmp_path)
    _seed(store)

    by_type = EventFilter(event_types=["tool.invoke"])
    by_type_and_agent = EventFilter(event_types=["tool.invoke"], agent_id="main")
    by_parent = EventFilter(parent_id="e1", agent_id="helper")

    assert _ids(store.get_events("r1", by_type)) == ["e2", "e4"]
    assert _ids(store.get_events("r1", by_type_and_agent)) == ["e2"]
    assert _ids(store.get_events("r1", by_parent)) == ["e4"]


def test_timestamp_range_is_inclusive(tmp_path) -> None:
    store = EventStore(tmp_path)
    _seed(store)

    window = EventFilter(start_date="2026-01-01T10:05:00Z", end_date="2026-01-01T11:00:00+00:00")

    assert _ids(store.get_events("r1", window)) == ["e2", "e3", "e4"]


def test_invalid_filter_date_names_the_field(tmp_path) -> None:
    store = EventStore(tmp_path)
    _seed(store)

    with pytest.raises(QueryValidationError) as excinfo:
        store.get_events("r1", EventFilter(end_date="yesterday"))

    assert excinfo.value.field == "end_date"


def test_unknown_run_has_no_events(tmp_path) -> None:
    store = EventStore(tmp_path)

    assert store.get_events("missing") == []
    assert store.get_task_graph("missing") is None
