"""Identifiers attached to every log line emitted inside a ``log_context`` block."""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from contextvars import ContextVar
from typing import Iterator

CONTEXT_FIELDS = ("run_id", "session_id", "event_id", "diff_id", "job_id")

_vars: dict[str, ContextVar[str | None]] = {name: ContextVar(name, default=None) for name in CONTEXT_FIELDS}


@contextmanager
def _bound(var: ContextVar[str | None], value: str) -> Iterator[None]:
    token = var.set(value)
    try:
        yield
    finally:
        var.reset(token)


@contextmanager
def log_context(**fields: str | None) -> Iterator[None]:
    """Bind ``fields`` for the duration of the block; ``None`` keeps the outer value."""
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"unknown log context fields: {', '.join(sorted(unknown))}")
    with ExitStack() as stack:
        for name, value in fields.items():
            if value is not None:
                stack.enter_context(_bound(_vars[name], value))
        yield


def get_log_context() -> dict[str, str]:
    values = ((name, _vars[name].get()) for name in CONTEXT_FIELDS)
    return {name: value for name, value in values if value is not None}
