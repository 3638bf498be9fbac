"""Where each well-known value lives in an event payload.

Producers disagree on key names (``tool`` vs ``name`` vs ``function``), so every
lookup goes through the precedence lists below. The first key holding a truthy
value wins; ``None`` means no key matched.
"""

from __future__ import annotations

from typing import Any, Mapping

TOOL_KEYS = ("tool", "name", "function")
ARGUMENT_KEYS = ("arguments", "args", "parameters")
PROMPT_KEYS = ("text", "content", "prompt")
SESSION_KEYS = ("sessionKey", "session_key", "session")
DESCRIPTION_KEYS = ("description", "text")
TITLE_KEYS = ("name", "title")
LABEL_KEYS = ("name", "tool")
AGENT_KEYS = ("agentId", "agent_id")


def first_present(payload: Mapping[str, Any], keys: tuple[str, ...]) -> Any | None:
    for key in keys:
        value = payload.get(key)
        if value:
            return value
    return None


def _text(payload: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    value = first_present(payload, keys)
    return str(value) if value is not None else None


def tool_name(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, TOOL_KEYS)


def tool_arguments(payload: Mapping[str, Any]) -> dict[str, Any] | None:
    value = first_present(payload, ARGUMENT_KEYS)
    if isinstance(value, Mapping):
        return dict(value)
    if value is not None:
        return {"value": value}
    return None


def prompt_text(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, PROMPT_KEYS)


def session_key(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, SESSION_KEYS)


def description(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, DESCRIPTION_KEYS)


def title(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, TITLE_KEYS)


def node_label(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, LABEL_KEYS)


def agent_id(payload: Mapping[str, Any]) -> str | None:
    return _text(payload, AGENT_KEYS)
