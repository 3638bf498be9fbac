from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Iterable, Sequence

if TYPE_CHECKING:
    from mission_control.core.events.schemas import Event
    from mission_control.core.graph.schemas import TaskGraph
    from mission_control.core.workspace.schemas import WorkspaceSnapshot

REDACTED_TEXT = "[REDACTED]"
VISIBLE_PREFIX_CHARS = 4
VISIBLE_PREFIX_MIN_MATCH = 13

SENSITIVE_KEY_PARTS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "private_key",
    "credential",
)

DEFAULT_REDACT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""api[_-]?key['"]?\s*[:=]\s*['"]?[a-zA-Z0-9_\-]{16,}""", re.IGNORECASE),
    re.compile(r"""password['"]?\s*[:=]\s*['"]?[^\s&'"]+""", re.IGNORECASE),
    re.compile(r"""token['"]?\s*[:=]\s*['"]?[a-zA-Z0-9_\-]{16,}""", re.IGNORECASE),
    re.compile(r"""secret['"]?\s*[:=]\s*['"]?[^\s&'"]+""", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9._\-]{16,}", re.IGNORECASE),
    re.compile(r"-----BEGIN (RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----"),
)


def is_sensitive_key(key: object) -> bool:
    lowered = str(key).casefold()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def _mask(match: re.Match[str]) -> str:
    text = match.group(0)
    if len(text) >= VISIBLE_PREFIX_MIN_MATCH:
        return f"{text[:VISIBLE_PREFIX_CHARS]}...{REDACTED_TEXT}"
    return REDACTED_TEXT


class Redactor:
    """Replaces secrets in structured payloads and free text with ``[REDACTED]``.

    Keys that look sensitive lose their whole value. Remaining strings are scanned
    with ``patterns``; long matches keep a four character prefix so operators can
    still tell which credential leaked. File bodies are only scanned when
    ``redact_file_contents`` is set, since they are not key/value data.
    """

    def __init__(
        self,
        patterns: Sequence[re.Pattern[str] | str] | None = None,
        redact_file_contents: bool = False,
    ) -> None:
        source = DEFAULT_REDACT_PATTERNS if patterns is None else patterns
        self.patterns: list[re.Pattern[str]] = [
            item if isinstance(item, re.Pattern) else re.compile(item) for item in source
        ]
        self.redact_file_contents = redact_file_contents

    def redact_string(self, text: str) -> str:
        result = text
        for pattern in self.patterns:
            result = pattern.sub(_mask, result)
        return result

    def redact_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.redact_string(value)
        if isinstance(value, dict):
            redacted: dict[Any, Any] = {}
            for key, item in value.items():
                redacted[key] = REDACTED_TEXT if is_sensitive_key(key) else self.redact_value(item)
            return redacted
        if isinstance(value, (list, tuple)):
            return [self.redact_value(item) for item in value]
        return value

    def redact_event(self, event: Event) -> Event:
        return event.model_copy(update={"payload": self.redact_value(event.payload)})

    def redact_events(self, events: Iterable[Event]) -> list[Event]:
        return [self.redact_event(event) for event in events]

    def redact_workspace_snapshot(
        self,
        snapshot: WorkspaceSnapshot,
        redact_contents: bool | None = None,
    ) -> WorkspaceSnapshot:
        enabled = self.redact_file_contents if redact_contents is None else redact_contents
        if not enabled:
            return snapshot
        files = [
            item.model_copy(update={"content": self.redact_string(item.content)})
            if item.content is not None
            else item
            for item in snapshot.files
        ]
        return snapshot.model_copy(update={"files": files})

    def redact_task_graph(self, graph: TaskGraph) -> TaskGraph:
        nodes = {}
        for node_id, node in graph.nodes.items():
            update: dict[str, Any] = {
                "name": self.redact_string(node.name),
                "metadata": self.redact_value(node.metadata),
            }
            if node.type == "goal":
                update["prompt"] = self.redact_string(node.prompt)
            elif node.type in ("task", "step"):
                update["description"] = self.redact_string(node.description)
            elif node.type == "tool_call":
                update["tool"] = self.redact_string(node.tool)
                update["arguments"] = self.redact_value(node.arguments)
                update["result"] = self.redact_value(node.result)
                if node.error is not None:
                    update["error"] = self.redact_string(node.error)
            elif node.type == "event":
                update["event_type"] = self.redact_string(node.event_type)
            else:
                raise ValueError(f"unknown task graph node type: {node.type}")
            nodes[node_id] = node.model_copy(update=update)
        return graph.model_copy(update={"nodes": nodes})


default_redactor = Redactor()


def redact(value: Any) -> Any:
    return default_redactor.redact_value(value)


def redact_string(text: str) -> str:
    return default_redactor.redact_string(text)
