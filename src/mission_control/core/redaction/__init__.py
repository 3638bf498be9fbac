from .redactor import (
    DEFAULT_REDACT_PATTERNS,
    REDACTED_TEXT,
    Redactor,
    default_redactor,
    is_sensitive_key,
    redact,
    redact_string,
)

__all__ = [
    "Redactor",
    "REDACTED_TEXT",
    "DEFAULT_REDACT_PATTERNS",
    "default_redactor",
    "is_sensitive_key",
    "redact",
    "redact_string",
]
