from .context import CONTEXT_FIELDS, get_log_context, log_context
from .setup import configure_logging

__all__ = ["CONTEXT_FIELDS", "configure_logging", "get_log_context", "log_context"]
