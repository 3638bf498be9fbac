from .files import atomic_write_json, atomic_write_text, ensure_writable_dir, read_json, safe_name
from .scheduler import SchedulerService

__all__ = [
    "SchedulerService",
    "atomic_write_json",
    "atomic_write_text",
    "ensure_writable_dir",
    "read_json",
    "safe_name",
]
