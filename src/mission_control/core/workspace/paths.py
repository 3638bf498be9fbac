from __future__ import annotations

import os
from pathlib import PurePath

IGNORED_SEGMENTS = frozenset({"node_modules", ".git", "__pycache__", ".npm", ".cache"})

BINARY_EXTENSIONS = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".gif", ".ico", ".svg", ".webp",
        ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm",
        ".zip", ".tar", ".gz", ".rar", ".7z",
        ".exe", ".dll", ".so", ".dylib",
        ".pdf", ".doc", ".docx", ".xls", ".xlsx",
        ".ttf", ".otf", ".woff", ".woff2",
        ".sqlite", ".db", ".bin",
    }
)


def should_track_path(path: str | os.PathLike[str] | bytes) -> bool:
    """Pure string check, no filesystem access."""
    try:
        raw = os.fspath(path)
    except TypeError:
        return False
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    if not text:
        return False
    parts = PurePath(text).parts
    if any(part in IGNORED_SEGMENTS for part in parts):
        return False
    return PurePath(text.casefold()).suffix not in BINARY_EXTENSIONS
