from __future__ import annotations

import hashlib
import os
from datetime import datetime, timezone
from pathlib import Path

from .paths import IGNORED_SEGMENTS, should_track_path
from .schemas import WorkspaceFile, WorkspaceSnapshot

MAX_CONTENT_BYTES = 65_536


def _describe(path: Path, root: Path, max_content_bytes: int) -> WorkspaceFile | None:
    try:
        stat = path.stat()
        raw = path.read_bytes()
    except OSError:
        return None
    content: str | None = None
    if len(raw) <= max_content_bytes:
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError:
            content = None
    return WorkspaceFile(
        path=path.relative_to(root).as_posix(),
        size_bytes=stat.st_size,
        modified_at_iso=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        hash=hashlib.sha256(raw).hexdigest(),
        content=content,
    )


def capture_workspace_snapshot(
    run_id: str,
    root: str | os.PathLike[str],
    max_content_bytes: int = MAX_CONTENT_BYTES,
) -> WorkspaceSnapshot:
    """Walk ``root`` and describe every trackable file, sorted by relative path.

    Text content is kept only for UTF-8 files no larger than ``max_content_bytes``.
    """
    base = Path(root).resolve()
    files: list[WorkspaceFile] = []
    for current, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(name for name in dirnames if name not in IGNORED_SEGMENTS)
        for filename in sorted(filenames):
            path = Path(current) / filename
            if not path.is_file() or not should_track_path(path):
                continue
            described = _describe(path, base, max_content_bytes)
            if described is not None:
                files.append(described)
    files.sort(key=lambda item: item.path)
    return WorkspaceSnapshot(
        run_id=run_id,
        ts_iso=datetime.now(timezone.utc).isoformat(),
        files=files,
        total_size_bytes=sum(item.size_bytes for item in files),
    )
