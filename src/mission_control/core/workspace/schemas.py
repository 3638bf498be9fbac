from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

FileOperationType = Literal["read", "write"]


class FileOperation(BaseModel):
    id: str
    type: FileOperationType
    path: str
    ts_iso: str
    session_id: str | None = None
    size: int | None = None
    has_diff: bool = False
    diff_id: str | None = None


class FileDiff(BaseModel):
    id: str
    file_id: str
    path: str
    before: str | None
    after: str
    unified_diff: str
    ts_iso: str


class DiffSummary(BaseModel):
    id: str
    file_id: str
    path: str
    unified_diff: str
    before_length: int
    after_length: int
    ts_iso: str

    @classmethod
    def from_diff(cls, diff: FileDiff) -> "DiffSummary":
        return cls(
            id=diff.id,
            file_id=diff.file_id,
            path=diff.path,
            unified_diff=diff.unified_diff,
            before_length=len(diff.before) if diff.before is not None else 0,
            after_length=len(diff.after),
            ts_iso=diff.ts_iso,
        )


class TrackingStats(BaseModel):
    read_count: int = 0
    write_count: int = 0
    diff_count: int = 0
    total_tracked: int = 0
    tracking_failures: int = 0
    enabled: bool = False


class WorkspaceFile(BaseModel):
    path: str
    size_bytes: int
    modified_at_iso: str
    hash: str | None = None
    content: str | None = None


class WorkspaceSnapshot(BaseModel):
    run_id: str
    ts_iso: str
    files: list[WorkspaceFile] = Field(default_factory=list)
    total_size_bytes: int = 0


class WorkspaceStatus(BaseModel):
    initialized: bool
    enabled: bool
    hooks_installed: bool
