"""Swappable file primitives for agent code.

Agent-facing code calls ``hooks.read_text(path)`` / ``hooks.write_text(path, data)``
instead of touching ``pathlib`` directly. Each slot defaults to the plain
implementation; ``install()`` swaps in tracking wrappers and ``uninstall()``
puts the very same default callables back.
"""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path
from typing import Any, Callable

from .tracker import WorkspaceTracker

logger = logging.getLogger("mission_control.workspace.hooks")

PathArg = str | os.PathLike[str]


def read_text(path: PathArg, encoding: str | None = "utf-8", errors: str | None = None) -> str:
    return Path(path).read_text(encoding=encoding, errors=errors)


def read_bytes(path: PathArg) -> bytes:
    return Path(path).read_bytes()


def write_text(
    path: PathArg,
    data: str,
    encoding: str | None = "utf-8",
    errors: str | None = None,
    newline: str | None = None,
) -> int:
    return Path(path).write_text(data, encoding=encoding, errors=errors, newline=newline)


def write_bytes(path: PathArg, data: bytes) -> int:
    return Path(path).write_bytes(data)


DEFAULT_PRIMITIVES: dict[str, Callable[..., Any]] = {
    "read_text": read_text,
    "read_bytes": read_bytes,
    "write_text": write_text,
    "write_bytes": write_bytes,
}


def _data_arg(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    if len(args) > 1:
        return args[1]
    return kwargs.get("data")


def _path_arg(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    if args:
        return args[0]
    return kwargs.get("path")


class FileHooks:
    read_text: Callable[..., str]
    read_bytes: Callable[..., bytes]
    write_text: Callable[..., int]
    write_bytes: Callable[..., int]

    def __init__(self, tracker: WorkspaceTracker) -> None:
        self.tracker = tracker
        self._installed = False
        self._restore_defaults()

    def _restore_defaults(self) -> None:
        for name, func in DEFAULT_PRIMITIVES.items():
            setattr(self, name, func)

    @property
    def installed(self) -> bool:
        return self._installed

    def are_installed(self) -> bool:
        return self._installed

    def install(self) -> bool:
        if self._installed:
            return True
        if not self.tracker.enabled:
            logger.debug("file_hooks_skipped", extra={"extra_fields": {"reason": "tracking disabled"}})
            return False
        for name, func in DEFAULT_PRIMITIVES.items():
            wrapper = self._tracked_write(func) if name.startswith("write") else self._tracked_read(func)
            setattr(self, name, wrapper)
        self._installed = True
        logger.info("file_hooks_installed")
        return True

    def uninstall(self) -> None:
        if not self._installed:
            return
        self._restore_defaults()
        self._installed = False
        logger.info("file_hooks_uninstalled")

    def reinstall(self) -> bool:
        self.uninstall()
        return self.install()

    def _tracked_read(self, func: Callable[..., Any]) -> Callable[..., Any]:
        tracker = self.tracker

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = func(*args, **kwargs)
            if tracker.enabled:
                tracker.track_read(_path_arg(args, kwargs))
            return result

        return wrapper

    def _tracked_write(self, func: Callable[..., Any]) -> Callable[..., Any]:
        tracker = self.tracker

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if tracker.enabled:
                data = _data_arg(args, kwargs)
                if isinstance(data, (str, bytes)):
                    tracker.track_write(_path_arg(args, kwargs), data)
            return func(*args, **kwargs)

        return wrapper
