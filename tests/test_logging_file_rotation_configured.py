from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

import pytest

from mission_control.core.logging import configure_logging
from mission_control.core.settings import Settings, load_settings


@pytest.fixture()
def root_logger():
    logger = logging.getLogger("mission_control")
    logger.handlers = []
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [handler for handler in logger.handlers if isinstance(handler, RotatingFileHandler)]


def test_rotation_limits_come_from_environment(tmp_path, monkeypatch, root_logger) -> None:
    monkeypatch.setenv("MISSION_CONTROL_LOG_TO_FILE", "on")
    monkeypatch.setenv("MISSION_CONTROL_LOG_DIR", str(tmp_path / "custom-logs"))
    monkeypatch.setenv("MISSION_CONTROL_LOG_MAX_BYTES", "1024")
    monkeypatch.setenv("MISSION_CONTROL_LOG_BACKUP_COUNT", "2")

    configure_logging(load_settings(tmp_path / "state"))

    [handler] = _file_handlers(root_logger)
    assert (handler.maxBytes, handler.backupCount) == (1024, 2)
    assert (tmp_path / "custom-logs" / "mission_control.log").exists()


def test_log_dir_defaults_under_state_dir(tmp_path, root_logger) -> None:
    state_dir = tmp_path / "missing-state"

    configure_logging(Settings(state_dir=state_dir))

    assert (state_dir / "logs" / "mission_control.log").exists()


def test_moving_the_log_dir_replaces_the_file_handler(tmp_path, root_logger) -> None:
    configure_logging(Settings(state_dir=tmp_path, log_dir=tmp_path / "one"))
    configure_logging(Settings(state_dir=tmp_path, log_dir=tmp_path / "two"))

    [handler] = _file_handlers(root_logger)
    assert handler.baseFilename == str(tmp_path / "two" / "mission_control.log")


def test_turning_file_logging_off_drops_the_file_handler(tmp_path, root_logger) -> None:
    configure_logging(Settings(state_dir=tmp_path))
    configure_logging(Settings(state_dir=tmp_path, log_to_file=False))

    assert _file_handlers(root_logger) == []
    assert [handler.get_name() for handler in root_logger.handlers] == ["mission_control.stdout"]
