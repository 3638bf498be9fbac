from __future__ import annotations

import logging

from mission_control.core.logging import configure_logging
from mission_control.core.settings import Settings


def test_repeated_configuration_keeps_one_handler_of_each_kind(tmp_path) -> None:
    logger = logging.getLogger("mission_control")
    logger.handlers = []
    settings = Settings(state_dir=tmp_path, log_level="debug")

    configure_logging(settings)
    configure_logging(settings)

    names = sorted(handler.get_name() for handler in logger.handlers)
    assert names == ["mission_control.file", "mission_control.stdout"]
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_unknown_level_falls_back_to_info(tmp_path) -> None:
    logger = configure_logging(Settings(state_dir=tmp_path, log_level="chatty", log_to_file=False))

    assert logger.level == logging.INFO
    logger.handlers = []
