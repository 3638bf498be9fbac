from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_mission_control_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("MISSION_CONTROL_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MISSION_CONTROL_TEST_MODE", "1")
    monkeypatch.setenv("MISSION_CONTROL_LOG_TO_FILE", "off")
