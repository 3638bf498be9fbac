from __future__ import annotations

import json
import os
import time

from mission_control.core.graph import GraphEvent, TaskGraphBuilder
from mission_control.core.ops.maintenance import RETENTION_JOB_ID, load_maintenance_status, run_retention_sweep
from mission_control.core.runtime import MissionControl
from mission_control.core.settings import load_settings


def test_sweep_removes_expired_diffs_and_graphs(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MISSION_CONTROL_WORKSPACE_TRACKING", "1")
    control = MissionControl(load_settings(tmp_path))
    control.tracker.initialize()

    target = tmp_path / "notes.txt"
    target.write_text("v1", encoding="utf-8")
    operation = control.tracker.track_write(target, "v2")
    diff_path = control.settings.diffs_dir / f"{operation.diff_id}.json"
    stale = time.time() - 40 * 86400
    os.utime(diff_path, (stale, stale))

    old_graph = TaskGraphBuilder().build_from_events(
        "old",
        [GraphEvent(id="e0", type="user_message", timestamp_iso="2020-01-01T00:00:00+00:00", data={"text": "x"})],
    )
    control.graph_store.save("old", old_graph)
    os.utime(control.graph_store.path_for("old"), (stale, stale))

    result = run_retention_sweep(control)

    assert result["ok"] is True
    assert result["summary"] == {"diffs_removed": 1, "graphs_removed": 1}
    assert not diff_path.exists()
    assert not control.graph_store.exists("old")

    status = load_maintenance_status(tmp_path)[RETENTION_JOB_ID]
    assert status["ok"] is True
    assert status["correlation_id"] == result["correlation_id"]
    assert json.loads((tmp_path / "maintenance.json").read_text(encoding="utf-8"))[RETENTION_JOB_ID]["summary"]


def test_status_defaults_when_never_run(tmp_path) -> None:
    status = load_maintenance_status(tmp_path)

    assert status[RETENTION_JOB_ID]["last_run_iso"] is None
    assert status[RETENTION_JOB_ID]["ok"] is None
