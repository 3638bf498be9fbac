from __future__ import annotations

import json

from mission_control.core.safety import SafetyController, blocked_pattern


def test_safe_mode_blocks_denylisted_actions_and_prefixes(tmp_path) -> None:
    safety = SafetyController(tmp_path)
    safety.enable_safe_mode("operator")

    exact = safety.check("file.write")
    prefixed = safety.check("deploy.production")
    allowed = safety.check("file.read")

    assert exact.blocked and exact.safety_system == "safe_mode"
    assert exact.reason == 'Safe mode enabled. Action "file.write" is blocked.'
    assert prefixed.blocked
    assert 'matches blocked pattern "deploy"' in prefixed.reason
    assert allowed.blocked is False
    assert blocked_pattern("deployment") is None


def test_kill_switch_blocks_everything_and_cascades_safe_mode(tmp_path) -> None:
    safety = SafetyController(tmp_path)

    safety.activate_kill_switch("operator")

    decision = safety.check("file.read")
    status = safety.status()
    assert decision.blocked and decision.safety_system == "kill_switch"
    assert status.kill_switch and status.safe_mode
    assert status.kill_switch_activated_by == "operator"
    assert status.safe_mode_activated_by == "kill-switch-cascade"

    safety.deactivate_kill_switch()
    assert safety.check("file.read").blocked is False
    assert safety.check("terminal.exec").blocked is True


def test_state_persists_across_instances(tmp_path) -> None:
    SafetyController(tmp_path).enable_safe_mode("operator")

    reopened = SafetyController(tmp_path)

    assert reopened.safe_mode is True
    assert json.loads((tmp_path / "safety.json").read_text(encoding="utf-8"))["safe_mode"] is True


def test_toggle_and_reset(tmp_path) -> None:
    safety = SafetyController(tmp_path)

    assert safety.toggle_safe_mode() is True
    assert safety.toggle_safe_mode() is False
    safety.activate_kill_switch()
    assert safety.reset() is False
    assert safety.kill_switch is True
    assert safety.reset(for_testing=True) is True
    assert (safety.safe_mode, safety.kill_switch) == (False, False)


def test_environment_forced_modes_survive_disable(tmp_path) -> None:
    safety = SafetyController(tmp_path, force_safe_mode=True, force_kill_switch=True)

    safety.disable_safe_mode()
    safety.deactivate_kill_switch()

    status = safety.status()
    assert status.safe_mode and status.safe_mode_forced
    assert status.kill_switch and status.kill_switch_forced
    assert status.kill_switch_activated_by == "environment"
    assert safety.check("anything").blocked is True


def test_corrupt_state_file_starts_clean(tmp_path) -> None:
    (tmp_path / "safety.json").write_text("{broken", encoding="utf-8")

    safety = SafetyController(tmp_path)

    assert (safety.safe_mode, safety.kill_switch) == (False, False)
