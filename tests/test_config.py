from __future__ import annotations

from pathlib import Path

import pytest

from volknobs.config.schema import ActionSettings, AppConfig, load_config
from volknobs.domain.constants import ControlMode
from volknobs.domain.exceptions import ConfigurationError


def test_action_settings_defaults() -> None:
    settings = ActionSettings.from_payload(None)
    assert settings.control_mode is ControlMode.SYSTEM
    assert settings.app_name is None
    assert settings.step_size_pct == 2
    assert settings.target_volume_pct == 50


def test_action_settings_accepts_host_keys() -> None:
    settings = ActionSettings.from_payload(
        {"controlMode": "application", "appSinkId": "firefox", "stepSize": 5, "targetVolume": 80}
    )
    assert settings.control_mode is ControlMode.APPLICATION
    assert settings.app_name == "firefox"
    assert settings.step_size_pct == 5
    assert settings.target_volume_pct == 80


def test_action_settings_accepts_field_names() -> None:
    settings = ActionSettings.from_payload({"control_mode": "application", "app_name": "mpv"})
    assert settings.app_name == "mpv"


def test_action_settings_blank_app_name_is_none() -> None:
    assert ActionSettings.from_payload({"appName": "   "}).app_name is None


def test_action_settings_keeps_app_name_as_typed() -> None:
    assert ActionSettings.from_payload({"appName": " mpv "}).app_name == " mpv "


def test_action_settings_ignores_unknown_keys() -> None:
    assert ActionSettings.from_payload({"title": "x", "stepSize": 3}).step_size_pct == 3


@pytest.mark.parametrize(
    "payload",
    [
        {"stepSize": 0},
        {"stepSize": 11},
        {"targetVolume": -1},
        {"targetVolume": 101},
        {"controlMode": "loud"},
    ],
)
def test_action_settings_rejects_invalid(payload: dict) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        ActionSettings.from_payload(payload)
    assert exc_info.value.message.startswith("Invalid action settings")
    assert exc_info.value.context["errors"]


def test_action_settings_to_payload() -> None:
    payload = ActionSettings.from_payload({"controlMode": "application", "appName": "mpv"}).to_payload()
    assert payload == {
        "control_mode": "application",
        "app_name": "mpv",
        "step_size_pct": 2,
        "target_volume_pct": 50,
    }


def test_app_config_defaults() -> None:
    cfg = AppConfig()
    assert cfg.audio_tool == "wpctl"
    assert cfg.process_lookup_tool == "pidof"
    assert cfg.default_sink_token == "@DEFAULT_AUDIO_SINK@"
    assert cfg.command_timeout_s == 5.0
    assert cfg.benign_stderr_markers == ["Warning"]
    assert cfg.log_level == "INFO"


def test_app_config_log_level() -> None:
    cfg = AppConfig(log_level="debug")
    assert cfg.log_level == "DEBUG"
    assert cfg.log_level_value == 10

    with pytest.raises(ValueError):
        AppConfig(log_level="chatty")


def test_app_config_rejects_bad_timeout_and_unknown_keys() -> None:
    with pytest.raises(ValueError):
        AppConfig(command_timeout_s=0)
    with pytest.raises(ValueError):
        AppConfig(model_name="x")


def test_app_config_expands_paths() -> None:
    cfg = AppConfig(socket_path="~/volknobs.sock")
    assert not str(cfg.socket_path).startswith("~")


def test_load_config_without_file_uses_defaults() -> None:
    assert load_config() == AppConfig()


def test_load_config_reads_toml(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('command_timeout_s = 2.5\nlog_level = "warning"\nbenign_stderr_markers = ["Warning", "deprecated"]\n')
    cfg = load_config(path)
    assert cfg.command_timeout_s == 2.5
    assert cfg.log_level == "WARNING"
    assert cfg.benign_stderr_markers == ["Warning", "deprecated"]


def test_load_config_env_overrides_log_level(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.toml"
    path.write_text('log_level = "WARNING"\n')
    monkeypatch.setenv("VOLKNOBS_LOG_LEVEL", "debug")
    assert load_config(path).log_level == "DEBUG"


def test_load_config_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(tmp_path / "nope.toml")
    assert "not found" in exc_info.value.message


def test_load_config_invalid_toml(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("log_level = \n")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    assert exc_info.value.context["file"] == str(path)


def test_load_config_invalid_values(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("command_timeout_s = -1\nunknown_key = true\n")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    assert len(exc_info.value.context["errors"]) == 2
