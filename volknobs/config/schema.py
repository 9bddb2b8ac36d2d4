"""Configuration models.

Two levels of configuration exist:

* ``ActionSettings``: per-action options sent by the host with every
  event (control mode, application name, step size, target volume).
* ``AppConfig``: process-wide options read once from a TOML file (tool
  names, command timeout, log level, daemon socket).

Example config file (``~/.config/volknobs/config.toml``)::

    command_timeout_s = 3.0
    log_level = "DEBUG"
    benign_stderr_markers = ["Warning", "deprecated"]
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from volknobs.domain.constants import (
    AUDIO_TOOL,
    BENIGN_STDERR_MARKERS,
    DEFAULT_COMMAND_TIMEOUT_S,
    DEFAULT_CONFIG_PATH,
    DEFAULT_PID_FILE,
    DEFAULT_SINK_TOKEN,
    DEFAULT_SOCKET_PATH,
    DEFAULT_STEP_SIZE_PCT,
    DEFAULT_TARGET_VOLUME_PCT,
    LOG_LEVEL_ENV,
    PROCESS_LOOKUP_TOOL,
    ControlMode,
)
from volknobs.domain.exceptions import ConfigurationError

__all__ = [
    "ActionSettings",
    "AppConfig",
    "load_config",
]


def _format_validation_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


class ActionSettings(BaseModel):
    """Settings attached to one host action.

    Accepts the host's camelCase keys (``controlMode``, ``appSinkId`` or
    ``appName``, ``stepSize``, ``targetVolume``) as well as field names.
    ``app_name`` is optional here; the resolver rejects application mode
    without one.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    control_mode: ControlMode = Field(
        default=ControlMode.SYSTEM,
        validation_alias=AliasChoices("controlMode", "control_mode"),
    )
    app_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("appName", "appSinkId", "app_name"),
    )
    step_size_pct: int = Field(
        default=DEFAULT_STEP_SIZE_PCT,
        ge=1,
        le=10,
        validation_alias=AliasChoices("stepSize", "stepSizePct", "step_size_pct"),
    )
    target_volume_pct: int = Field(
        default=DEFAULT_TARGET_VOLUME_PCT,
        ge=0,
        le=100,
        validation_alias=AliasChoices("targetVolume", "targetVolumePct", "target_volume_pct"),
    )

    @field_validator("app_name")
    @classmethod
    def _blank_app_name_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value if value.strip() else None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> ActionSettings:
        """Validate raw host settings.

        Raises:
            ConfigurationError: A value is of the wrong type or out of range
        """
        try:
            return cls.model_validate(dict(payload or {}))
        except ValidationError as exc:
            raise ConfigurationError.invalid_settings(_format_validation_errors(exc), cause=exc) from exc

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class AppConfig(BaseModel):
    """Process-wide configuration."""

    model_config = ConfigDict(extra="forbid")

    audio_tool: str = AUDIO_TOOL
    process_lookup_tool: str = PROCESS_LOOKUP_TOOL
    default_sink_token: str = DEFAULT_SINK_TOKEN
    command_timeout_s: float | None = Field(default=DEFAULT_COMMAND_TIMEOUT_S, gt=0)
    benign_stderr_markers: list[str] = Field(default_factory=lambda: list(BENIGN_STDERR_MARKERS))
    log_level: str = "INFO"
    socket_path: Path = DEFAULT_SOCKET_PATH
    pid_file: Path = DEFAULT_PID_FILE

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("socket_path", "pid_file")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


def load_config(path: Path | None = None) -> AppConfig:
    """Load ``AppConfig`` from TOML.

    Without ``path`` the default location is used if it exists, otherwise
    defaults apply. An explicit ``path`` must exist. ``VOLKNOBS_LOG_LEVEL``
    overrides ``log_level``.

    Raises:
        ConfigurationError: Missing explicit file, invalid TOML, or invalid values
    """
    config_path = path or DEFAULT_CONFIG_PATH
    data: dict[str, Any] = {}

    if config_path.exists():
        try:
            with config_path.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError.invalid_config(config_path, [str(exc)], cause=exc) from exc
    elif path is not None:
        raise ConfigurationError(
            f"Config file not found: {config_path}",
            context={"file": str(config_path)},
            suggestions=["Check the --config path", "Omit --config to use defaults"],
        )

    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        data["log_level"] = env_level

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError.invalid_config(config_path, _format_validation_errors(exc), cause=exc) from exc
