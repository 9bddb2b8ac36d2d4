"""Config loading and validation."""

from .schema import (
    ActionSettings,
    AppConfig,
    load_config,
)

__all__ = [
    "ActionSettings",
    "AppConfig",
    "load_config",
]
