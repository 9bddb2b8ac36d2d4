"""Application layer: target resolution, volume facade, host actions.

Components take a structlog logger at construction; verbosity is set
once per process by ``configure_logging``.
"""

import logging

import structlog

from volknobs.audio import CommandRunner, ProcessLookup, WpctlClient
from volknobs.config.schema import AppConfig

from .actions import KnobController, SetVolume, VolumeAction, VolumeDial, VolumeMute
from .resolver import ResolutionCache, TargetResolver
from .volume import VolumeControl


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure structlog for application logging.

    Args:
        level: Minimum level, as a ``logging`` constant or name ("DEBUG")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(level=level, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_controller(
    config: AppConfig | None = None,
    cache: ResolutionCache | None = None,
) -> KnobController:
    """Wire runner, tool clients, resolver and facade from ``config``."""
    config = config or AppConfig()
    logger = structlog.get_logger("volknobs")

    runner = CommandRunner(
        timeout_s=config.command_timeout_s,
        benign_stderr_markers=config.benign_stderr_markers,
        logger=logger.bind(component="runner"),
    )
    wpctl = WpctlClient(runner, binary=config.audio_tool, default_sink_token=config.default_sink_token)
    processes = ProcessLookup(runner, binary=config.process_lookup_tool)
    resolver = TargetResolver(wpctl, processes, cache=cache, logger=logger.bind(component="resolver"))
    volume = VolumeControl(wpctl, logger=logger.bind(component="volume"))
    return KnobController(resolver, volume, logger=logger.bind(component="actions"))


__all__ = [
    "KnobController",
    "ResolutionCache",
    "SetVolume",
    "TargetResolver",
    "VolumeAction",
    "VolumeControl",
    "VolumeDial",
    "VolumeMute",
    "build_controller",
    "configure_logging",
]
