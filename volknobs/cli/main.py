"""Typer application entry point."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from volknobs.app import configure_logging
from volknobs.cli.commands import register_daemon, register_events
from volknobs.cli.helpers import CliState
from volknobs.config.schema import AppConfig, load_config
from volknobs.domain.exceptions import ConfigurationError

err_console = Console(stderr=True)

app = typer.Typer(
    help="Volume knobs for PipeWire: drive the default sink or one application's stream",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config", "-c",
        help="Path to a TOML config file",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level (DEBUG, INFO, WARNING, ...)",
    ),
) -> None:
    """Load configuration and set up logging for every command."""
    try:
        app_config = load_config(config)
        if log_level:
            try:
                app_config = AppConfig.model_validate({**app_config.model_dump(), "log_level": log_level})
            except ValidationError as exc:
                raise ConfigurationError(
                    f"Unknown log level: {log_level}",
                    cause=exc,
                    context={"log_level": log_level},
                    suggestions=["Use one of DEBUG, INFO, WARNING, ERROR, CRITICAL"],
                ) from exc
    except ConfigurationError as exc:
        err_console.print(exc.format_rich())
        raise typer.Exit(code=2) from exc

    configure_logging(app_config.log_level)
    ctx.obj = CliState(config=app_config, config_path=config)


register_events(app)
register_daemon(app)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
