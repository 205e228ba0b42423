"""Shared utilities for CLI commands."""

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from llmanki.config import Config, load_config, set_config
from llmanki.exceptions import LLMAnkiError
from llmanki.utils.logging import configure_logging, get_logger

# Shared console for all commands
console = Console()

# Loaded once per process; keyed on the config path it came from
_config: Config | None = None
_config_path: Path | None = None
_logger: Any | None = None


def get_config_and_logger(
    config_path: Path | None = None,
    log_level: str | None = None,
    verbose: bool = False,
) -> tuple[Config, Any]:
    """Load configuration and logger (dependency injection helper).

    Args:
        config_path: Optional path to config file
        log_level: Console log level; the configured level when None
        verbose: Show all log messages on terminal (for debugging)

    Returns:
        Tuple of (Config, Logger)
    """
    global _config, _config_path, _logger

    if _config is None or config_path != _config_path:
        try:
            _config = load_config(config_path)
        except LLMAnkiError as e:
            print_error(e)
            raise typer.Exit(code=1) from e
        _config_path = config_path
        set_config(_config)

        configure_logging(
            log_level or _config.log_level,
            log_dir=_config.log_dir,
            verbose=verbose,
        )
        _logger = get_logger("cli")

    return _config, _logger


def reset_cli_state() -> None:
    """Forget the loaded config (for testing)."""
    global _config, _config_path, _logger
    _config = None
    _config_path = None
    _logger = None


def print_error(error: LLMAnkiError) -> None:
    """Print an error and its suggestion."""
    console.print(f"\n[bold red]Error:[/bold red] {escape(error.message)}")
    if error.suggestion:
        console.print(f"[yellow]Suggestion:[/yellow] {escape(error.suggestion)}")
