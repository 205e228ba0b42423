"""Command-line interface for llmanki."""

from __future__ import annotations

import typer

from .cli_commands import analysis_commands, cache_commands, provider_commands

app = typer.Typer(
    name="llmanki",
    help="Render flashcard collections and get LLM feedback on card quality.",
    no_args_is_help=True,
)

analysis_commands.register(app)
cache_commands.register(app)
provider_commands.register(app)


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
