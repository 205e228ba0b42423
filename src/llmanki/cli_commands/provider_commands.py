"""Provider listing CLI command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ..providers import PROVIDERS
from .shared import console, get_config_and_logger


def register(app: typer.Typer) -> None:
    """Register provider commands on the given Typer app."""

    @app.command(name="providers")
    def list_providers(
        config_path: Annotated[
            Path | None,
            typer.Option("--config", help="Path to config.yaml", exists=True),
        ] = None,
    ) -> None:
        """List supported LLM providers and their models."""
        config, _logger = get_config_and_logger(config_path)

        table = Table(title="LLM Providers", show_header=True, header_style="bold magenta")
        table.add_column("Id", style="cyan")
        table.add_column("Name")
        table.add_column("Models", style="green")
        table.add_column("API key")
        table.add_column("Pricing", style="dim")

        for info in PROVIDERS.values():
            marker = " [bold green]*[/bold green]" if info.id == config.llm_provider else ""
            table.add_row(
                f"{info.id}{marker}",
                info.name,
                "\n".join(info.models),
                "required" if info.requires_api_key else "-",
                info.pricing,
            )
        console.print(table)
        console.print(
            f"\nConfigured: [bold]{config.llm_provider}[/bold] / {config.effective_model}"
        )
