"""Analysis cache CLI commands."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ..infrastructure.cache import AnalysisCache, DeckStateStore, DiskCacheStore, format_bytes
from .shared import console, get_config_and_logger


def register(app: typer.Typer) -> None:
    """Register cache commands on the given Typer app."""

    @app.command(name="cache-stats")
    def cache_stats(
        config_path: Annotated[
            Path | None,
            typer.Option("--config", help="Path to config.yaml", exists=True),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Log level (DEBUG, INFO, WARN, ERROR)"),
        ] = None,
    ) -> None:
        """Show analysis cache usage."""
        config, logger = get_config_and_logger(config_path, log_level)

        with DiskCacheStore(config.cache_dir) as store:
            cache = AnalysisCache(store)
            index = cache.scope_index()
            stats = cache.global_stats()
            total = cache.total_size()

        logger.debug("cache_stats_loaded", scopes=len(index), entries=stats.entry_count)

        if not index and stats.entry_count == 0:
            console.print("\n[yellow]Analysis cache is empty.[/yellow]")
            return

        console.print(f"\n[bold cyan]Analysis cache:[/bold cyan] {config.cache_dir}\n")
        table = Table(title="Collections", show_header=True, header_style="bold magenta")
        table.add_column("File", style="cyan")
        table.add_column("Cards", style="green")
        table.add_column("Size", style="green")
        table.add_column("Updated", style="blue")
        for name, info in sorted(index.items()):
            updated = datetime.fromtimestamp(info.last_updated / 1000).strftime("%Y-%m-%d %H:%M")
            table.add_row(name, str(info.card_count), format_bytes(info.size_bytes), updated)
        console.print(table)

        console.print(
            f"\nShared results: [bold]{stats.entry_count}[/bold] "
            f"({format_bytes(stats.size_bytes)}) across {len(stats.deck_names)} decks"
        )
        console.print(f"Total size: [bold]{format_bytes(total)}[/bold]")

    @app.command(name="cache-clear")
    def cache_clear(
        scope: Annotated[
            str | None,
            typer.Option("--scope", help="Only clear results of this collection file"),
        ] = None,
        yes: Annotated[
            bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")
        ] = False,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", help="Path to config.yaml", exists=True),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Log level (DEBUG, INFO, WARN, ERROR)"),
        ] = None,
    ) -> None:
        """Delete cached analysis results."""
        config, logger = get_config_and_logger(config_path, log_level)

        target = f"cached results of {scope}" if scope else "ALL cached analysis results"
        if not yes and not typer.confirm(f"Delete {target}?"):
            raise typer.Exit(code=1)

        with DiskCacheStore(config.cache_dir) as store:
            cache = AnalysisCache(store)
            if scope:
                cache.clear_scope(scope)
                DeckStateStore(store).clear(scope)
            else:
                for name in cache.scope_index():
                    DeckStateStore(store).clear(name)
                cache.clear_all()

        logger.debug("cache_clear_completed", scope=scope)
        console.print(f"\n[green]Deleted {target}.[/green]")
