"""Render, analyze and insights CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .analysis_handler import run_analyze, run_insights, run_render
from .shared import get_config_and_logger

CollectionArg = Annotated[
    Path, typer.Argument(help="Path to the collection JSON snapshot", exists=True)
]
MediaOption = Annotated[
    Path | None,
    typer.Option("--media", help="Directory holding the collection's media files"),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config.yaml", exists=True),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARN, ERROR)"),
]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", "-v", help="Show every log event on the terminal")
]


def register(app: typer.Typer) -> None:
    """Register analysis commands on the given Typer app."""

    @app.command(name="render")
    def render(
        collection: CollectionArg,
        card_id: Annotated[int, typer.Argument(help="Id of the card to render")],
        media: MediaOption = None,
        raw_html: Annotated[
            bool, typer.Option("--html", help="Print rendered HTML instead of text")
        ] = False,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Render one card's front and back."""
        config, logger = get_config_and_logger(config_path, log_level, verbose)
        run_render(
            config=config,
            logger=logger,
            collection_path=collection,
            card_id=card_id,
            media_dir=media,
            raw_html=raw_html,
        )

    @app.command(name="analyze")
    def analyze(
        collection: CollectionArg,
        deck: Annotated[str, typer.Argument(help="Full deck name (Parent::Child)")],
        media: MediaOption = None,
        concurrent: Annotated[
            bool | None,
            typer.Option(
                "--concurrent/--serial",
                help="Analyze in concurrent batches of 5 (default from config)",
            ),
        ] = None,
        max_cards: Annotated[
            int | None,
            typer.Option("--max-cards", min=1, help="Maximum cards to analyze"),
        ] = None,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Get LLM feedback on the cards of a deck."""
        config, logger = get_config_and_logger(config_path, log_level, verbose)
        run_analyze(
            config=config,
            logger=logger,
            collection_path=collection,
            deck_name=deck,
            media_dir=media,
            concurrent=concurrent,
            max_cards=max_cards,
        )

    @app.command(name="insights")
    def insights(
        collection: CollectionArg,
        deck: Annotated[str, typer.Argument(help="Full deck name (Parent::Child)")],
        media: MediaOption = None,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Summarize analyzed cards and review the deck's subject coverage."""
        config, logger = get_config_and_logger(config_path, log_level, verbose)
        run_insights(
            config=config,
            logger=logger,
            collection_path=collection,
            deck_name=deck,
            media_dir=media,
        )
