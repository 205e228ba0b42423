"""Render, analyze and insights command implementation logic."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Any

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from ..analysis import (
    AnalysisOrchestrator,
    AnalysisProgress,
    AnalysisRun,
    CardAnalyzer,
    ProgressStatus,
    RunSettings,
    aggregate,
)
from ..config import Config
from ..domain.entities import Collection, Deck, DeckAnalysisResult, RenderedCard
from ..exceptions import LLMAnkiError, LLMError
from ..infrastructure.cache import AnalysisCache, DeckStateStore, DiskCacheStore
from ..infrastructure.collection_loader import load_collection
from ..rendering import card_type_label, render_card, strip_html_for_llm
from .shared import console, print_error


def _load(collection_path: Path, media_dir: Path | None) -> Collection:
    try:
        return load_collection(collection_path, media_dir)
    except LLMAnkiError as e:
        print_error(e)
        raise typer.Exit(code=1) from e


def _find_deck(collection: Collection, deck_name: str) -> Deck:
    deck = collection.find_deck(deck_name)
    if deck is None:
        console.print(f"\n[bold red]Error:[/bold red] Deck not found: {deck_name}")
        names = sorted(d.name for d in collection.decks.values())
        if names:
            console.print(f"[yellow]Available decks:[/yellow] {', '.join(names)}")
        raise typer.Exit(code=1)
    return deck


async def _render_deck(
    collection: Collection, deck: Deck, logger: Any
) -> list[RenderedCard]:
    """Render every card of a deck, skipping cards that cannot be rendered."""
    rendered = []
    for card in collection.cards_in_deck(deck.id):
        try:
            rendered.append(await render_card(collection, card))
        except LLMAnkiError as e:
            logger.warning("card_render_skipped", card_id=card.id, error=e.message)
    return rendered


def run_render(
    config: Config,
    logger: Any,
    collection_path: Path,
    card_id: int,
    media_dir: Path | None = None,
    raw_html: bool = False,
) -> None:
    """Render one card and print its front and back."""
    collection = _load(collection_path, media_dir)
    card = collection.cards.get(card_id)
    if card is None:
        console.print(f"\n[bold red]Error:[/bold red] Card not found: {card_id}")
        raise typer.Exit(code=1)

    try:
        rendered = asyncio.run(render_card(collection, card))
    except LLMAnkiError as e:
        print_error(e)
        raise typer.Exit(code=1) from e

    logger.debug("card_rendered", card_id=card_id, card_type=rendered.card_type.value)

    def side(html: str) -> str:
        return html if raw_html else strip_html_for_llm(html, config.send_images)

    console.print(
        f"\n[bold cyan]{rendered.deck_name}[/bold cyan] · {rendered.model_name} · "
        f"{card_type_label(rendered.card_type)}"
    )
    console.print(Panel(escape(side(rendered.front)) or "(empty)", title="Front"))
    console.print(Panel(escape(side(rendered.back)) or "(empty)", title="Back"))
    if rendered.tags:
        console.print(f"[dim]Tags: {' '.join(rendered.tags)}[/dim]")


def _results_table(run: AnalysisRun) -> Table:
    table = Table(title="Card Analysis", show_header=True, header_style="bold magenta")
    table.add_column("Card", style="cyan")
    table.add_column("Score", style="green")
    table.add_column("Issues")
    table.add_column("Suggested", style="yellow")
    table.add_column("Source", style="blue")

    cached = set(run.cached_ids)
    for card_id, result in run.results.items():
        score = result.feedback.overall_score
        style = "green" if score >= 7 else "yellow" if score >= 4 else "red"
        issues = escape("; ".join(result.feedback.issues[:2])) or "-"
        if result.delete_original:
            issues = f"[red]delete[/red] {issues}"
        table.add_row(
            str(card_id),
            f"[{style}]{score:g}[/{style}]",
            issues,
            str(len(result.suggested_cards)),
            "cache" if card_id in cached else "llm",
        )
    return table


async def _analyze(
    config: Config,
    collection: Collection,
    deck: Deck,
    scope_file: str,
    cache: AnalysisCache,
    settings: RunSettings,
    logger: Any,
) -> AnalysisRun:
    rendered = await _render_deck(collection, deck, logger)
    existing = cache.load_valid_results(scope_file, rendered)
    cards = collection.cards_in_deck(deck.id)

    analyzer = CardAnalyzer(
        collection,
        cache,
        config.llm_config(),
        send_images=config.send_images,
    )
    orchestrator = AnalysisOrchestrator(analyzer, settings)

    cancel_requested = False

    def request_cancel() -> None:
        nonlocal cancel_requested
        if not cancel_requested:
            console.print("\n[yellow]Stopping after the current request...[/yellow]")
        cancel_requested = True

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, request_cancel)
        handler_installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        handler_installed = False

    total = min(len(cards), settings.max_analysis_cards)
    try:
        with Progress(
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Analyzing", total=total)

            def on_progress(update: AnalysisProgress) -> None:
                if update.status == ProgressStatus.ANALYZING:
                    progress.update(task, description=f"Analyzing card {update.card_id}")
                else:
                    progress.update(task, completed=update.current)

            return await orchestrator.run(
                cards,
                existing,
                scope_file=scope_file,
                on_progress=on_progress,
                is_cancelled=lambda: cancel_requested,
            )
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def run_analyze(
    config: Config,
    logger: Any,
    collection_path: Path,
    deck_name: str,
    media_dir: Path | None = None,
    concurrent: bool | None = None,
    max_cards: int | None = None,
) -> None:
    """Analyze the cards of one deck and print a results table.

    Raises:
        typer.Exit: On a missing deck, a configuration problem or a failed run
    """
    collection = _load(collection_path, media_dir)
    deck = _find_deck(collection, deck_name)

    try:
        config.require_api_key()
    except LLMAnkiError as e:
        print_error(e)
        raise typer.Exit(code=1) from e

    settings = RunSettings(
        max_analysis_cards=max_cards or config.max_analysis_cards,
        concurrent_analysis=config.concurrent_analysis if concurrent is None else concurrent,
        request_delay_ms=config.request_delay_ms,
    )
    scope_file = collection_path.name

    with DiskCacheStore(config.cache_dir) as store:
        cache = AnalysisCache(store)
        run = asyncio.run(
            _analyze(config, collection, deck, scope_file, cache, settings, logger)
        )
        marked = [cid for cid, r in run.results.items() if r.delete_original]
        DeckStateStore(store).update_marked_for_deletion(scope_file, marked)

    if run.results:
        console.print(_results_table(run))
    console.print(
        f"\n[bold]{len(run.results)}[/bold] results "
        f"({len(run.analyzed_ids)} analyzed, {len(run.cached_ids)} from cache)"
    )

    if run.cancelled:
        console.print("[yellow]Analysis cancelled; completed results were kept.[/yellow]")
        return
    if run.error is not None:
        print_error(run.error)
        if isinstance(run.error, LLMError) and run.error.retry_after:
            console.print(f"[yellow]Retry after {run.error.retry_after} seconds.[/yellow]")
        raise typer.Exit(code=1)


def _print_insights(result: DeckAnalysisResult) -> None:
    console.print(f"\n[bold cyan]Deck insights: {result.deck_name}[/bold cyan]\n")

    stats = Table(show_header=True, header_style="bold magenta")
    stats.add_column("Metric", style="cyan")
    stats.add_column("Value", style="green")
    stats.add_row("Total cards", str(result.total_cards))
    stats.add_row("Analyzed cards", str(result.analyzed_cards))
    stats.add_row("Average score", f"{result.average_score:g}")
    stats.add_row("Suggested replacements", str(result.total_suggested_cards))
    console.print(stats)

    if result.common_issues:
        console.print("\n[bold]Common issues:[/bold]")
        for item in result.common_issues:
            console.print(f"  {item.count}x {item.issue}")

    if result.deck_summary:
        console.print(Panel(escape(result.deck_summary), title="Summary"))

    coverage = result.knowledge_coverage
    if coverage is not None:
        console.print(
            f"\n[bold]Coverage:[/bold] {coverage.overall_coverage} "
            f"({coverage.coverage_score}/10)"
        )
        if coverage.covered_topics:
            console.print(f"[green]Covered:[/green] {', '.join(coverage.covered_topics)}")
        for gap in coverage.gaps:
            label = escape(f"[{gap.importance}]")
            console.print(
                f"  [yellow]gap[/yellow] {label} {escape(gap.topic)}: {escape(gap.description)}"
            )
        for recommendation in coverage.recommendations:
            console.print(f"  - {escape(recommendation)}")

    if result.suggested_new_cards:
        console.print(f"\n[bold]Suggested new cards ({len(result.suggested_new_cards)}):[/bold]")
        for suggestion in result.suggested_new_cards:
            front = suggestion.fields[0].value if suggestion.fields else ""
            console.print(f"  {escape(f'[{suggestion.type}]')} {escape(strip_html_for_llm(front))}")


def run_insights(
    config: Config,
    logger: Any,
    collection_path: Path,
    deck_name: str,
    media_dir: Path | None = None,
) -> None:
    """Aggregate cached results of a deck and request a coverage review."""
    collection = _load(collection_path, media_dir)
    deck = _find_deck(collection, deck_name)
    scope_file = collection_path.name

    async def _insights(cache: AnalysisCache) -> DeckAnalysisResult:
        rendered = await _render_deck(collection, deck, logger)
        cached = cache.load_valid_results(scope_file, rendered)
        return await aggregate(
            deck.id,
            deck.name,
            len(rendered),
            cached,
            [card for card in rendered if card.id in cached],
            config.llm_config(),
            send_images=config.send_images,
        )

    with DiskCacheStore(config.cache_dir) as store:
        result = asyncio.run(_insights(AnalysisCache(store)))

    if result.analyzed_cards == 0:
        console.print(f"\n[yellow]{result.error}[/yellow]")
        raise typer.Exit(code=1)

    _print_insights(result)
    if result.error:
        console.print(
            f"\n[bold red]Coverage review failed[/bold red] ({result.error_kind}): {result.error}"
        )
        raise typer.Exit(code=1)
