"""Deck analysis runs over many cards.

A run moves ``idle -> running -> completed | cancelled | failed``. Cards
with a usable existing result are reported straight away; the rest are
analysed one at a time (serial) or in batches of ``BATCH_SIZE`` awaited
together (concurrent), with a configurable pause between requests or
batches. The first error stops the run; cancellation is cooperative and is
checked before each card or batch. Partial results are always returned.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ..domain.entities import Card, Field, LLMAnalysisResult
from ..exceptions import LLMAnkiError, LLMError
from ..utils.logging import get_logger
from .card_analyzer import CardAnalysis

logger = get_logger(__name__)

BATCH_SIZE = 5


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ProgressStatus(str, Enum):
    CACHED = "cached"
    ANALYZING = "analyzing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AnalysisProgress:
    """One progress notification.

    ``current`` counts cards with a result so far, out of ``total`` cards in
    the (truncated) run.
    """

    card_id: int
    status: ProgressStatus
    current: int
    total: int
    result: LLMAnalysisResult | None = None
    fields: tuple[Field, ...] = ()


@dataclass
class AnalysisRun:
    """Outcome of a run: every result gathered plus the reason it stopped."""

    state: RunState
    results: dict[int, LLMAnalysisResult] = field(default_factory=dict)
    analyzed_ids: list[int] = field(default_factory=list)
    cached_ids: list[int] = field(default_factory=list)
    error: LLMAnkiError | None = None

    @property
    def cancelled(self) -> bool:
        return self.state == RunState.CANCELLED


@dataclass(frozen=True)
class RunSettings:
    max_analysis_cards: int = 100
    concurrent_analysis: bool = False
    request_delay_ms: int = 2000

    @classmethod
    def from_config(cls, config: Any) -> "RunSettings":
        return cls(
            max_analysis_cards=config.max_analysis_cards,
            concurrent_analysis=config.concurrent_analysis,
            request_delay_ms=config.request_delay_ms,
        )


class Analyzer(Protocol):
    async def analyze(self, card: Card, scope_file: str) -> CardAnalysis: ...


ProgressCallback = Callable[[AnalysisProgress], None]
CancelPredicate = Callable[[], bool]


class AnalysisOrchestrator:
    """Drive a card analyzer over a deck."""

    def __init__(
        self,
        analyzer: Analyzer,
        settings: RunSettings,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.analyzer = analyzer
        self.settings = settings
        self.state = RunState.IDLE
        self._sleep = sleep

    async def _pause(self) -> None:
        if self.settings.request_delay_ms > 0:
            await self._sleep(self.settings.request_delay_ms / 1000)

    async def run(
        self,
        cards: Sequence[Card],
        existing: Mapping[int, LLMAnalysisResult],
        *,
        scope_file: str,
        on_progress: ProgressCallback | None = None,
        is_cancelled: CancelPredicate | None = None,
    ) -> AnalysisRun:
        """Analyze ``cards`` in input order.

        Args:
            cards: Cards to analyze; truncated to ``max_analysis_cards``
            existing: Known results by card id; error results are re-analysed
            scope_file: Collection file name used as the cache scope
            on_progress: Called for every progress notification
            is_cancelled: Polled before each card or batch

        Returns:
            The run outcome. Provider and render failures are returned in
            ``error``, never raised.
        """
        if self.state == RunState.RUNNING:
            raise RuntimeError("An analysis run is already in progress")
        self.state = RunState.RUNNING

        selected = list(cards)[: self.settings.max_analysis_cards]
        run = AnalysisRun(state=RunState.RUNNING)
        total = len(selected)

        def report(progress: AnalysisProgress) -> None:
            if on_progress is not None:
                on_progress(progress)

        def cancelled() -> bool:
            return is_cancelled is not None and is_cancelled()

        new_cards: list[Card] = []
        for card in selected:
            prior = existing.get(card.id)
            if prior is not None and not prior.is_error:
                run.results[card.id] = prior
                run.cached_ids.append(card.id)
                report(
                    AnalysisProgress(
                        card_id=card.id,
                        status=ProgressStatus.CACHED,
                        current=len(run.results),
                        total=total,
                        result=prior,
                    )
                )
            else:
                new_cards.append(card)

        logger.info(
            "analysis_run_started",
            scope=scope_file,
            total_cards=total,
            new_cards=len(new_cards),
            cached_cards=len(run.cached_ids),
            concurrent=self.settings.concurrent_analysis,
        )

        try:
            if self.settings.concurrent_analysis:
                await self._run_batches(new_cards, run, scope_file, total, report, cancelled)
            else:
                await self._run_serial(new_cards, run, scope_file, total, report, cancelled)
        except BaseException:
            self.state = RunState.FAILED
            raise

        if run.state == RunState.RUNNING:
            run.state = RunState.COMPLETED
        self.state = run.state
        self._log_finish(run, scope_file)
        return run

    async def _run_serial(
        self,
        new_cards: list[Card],
        run: AnalysisRun,
        scope_file: str,
        total: int,
        report: ProgressCallback,
        cancelled: CancelPredicate,
    ) -> None:
        for index, card in enumerate(new_cards):
            if cancelled():
                run.state = RunState.CANCELLED
                return

            report(
                AnalysisProgress(
                    card_id=card.id,
                    status=ProgressStatus.ANALYZING,
                    current=len(run.results),
                    total=total,
                )
            )
            try:
                analysis = await self.analyzer.analyze(card, scope_file)
            except LLMAnkiError as e:
                run.state = RunState.FAILED
                run.error = e
                return

            self._record(run, card, analysis, total, report)

            if index < len(new_cards) - 1:
                await self._pause()

    async def _run_batches(
        self,
        new_cards: list[Card],
        run: AnalysisRun,
        scope_file: str,
        total: int,
        report: ProgressCallback,
        cancelled: CancelPredicate,
    ) -> None:
        batches = [new_cards[i : i + BATCH_SIZE] for i in range(0, len(new_cards), BATCH_SIZE)]
        for batch_index, batch in enumerate(batches):
            if cancelled():
                run.state = RunState.CANCELLED
                return

            logger.debug(
                "analysis_batch_started",
                batch=batch_index + 1,
                batches=len(batches),
                card_ids=[c.id for c in batch],
            )
            outcomes = await asyncio.gather(
                *(self.analyzer.analyze(card, scope_file) for card in batch),
                return_exceptions=True,
            )

            # Results of a batch finished after cancellation stay cached only
            if cancelled():
                run.state = RunState.CANCELLED
                return

            first_error: LLMAnkiError | None = None
            for card, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, LLMAnkiError):
                        raise outcome
                    first_error = first_error or outcome
                    continue
                self._record(run, card, outcome, total, report)

            if first_error is not None:
                run.state = RunState.FAILED
                run.error = first_error
                return

            if batch_index < len(batches) - 1:
                await self._pause()

    def _record(
        self,
        run: AnalysisRun,
        card: Card,
        analysis: CardAnalysis,
        total: int,
        report: ProgressCallback,
    ) -> None:
        run.results[card.id] = analysis.result
        run.analyzed_ids.append(card.id)
        report(
            AnalysisProgress(
                card_id=card.id,
                status=ProgressStatus.COMPLETED,
                current=len(run.results),
                total=total,
                result=analysis.result,
                fields=analysis.card.fields,
            )
        )

    def _log_finish(self, run: AnalysisRun, scope_file: str) -> None:
        if run.state == RunState.FAILED and run.error is not None:
            kind = run.error.kind.value if isinstance(run.error, LLMError) else "render_error"
            logger.error(
                "analysis_run_failed",
                scope=scope_file,
                analyzed=len(run.results),
                error_kind=kind,
                error=run.error.message,
            )
        elif run.state == RunState.CANCELLED:
            logger.info("analysis_run_cancelled", scope=scope_file, analyzed=len(run.results))
        else:
            logger.info("analysis_run_completed", scope=scope_file, analyzed=len(run.results))
