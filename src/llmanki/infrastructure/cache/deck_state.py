"""Per-scope review state: generated cards, deletions and edits."""

import json
import time
from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError
from pydantic.alias_generators import to_camel

from ...domain.entities import Card, Field, Note
from ...domain.interfaces import IKeyValueStore
from ...utils.logging import get_logger
from .analysis_cache import sanitize_scope

logger = get_logger(__name__)

STATE_PREFIX = "llmanki-state-"


class GeneratedCard(BaseModel):
    card: Card
    note: Note


class DeckState(BaseModel):
    """Review state of one collection file.

    ``edited_cards`` maps note id to the edited field list.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    generated_card_ids: list[int] = PydanticField(default_factory=list)
    marked_for_deletion: list[int] = PydanticField(default_factory=list)
    generated_cards: list[GeneratedCard] = PydanticField(default_factory=list)
    edited_cards: dict[int, list[Field]] = PydanticField(default_factory=dict)
    last_updated: int = 0


def state_key(scope_file: str) -> str:
    return f"{STATE_PREFIX}{sanitize_scope(scope_file)}"


class DeckStateStore:
    """Load and save ``DeckState`` documents; failures degrade to no state."""

    def __init__(
        self,
        store: IKeyValueStore,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self._clock = clock

    def get(self, scope_file: str) -> DeckState | None:
        key = state_key(scope_file)
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.warning("deck_state_read_failed", scope=scope_file, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return DeckState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("deck_state_corrupt", scope=scope_file, error=str(e))
            return None

    def save(self, scope_file: str, state: DeckState) -> None:
        try:
            self.store.set(
                state_key(scope_file),
                json.dumps(state.model_dump(by_alias=True, mode="json"), ensure_ascii=False),
            )
        except Exception as e:
            logger.warning("deck_state_write_failed", scope=scope_file, error=str(e))

    def clear(self, scope_file: str) -> None:
        try:
            self.store.delete(state_key(scope_file))
        except Exception as e:
            logger.warning("deck_state_delete_failed", scope=scope_file, error=str(e))

    def update_marked_for_deletion(
        self, scope_file: str, marked_for_deletion: Iterable[int]
    ) -> DeckState:
        """Replace the deletion marks, keeping the rest of the state."""
        existing = self.get(scope_file) or DeckState()
        state = existing.model_copy(
            update={
                "marked_for_deletion": sorted(set(marked_for_deletion)),
                "last_updated": int(self._clock() * 1000),
            }
        )
        self.save(scope_file, state)
        return state

    def update_generated_cards(
        self,
        scope_file: str,
        generated_cards: Iterable[tuple[Card, Note]],
    ) -> DeckState:
        """Replace the generated cards, keeping deletion marks and edits."""
        cards = [GeneratedCard(card=card, note=note) for card, note in generated_cards]
        existing = self.get(scope_file) or DeckState()
        state = existing.model_copy(
            update={
                "generated_card_ids": [g.card.id for g in cards],
                "generated_cards": cards,
                "last_updated": int(self._clock() * 1000),
            }
        )
        self.save(scope_file, state)
        return state

    def update_edited_fields(
        self, scope_file: str, note_id: int, fields: Iterable[Field]
    ) -> DeckState:
        existing = self.get(scope_file) or DeckState()
        edited = dict(existing.edited_cards)
        edited[note_id] = list(fields)
        state = existing.model_copy(
            update={"edited_cards": edited, "last_updated": int(self._clock() * 1000)}
        )
        self.save(scope_file, state)
        return state
