"""Tests for per-scope deck state."""

from llmanki.domain.entities import Card, CardType, Field, Note
from llmanki.infrastructure.cache import DeckStateStore, InMemoryStore
from llmanki.infrastructure.cache.deck_state import state_key

SCOPE = "biology.apkg"


def test_missing_state(store) -> None:
    assert DeckStateStore(store).get(SCOPE) is None


def test_marked_for_deletion_sorted_and_deduplicated(store, clock) -> None:
    states = DeckStateStore(store, clock=clock)
    state = states.update_marked_for_deletion(SCOPE, [5, 2, 5])
    assert state.marked_for_deletion == [2, 5]
    assert state.last_updated == int(clock.now * 1000)
    assert states.get(SCOPE).marked_for_deletion == [2, 5]


def test_updates_keep_other_parts(store) -> None:
    states = DeckStateStore(store)
    card = Card(id=10, note_id=11, deck_id=1, ordinal=0, card_type=CardType.CLOZE)
    note = Note(id=11, model_id=200, fields=("{{c1::x}}", ""))

    states.update_marked_for_deletion(SCOPE, [1])
    states.update_generated_cards(SCOPE, [(card, note)])
    states.update_edited_fields(SCOPE, 3, [Field("Front", "edited")])

    state = states.get(SCOPE)
    assert state.marked_for_deletion == [1]
    assert state.generated_card_ids == [10]
    assert state.generated_cards[0].card == card
    assert state.generated_cards[0].note == note
    assert state.edited_cards == {3: [Field("Front", "edited")]}


def test_corrupt_state_ignored() -> None:
    store = InMemoryStore({state_key(SCOPE): "not json"})
    assert DeckStateStore(store).get(SCOPE) is None


def test_clear(store) -> None:
    states = DeckStateStore(store)
    states.update_marked_for_deletion(SCOPE, [1])
    states.clear(SCOPE)
    assert states.get(SCOPE) is None
