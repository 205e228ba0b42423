"""Domain entities for an imported flashcard collection."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .analysis import SuggestedCard


class CardType(str, Enum):
    """Presentation type of a card."""

    BASIC = "basic"
    BASIC_REVERSED = "basic-reversed"
    BASIC_OPTIONAL_REVERSED = "basic-optional-reversed"
    BASIC_TYPE = "basic-type"
    CLOZE = "cloze"


class ModelKind(IntEnum):
    """Model type flag as stored in the collection."""

    STANDARD = 0
    CLOZE = 1


@dataclass(frozen=True)
class Field:
    """A named field value (HTML)."""

    name: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class FieldDef:
    """Field definition on a model."""

    name: str
    ordinal: int
    sticky: bool = False


@dataclass(frozen=True)
class Template:
    """Question/answer template pair of a standard model."""

    name: str
    ordinal: int
    question_format: str
    answer_format: str


@dataclass(frozen=True)
class Model:
    """Schema and presentation shared by notes of one kind."""

    id: int
    name: str
    kind: ModelKind
    fields: tuple[FieldDef, ...]
    templates: tuple[Template, ...] = ()
    css: str = ""

    @property
    def is_cloze(self) -> bool:
        return self.kind == ModelKind.CLOZE

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class Deck:
    """Named grouping of cards; ``name`` is the full ``::`` path."""

    id: int
    name: str
    description: str = ""
    parent_id: int | None = None


@dataclass(frozen=True)
class Note:
    """User-entered content from which one or more cards are generated."""

    id: int
    model_id: int
    fields: tuple[str, ...]
    tags: tuple[str, ...] = ()
    guid: str = ""
    mod: int = 0


@dataclass(frozen=True)
class SchedulingData:
    """Scheduling metadata; read, never computed here."""

    queue: int = 0
    due: int = 0
    interval: int = 0
    factor: int = 0
    reps: int = 0
    lapses: int = 0


@dataclass(frozen=True)
class Card:
    """A single question/answer presentation of a note."""

    id: int
    note_id: int
    deck_id: int
    ordinal: int
    card_type: CardType = CardType.BASIC
    scheduling: SchedulingData = field(default_factory=SchedulingData)


@dataclass
class Collection:
    """In-memory note/card/model graph plus the media map."""

    decks: dict[int, Deck] = field(default_factory=dict)
    models: dict[int, Model] = field(default_factory=dict)
    notes: dict[int, Note] = field(default_factory=dict)
    cards: dict[int, Card] = field(default_factory=dict)
    media: dict[str, bytes] = field(default_factory=dict)

    def deck_name(self, deck_id: int) -> str:
        deck = self.decks.get(deck_id)
        return deck.name if deck else "Unknown"

    def find_deck(self, name: str) -> Deck | None:
        for deck in self.decks.values():
            if deck.name == name:
                return deck
        return None

    def cards_in_deck(self, deck_id: int, include_children: bool = True) -> list[Card]:
        """Return cards of a deck ordered by id.

        Child decks are matched by the ``Parent::Child`` naming convention.
        """
        deck_ids = {deck_id}
        if include_children and deck_id in self.decks:
            prefix = self.decks[deck_id].name + "::"
            deck_ids.update(
                d.id for d in self.decks.values() if d.name.startswith(prefix)
            )
        return sorted(
            (c for c in self.cards.values() if c.deck_id in deck_ids),
            key=lambda c: c.id,
        )

    def accept_suggestion(
        self, suggestion: SuggestedCard, deck_id: int, model_id: int
    ) -> Card:
        """Turn an accepted suggestion into a real note and card.

        Suggested field values are matched to the model's fields by name
        (case-insensitive), falling back to position.
        """
        model = self.models[model_id]
        by_name = {f.name.lower(): f.value for f in suggestion.fields}
        values = []
        for index, field_def in enumerate(model.fields):
            value = by_name.get(field_def.name.lower())
            if value is None and index < len(suggestion.fields):
                value = suggestion.fields[index].value
            values.append(value or "")

        new_id = max([*self.notes, *self.cards, int(time.time() * 1000)]) + 1
        note = Note(
            id=new_id,
            model_id=model_id,
            fields=tuple(values),
            guid=uuid.uuid4().hex[:10],
            mod=int(time.time()),
        )
        card = Card(
            id=new_id,
            note_id=note.id,
            deck_id=deck_id,
            ordinal=0,
            card_type=CardType(suggestion.type),
        )
        self.notes[note.id] = note
        self.cards[card.id] = card
        return card
