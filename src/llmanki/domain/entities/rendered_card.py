"""Rendered card entity and the card view union."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from .analysis import SuggestedCard
from .collection import CardType, Field


@dataclass(frozen=True)
class RenderedCard:
    """Displayable result of rendering a card.

    Derived on demand from card, note, model and media; cheap to recompute,
    so it is never cached.
    """

    id: int
    note_id: int
    deck_id: int
    deck_name: str
    model_name: str
    card_type: CardType
    front: str
    back: str
    fields: tuple[Field, ...]
    tags: tuple[str, ...]
    css: str
    kind: Literal["rendered"] = "rendered"

    def field_dicts(self) -> list[dict[str, str]]:
        return [f.to_dict() for f in self.fields]


# Consumers match on ``kind``
CardView = Union[RenderedCard, SuggestedCard]
