"""Render cards from their model templates and note fields."""

import re
from collections.abc import Mapping, Sequence

from ..domain.entities import Card, Collection, Field, Model, Note, RenderedCard
from ..exceptions import RenderError
from .cloze import cloze_views
from .media_resolver import resolve_media

_FRONT_SIDE = re.compile(r"\{\{FrontSide\}\}", re.IGNORECASE)
_LEFTOVER_TAG = re.compile(r"\{\{[^}]+\}\}")


def replace_fields(template: str, fields: Sequence[Field]) -> str:
    """Substitute field values into a question or answer template.

    Per field, in definition order: ``{{Name}}``, then ``{{#Name}}...{{/Name}}``
    (kept when the value is non-blank), then ``{{^Name}}...{{/Name}}`` (kept
    when blank). ``{{FrontSide}}`` and any unmatched tag are then removed.
    """
    result = template
    for field in fields:
        name = re.escape(field.name)
        value = field.value
        present = bool(value.strip())

        result = re.sub(
            rf"\{{\{{{name}\}}\}}", lambda _: value, result, flags=re.IGNORECASE
        )
        result = re.sub(
            rf"\{{\{{#{name}\}}\}}([\s\S]*?)\{{\{{/{name}\}}\}}",
            lambda m: m.group(1) if present else "",
            result,
            flags=re.IGNORECASE,
        )
        result = re.sub(
            rf"\{{\{{\^{name}\}}\}}([\s\S]*?)\{{\{{/{name}\}}\}}",
            lambda m: "" if present else m.group(1),
            result,
            flags=re.IGNORECASE,
        )

    result = _FRONT_SIDE.sub("", result)
    return _LEFTOVER_TAG.sub("", result)


def resolve_fields(note: Note, model: Model) -> tuple[Field, ...]:
    """Pair model field names with note values by position; missing values are empty."""
    return tuple(
        Field(name=field_def.name, value=note.fields[index] if index < len(note.fields) else "")
        for index, field_def in enumerate(model.fields)
    )


async def render(
    card: Card,
    note: Note,
    model: Model,
    media: Mapping[str, bytes],
    deck_name: str = "Unknown",
) -> RenderedCard:
    """Render one card to front/back HTML.

    Deterministic for identical inputs.

    Raises:
        RenderError: If a standard model has no template for the card ordinal
    """
    fields = resolve_fields(note, model)

    if model.is_cloze:
        front, back = cloze_views(fields, card.ordinal)
    else:
        if not 0 <= card.ordinal < len(model.templates):
            raise RenderError(
                f"Template not found for card ordinal {card.ordinal}",
                suggestion="Check that the model defines a template for every card ordinal",
                context={"card_id": card.id, "model": model.name},
            )
        template = model.templates[card.ordinal]
        front = replace_fields(template.question_format, fields)
        back = replace_fields(template.answer_format, fields)

    front = await resolve_media(front, media)
    back = await resolve_media(back, media)

    return RenderedCard(
        id=card.id,
        note_id=card.note_id,
        deck_id=card.deck_id,
        deck_name=deck_name,
        model_name=model.name,
        card_type=card.card_type,
        front=front,
        back=back,
        fields=fields,
        tags=note.tags,
        css=model.css,
    )


async def render_card(collection: Collection, card: Card) -> RenderedCard:
    """Render a card of a collection, looking up its note, model and deck.

    Raises:
        RenderError: If the note, model or template is missing
    """
    note = collection.notes.get(card.note_id)
    if note is None:
        raise RenderError(
            f"Note not found for card {card.id}",
            context={"card_id": card.id, "note_id": card.note_id},
        )
    model = collection.models.get(note.model_id)
    if model is None:
        raise RenderError(
            f"Model not found for note {note.id}",
            context={"note_id": note.id, "model_id": note.model_id},
        )
    return await render(
        card, note, model, collection.media, collection.deck_name(card.deck_id)
    )
