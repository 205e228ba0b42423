"""Load a collection from a JSON snapshot and an optional media directory.

Snapshot layout (camelCase keys)::

    {
      "decks":  [{"id", "name", "description", "parentId"}],
      "models": [{"id", "name", "type", "fields", "templates", "css"}],
      "notes":  [{"id", "modelId", "fields", "tags", "guid", "mod"}],
      "cards":  [{"id", "noteId", "deckId", "ord", "queue", "due",
                  "interval", "factor", "reps", "lapses"}]
    }

Model ``fields`` may be plain names or ``{"name", "ord", "sticky"}`` objects;
templates carry ``qfmt``/``afmt``. A card's type is derived from its model.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..domain.entities import (
    Card,
    CardType,
    Collection,
    Deck,
    FieldDef,
    Model,
    ModelKind,
    Note,
    SchedulingData,
    Template,
)
from ..exceptions import CollectionLoadError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class _Snapshot(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, protected_namespaces=()
    )


class _DeckRecord(_Snapshot):
    id: int
    name: str
    description: str = ""
    parent_id: int | None = None


class _FieldRecord(_Snapshot):
    name: str
    ord: int = 0
    sticky: bool = False


class _TemplateRecord(_Snapshot):
    name: str = ""
    ord: int = 0
    qfmt: str = ""
    afmt: str = ""


class _ModelRecord(_Snapshot):
    id: int
    name: str
    type: int = 0
    fields: list[_FieldRecord] = PydanticField(default_factory=list)
    templates: list[_TemplateRecord] = PydanticField(default_factory=list)
    css: str = ""

    @field_validator("fields", mode="before")
    @classmethod
    def normalize_field_names(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [
                {"name": item, "ord": index} if isinstance(item, str) else item
                for index, item in enumerate(v)
            ]
        return v


class _NoteRecord(_Snapshot):
    id: int
    model_id: int
    fields: list[str] = PydanticField(default_factory=list)
    tags: list[str] = PydanticField(default_factory=list)
    guid: str = ""
    mod: int = 0


class _CardRecord(_Snapshot):
    id: int
    note_id: int
    deck_id: int
    ord: int = 0
    queue: int = 0
    due: int = 0
    interval: int = 0
    factor: int = 0
    reps: int = 0
    lapses: int = 0


class _CollectionRecord(_Snapshot):
    decks: list[_DeckRecord] = PydanticField(default_factory=list)
    models: list[_ModelRecord] = PydanticField(default_factory=list)
    notes: list[_NoteRecord] = PydanticField(default_factory=list)
    cards: list[_CardRecord] = PydanticField(default_factory=list)


def determine_card_type(model: Model) -> CardType:
    """Derive the card type from the model kind and name."""
    if model.is_cloze:
        return CardType.CLOZE
    name = model.name.lower()
    if "reversed" in name and "optional" in name:
        return CardType.BASIC_OPTIONAL_REVERSED
    if "reversed" in name:
        return CardType.BASIC_REVERSED
    if "type" in name:
        return CardType.BASIC_TYPE
    return CardType.BASIC


def _to_model(record: _ModelRecord) -> Model:
    return Model(
        id=record.id,
        name=record.name,
        kind=ModelKind.CLOZE if record.type == ModelKind.CLOZE else ModelKind.STANDARD,
        fields=tuple(
            FieldDef(name=f.name, ordinal=f.ord, sticky=f.sticky)
            for f in sorted(record.fields, key=lambda f: f.ord)
        ),
        templates=tuple(
            Template(name=t.name, ordinal=t.ord, question_format=t.qfmt, answer_format=t.afmt)
            for t in sorted(record.templates, key=lambda t: t.ord)
        ),
        css=record.css,
    )


def load_media_dir(media_dir: Path) -> dict[str, bytes]:
    """Read every regular file of ``media_dir`` into a filename to bytes map."""
    if not media_dir.is_dir():
        raise CollectionLoadError(
            f"Media directory not found: {media_dir}",
            suggestion="Pass an existing directory with --media",
        )
    return {p.name: p.read_bytes() for p in sorted(media_dir.iterdir()) if p.is_file()}


def build_collection(data: dict[str, Any], media: dict[str, bytes] | None = None) -> Collection:
    """Build a collection from an already-decoded snapshot document.

    Raises:
        CollectionLoadError: If the document does not match the snapshot layout
    """
    try:
        record = _CollectionRecord.model_validate(data)
    except ValidationError as e:
        raise CollectionLoadError(
            "Collection snapshot has an invalid layout",
            suggestion="Expected top-level decks, models, notes and cards arrays",
            context={"errors": e.error_count()},
        ) from e

    models = {m.id: _to_model(m) for m in record.models}
    notes = {
        n.id: Note(
            id=n.id,
            model_id=n.model_id,
            fields=tuple(n.fields),
            tags=tuple(n.tags),
            guid=n.guid,
            mod=n.mod,
        )
        for n in record.notes
    }
    cards = {}
    for c in record.cards:
        note = notes.get(c.note_id)
        model = models.get(note.model_id) if note else None
        cards[c.id] = Card(
            id=c.id,
            note_id=c.note_id,
            deck_id=c.deck_id,
            ordinal=c.ord,
            card_type=determine_card_type(model) if model else CardType.BASIC,
            scheduling=SchedulingData(
                queue=c.queue,
                due=c.due,
                interval=c.interval,
                factor=c.factor,
                reps=c.reps,
                lapses=c.lapses,
            ),
        )

    return Collection(
        decks={
            d.id: Deck(id=d.id, name=d.name, description=d.description, parent_id=d.parent_id)
            for d in record.decks
        },
        models=models,
        notes=notes,
        cards=cards,
        media=media or {},
    )


def load_collection(path: Path, media_dir: Path | None = None) -> Collection:
    """Load a collection snapshot file.

    Args:
        path: JSON snapshot path
        media_dir: Optional directory holding the media files

    Raises:
        CollectionLoadError: If the file is missing, unreadable or malformed
    """
    if not path.exists():
        raise CollectionLoadError(
            f"Collection file not found: {path}",
            suggestion="Check the path to the collection snapshot",
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise CollectionLoadError(
            f"Cannot read collection file {path}: {e}",
            suggestion="The snapshot must be a UTF-8 JSON document",
        ) from e
    if not isinstance(data, dict):
        raise CollectionLoadError(f"Collection file {path} is not a JSON object")

    media = load_media_dir(media_dir) if media_dir else {}
    collection = build_collection(data, media)
    logger.debug(
        "collection_loaded",
        path=str(path),
        decks=len(collection.decks),
        notes=len(collection.notes),
        cards=len(collection.cards),
        media_files=len(media),
    )
    return collection
