"""Tests for template field substitution and card rendering."""

import pytest

from llmanki.domain.entities import Card, Field, Note
from llmanki.exceptions import RenderError
from llmanki.rendering import render, render_card, replace_fields
from llmanki.rendering.template_renderer import resolve_fields
from tests.fixtures import BASIC_MODEL_ID, basic_model, make_collection


class TestReplaceFields:
    """Tests for replace_fields."""

    def test_exact_field(self) -> None:
        fields = [Field("Front", "What is ATP?")]
        assert replace_fields("<div>{{Front}}</div>", fields) == "<div>What is ATP?</div>"

    def test_field_names_are_case_insensitive(self) -> None:
        assert replace_fields("{{front}}", [Field("Front", "x")]) == "x"

    def test_conditional_kept_when_field_present(self) -> None:
        fields = [Field("Extra", "note")]
        template = "A{{#Extra}}<i>{{Extra}}</i>{{/Extra}}B"
        assert replace_fields(template, fields) == "A<i>note</i>B"

    def test_conditional_dropped_when_field_blank(self) -> None:
        fields = [Field("Extra", "   ")]
        assert replace_fields("A{{#Extra}}<i>x</i>{{/Extra}}B", fields) == "AB"

    def test_negative_conditional(self) -> None:
        template = "{{^Extra}}none{{/Extra}}"
        assert replace_fields(template, [Field("Extra", "")]) == "none"
        assert replace_fields(template, [Field("Extra", "set")]) == ""

    def test_front_side_removed(self) -> None:
        fields = [Field("Back", "answer")]
        assert replace_fields("{{FrontSide}}<hr>{{Back}}", fields) == "<hr>answer"

    def test_unknown_tags_removed(self) -> None:
        assert replace_fields("{{Front}} {{Unknown}}{{type:Back}}", [Field("Front", "q")]) == "q "

    def test_value_with_regex_specials_is_literal(self) -> None:
        fields = [Field("Front", r"cost is $1 \1 (\d+)")]
        assert replace_fields("{{Front}}", fields) == r"cost is $1 \1 (\d+)"

    def test_field_name_with_regex_specials(self) -> None:
        assert replace_fields("{{Q (1)}}", [Field("Q (1)", "ok")]) == "ok"


def test_resolve_fields_pads_missing_values() -> None:
    note = Note(id=1, model_id=BASIC_MODEL_ID, fields=("only front",))
    fields = resolve_fields(note, basic_model())
    assert fields == (Field("Front", "only front"), Field("Back", ""))


@pytest.mark.asyncio
async def test_render_basic_card() -> None:
    collection = make_collection(1)
    rendered = await render_card(collection, collection.cards[1])

    assert rendered.front == "Question 1"
    assert rendered.back == "<hr id=answer>Answer 1"
    assert rendered.deck_name == "Biology"
    assert rendered.model_name == "Basic"
    assert rendered.kind == "rendered"
    assert rendered.tags == ("bio",)
    assert [f.name for f in rendered.fields] == ["Front", "Back"]


@pytest.mark.asyncio
async def test_render_is_deterministic() -> None:
    collection = make_collection(1)
    first = await render_card(collection, collection.cards[1])
    second = await render_card(collection, collection.cards[1])
    assert first == second


@pytest.mark.asyncio
async def test_render_missing_template_raises() -> None:
    card = Card(id=9, note_id=1, deck_id=1, ordinal=3)
    note = Note(id=1, model_id=BASIC_MODEL_ID, fields=("q", "a"))
    with pytest.raises(RenderError, match="Template not found"):
        await render(card, note, basic_model(), {})


@pytest.mark.asyncio
async def test_render_card_missing_note_raises() -> None:
    collection = make_collection(1)
    orphan = Card(id=50, note_id=999, deck_id=1, ordinal=0)
    with pytest.raises(RenderError, match="Note not found"):
        await render_card(collection, orphan)


@pytest.mark.asyncio
async def test_render_card_missing_model_raises() -> None:
    collection = make_collection(1)
    collection.notes[1] = Note(id=1, model_id=12345, fields=("q", "a"))
    with pytest.raises(RenderError, match="Model not found"):
        await render_card(collection, collection.cards[1])


@pytest.mark.asyncio
async def test_unknown_deck_name() -> None:
    collection = make_collection(1)
    collection.cards[1] = Card(id=1, note_id=1, deck_id=77, ordinal=0)
    rendered = await render_card(collection, collection.cards[1])
    assert rendered.deck_name == "Unknown"
