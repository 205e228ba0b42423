"""Tests for cloze deletion processing."""

import pytest

from llmanki.domain.entities import CardType, Field
from llmanki.rendering import (
    add_cloze_hint,
    card_type_label,
    cloze_views,
    create_cloze_text,
    extract_cloze_answers,
    extract_cloze_numbers,
    render_cloze,
    render_card,
)
from llmanki.rendering.cloze import extract_revealed_answers
from tests.fixtures import make_collection
from tests.fixtures.collections import add_cloze_card

MITOCHONDRIA = "The {{c1::mitochondria}} is the {{c2::powerhouse}}"


class TestRenderCloze:
    """Tests for render_cloze."""

    def test_hides_target_group(self) -> None:
        front = render_cloze(MITOCHONDRIA, target=1, show_answer=False)
        assert front == (
            'The <span class="cloze cloze-hidden">[...]</span> is the powerhouse'
        )

    def test_reveals_target_group(self) -> None:
        back = render_cloze(MITOCHONDRIA, target=1, show_answer=True)
        assert back == 'The <span class="cloze">mitochondria</span> is the powerhouse'

    def test_hint_replaces_placeholder(self) -> None:
        front = render_cloze("{{c1::Paris::capital}} is in France", 1, show_answer=False)
        assert front == '<span class="cloze cloze-hint">capital</span> is in France'

    def test_hint_dropped_in_answer(self) -> None:
        back = render_cloze("{{c1::Paris::capital}}", 1, show_answer=True)
        assert back == '<span class="cloze">Paris</span>'

    def test_other_groups_with_hints_show_answer(self) -> None:
        front = render_cloze("{{c1::a}} {{c2::b::hint}}", 1, show_answer=False)
        assert front.endswith(" b")

    def test_repeated_group_hidden_everywhere(self) -> None:
        front = render_cloze("{{c1::x}} and {{c1::y}}", 1, show_answer=False)
        assert front.count("[...]") == 2

    def test_no_markup_passthrough(self) -> None:
        assert render_cloze("plain text", 1, show_answer=False) == "plain text"


@pytest.mark.parametrize(
    "text",
    [
        MITOCHONDRIA,
        "{{c1::one}} {{c2::two::hint}} {{c3::three}}",
        "{{c1::x}} and {{c1::y}} and {{c2::z}}",
        "<b>{{c2::bold answer}}</b> {{c10::ten}}",
    ],
)
def test_reveal_reproduces_answers_for_every_ordinal(text: str) -> None:
    for number in extract_cloze_numbers(text):
        back = render_cloze(text, number, show_answer=True)
        assert extract_revealed_answers(back) == extract_cloze_answers(text, number)


def test_cloze_views_uses_ordinal_plus_one() -> None:
    fields = [Field("Text", MITOCHONDRIA), Field("Extra", "")]
    front, back = cloze_views(fields, ordinal=1)
    assert "[...]" in front
    assert "mitochondria" in front
    assert '<span class="cloze">powerhouse</span>' in back


def test_cloze_views_appends_extra_to_back_only() -> None:
    fields = [Field("Text", "{{c1::a}}"), Field("Extra", "more info")]
    front, back = cloze_views(fields, ordinal=0)
    assert "more info" not in front
    assert back.endswith('<hr><div class="extra">more info</div>')


@pytest.mark.asyncio
async def test_render_cloze_card_mitochondria_example() -> None:
    collection = make_collection(0)
    card = add_cloze_card(collection, 10, MITOCHONDRIA, ordinal=0)

    rendered = await render_card(collection, card)

    assert '<span class="cloze cloze-hidden">[...]</span>' in rendered.front
    assert "mitochondria" not in rendered.front
    assert "powerhouse" in rendered.front
    assert '<span class="cloze">mitochondria</span>' in rendered.back
    assert "powerhouse" in rendered.back
    assert rendered.card_type == CardType.CLOZE


def test_extract_cloze_numbers() -> None:
    assert extract_cloze_numbers("{{c3::a}} {{c1::b}} {{c3::c}}") == [1, 3]
    assert extract_cloze_numbers("none") == []


def test_create_and_hint() -> None:
    text = create_cloze_text("Paris", 2)
    assert text == "{{c2::Paris}}"
    assert add_cloze_hint(text, "city") == "{{c2::Paris::city}}"


def test_card_type_label() -> None:
    assert card_type_label(CardType.CLOZE) == "Cloze"
    assert card_type_label("basic-reversed") == "Basic (and reversed)"
    assert card_type_label("nonsense") == "Unknown"
