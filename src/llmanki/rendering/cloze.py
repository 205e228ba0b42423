"""Cloze deletion processing.

Syntax is ``{{cN::answer}}`` or ``{{cN::answer::hint}}`` with N a positive
integer. A card targets one N (its ordinal + 1); the question view hides that
group and reveals every other group as plain text.
"""

import re
from collections.abc import Sequence

from ..domain.entities import CardType, Field

CLOZE_PATTERN = re.compile(r"\{\{c(\d+)::([^}]+?)(?:::([^}]+))?\}\}")
_CLOZE_NUMBER = re.compile(r"\{\{c(\d+)::")
_REVEALED_ANSWER = re.compile(r'<span class="cloze">(.*?)</span>', re.DOTALL)

HIDDEN_PLACEHOLDER = "[...]"

_CARD_TYPE_LABELS = {
    CardType.BASIC: "Basic",
    CardType.BASIC_REVERSED: "Basic (and reversed)",
    CardType.BASIC_OPTIONAL_REVERSED: "Basic (optional reversed)",
    CardType.BASIC_TYPE: "Basic (type in answer)",
    CardType.CLOZE: "Cloze",
}


def render_cloze(text: str, target: int, show_answer: bool) -> str:
    """Produce the question or answer view of cloze text for one target group.

    Args:
        text: Field HTML containing cloze markup
        target: 1-based cloze number being tested
        show_answer: Reveal the target group instead of hiding it

    Returns:
        HTML with every cloze token replaced
    """

    def _replace(match: re.Match[str]) -> str:
        number, answer, hint = int(match.group(1)), match.group(2), match.group(3)
        if number != target:
            return answer
        if show_answer:
            return f'<span class="cloze">{answer}</span>'
        if hint:
            return f'<span class="cloze cloze-hint">{hint}</span>'
        return f'<span class="cloze cloze-hidden">{HIDDEN_PLACEHOLDER}</span>'

    return CLOZE_PATTERN.sub(_replace, text)


def cloze_views(fields: Sequence[Field], ordinal: int) -> tuple[str, str]:
    """Build (front, back) for a cloze card.

    The first field carries the cloze text. A non-empty second field is
    appended to the back only.
    """
    target = ordinal + 1
    main = fields[0].value if fields else ""
    front = render_cloze(main, target, show_answer=False)
    back = render_cloze(main, target, show_answer=True)
    if len(fields) > 1 and fields[1].value:
        back += f'<hr><div class="extra">{fields[1].value}</div>'
    return front, back


def extract_cloze_numbers(text: str) -> list[int]:
    """Return the distinct cloze numbers used in ``text``, ascending."""
    return sorted({int(n) for n in _CLOZE_NUMBER.findall(text)})


def extract_cloze_answers(text: str, number: int) -> list[str]:
    """Return the literal answers of group ``number`` in source order."""
    return [
        match.group(2)
        for match in CLOZE_PATTERN.finditer(text)
        if int(match.group(1)) == number
    ]


def extract_revealed_answers(answer_html: str) -> list[str]:
    """Return the answers wrapped by the answer view, in order."""
    return _REVEALED_ANSWER.findall(answer_html)


def create_cloze_text(text: str, number: int) -> str:
    return f"{{{{c{number}::{text}}}}}"


def add_cloze_hint(cloze_text: str, hint: str) -> str:
    """Turn ``{{c1::answer}}`` into ``{{c1::answer::hint}}``."""
    return re.sub(r"\}\}$", lambda _: f"::{hint}}}}}", cloze_text)


def card_type_label(card_type: CardType | str) -> str:
    try:
        return _CARD_TYPE_LABELS[CardType(card_type)]
    except ValueError:
        return "Unknown"
