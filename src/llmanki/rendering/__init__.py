"""Template, cloze and media rendering."""

from .cloze import (
    add_cloze_hint,
    card_type_label,
    cloze_views,
    create_cloze_text,
    extract_cloze_answers,
    extract_cloze_numbers,
    render_cloze,
)
from .html_text import card_view_sides, strip_html_for_llm
from .media_resolver import find_media_key, resolve_media
from .template_renderer import render, render_card, replace_fields

__all__ = [
    "add_cloze_hint",
    "card_type_label",
    "card_view_sides",
    "cloze_views",
    "create_cloze_text",
    "extract_cloze_answers",
    "extract_cloze_numbers",
    "find_media_key",
    "render",
    "render_card",
    "render_cloze",
    "replace_fields",
    "resolve_media",
    "strip_html_for_llm",
]
