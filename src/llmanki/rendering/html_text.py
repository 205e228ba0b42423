"""Plain-text views of card HTML for provider prompts."""

import re

from bs4 import BeautifulSoup

from ..domain.entities import CardView, RenderedCard, SuggestedCard

_WHITESPACE = re.compile(r"\s+")


def _image_name(tag) -> str:
    name = tag.get("data-filename") or tag.get("src") or ""
    if name.startswith("data:"):
        return "inline image"
    return name


def strip_html_for_llm(html: str, send_images: bool = True) -> str:
    """Reduce card HTML to whitespace-normalized text.

    With ``send_images`` images (and missing-image placeholders) are kept as
    ``[IMAGE: filename]`` markers; otherwise they are dropped entirely.
    """
    soup = BeautifulSoup(html, "html.parser")
    images = soup.find_all("img") + soup.find_all("span", class_="missing-media")
    for tag in images:
        if send_images:
            tag.replace_with(f"[IMAGE: {_image_name(tag)}]")
        else:
            tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text()).strip()


def card_view_sides(view: CardView, send_images: bool = True) -> tuple[str, str]:
    """Return (front, back) prompt text for a rendered or suggested card."""
    match view:
        case RenderedCard(front=front, back=back):
            return (
                strip_html_for_llm(front, send_images),
                strip_html_for_llm(back, send_images),
            )
        case SuggestedCard(fields=fields):
            values = [strip_html_for_llm(f.value, send_images) for f in fields]
            front = values[0] if values else ""
            back = " / ".join(values[1:])
            return front, back
    raise TypeError(f"Unsupported card view: {type(view).__name__}")
