"""Resolve media references in rendered card HTML.

Images found in the media map are inlined as ``data:`` URIs; anything that
cannot be resolved degrades to a visible placeholder that keeps the original
filename for diagnosis. Resolution never raises.
"""

import asyncio
import base64
import html
import mimetypes
import re
from collections.abc import Mapping

from ..utils.logging import get_logger

logger = get_logger(__name__)

_IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_SRC_ATTR = re.compile(
    r"""\bsrc\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'>]+))""",
    re.IGNORECASE,
)
_SOUND_TAG = re.compile(r"\[sound:([^\]]+)\]", re.IGNORECASE)
_HEX_RUN = re.compile(r"[0-9a-fA-F]{32,}")
_EXTERNAL_SRC = ("data:", "http://", "https://")

MAX_DISPLAY_NAME = 30


def find_media_key(name: str, media: Mapping[str, bytes]) -> str | None:
    """Find the media map key for a referenced filename.

    Tries the exact name, then the name with a single digit prefix (re-export
    renaming), then any key sharing a 32+ character hex run with the name.
    """
    if name in media:
        return name
    for digit in range(10):
        candidate = f"{digit}{name}"
        if candidate in media:
            return candidate
    hex_match = _HEX_RUN.search(name)
    if hex_match:
        run = hex_match.group(0).lower()
        for key in media:
            if run in key.lower():
                return key
    return None


def _display_name(name: str) -> str:
    if len(name) > MAX_DISPLAY_NAME:
        return name[:MAX_DISPLAY_NAME] + "..."
    return name


def _encode_data_uri(filename: str, data: bytes) -> str:
    mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def missing_image_placeholder(name: str) -> str:
    return (
        f'<span class="missing-media" data-filename="{html.escape(name)}">'
        f"[Missing image: {html.escape(_display_name(name))}]</span>"
    )


async def _resolve_img(tag: str, media: Mapping[str, bytes]) -> str:
    src = _SRC_ATTR.search(tag)
    if src is None:
        return tag
    group = next(g for g in ("dq", "sq", "bare") if src.group(g) is not None)
    name = src.group(group)
    if name.lower().startswith(_EXTERNAL_SRC):
        return tag

    key = find_media_key(name, media)
    if key is None:
        logger.debug("media_not_found", filename=name)
        return missing_image_placeholder(name)

    data_uri = await asyncio.to_thread(_encode_data_uri, key, media[key])
    if group == "bare":
        data_uri = f'"{data_uri}"'
    rewritten = tag[: src.start(group)] + data_uri + tag[src.end(group) :]
    # "<img" is four characters
    return (
        rewritten[:4]
        + f' data-filename="{html.escape(name)}"'
        + rewritten[4:]
    )


def _resolve_sound(match: re.Match[str], media: Mapping[str, bytes]) -> str:
    name = match.group(1)
    escaped = html.escape(name)
    if find_media_key(name, media) is not None:
        return f'<span class="sound-reference" data-filename="{escaped}">🔊 {escaped}</span>'
    return f'<span class="sound-missing" data-filename="{escaped}">🔇 {escaped}</span>'


async def resolve_media(html_text: str, media: Mapping[str, bytes]) -> str:
    """Inline images and mark sound references in ``html_text``.

    Args:
        html_text: Rendered card HTML
        media: Media map, filename to raw bytes

    Returns:
        HTML with every image and sound reference resolved or replaced by a
        placeholder
    """
    parts: list[str] = []
    position = 0
    for match in _IMG_TAG.finditer(html_text):
        parts.append(html_text[position : match.start()])
        parts.append(await _resolve_img(match.group(0), media))
        position = match.end()
    parts.append(html_text[position:])

    return _SOUND_TAG.sub(lambda m: _resolve_sound(m, media), "".join(parts))
