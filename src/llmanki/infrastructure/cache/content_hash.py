"""Stable content fingerprints for card fields.

djb2 over the UTF-16 code units of the joined fields, with 32-bit signed
wrap-around, rendered as unpadded lowercase hex of the unsigned value. Hashes
computed here match previously persisted ones; they are cheap change
detectors, not collision-resistant digests.
"""

from __future__ import annotations

from collections.abc import Iterable

from ...domain.entities import Field

_DJB2_SEED = 5381


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _utf16_code_units(text: str) -> list[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def djb2(text: str) -> str:
    h = _DJB2_SEED
    for code in _utf16_code_units(text):
        h = _to_int32(_to_int32(_to_int32(h << 5) + h) ^ code)
    return format(h & 0xFFFFFFFF, "x")


def join_fields(fields: Iterable[Field]) -> str:
    return "|".join(f"{f.name}:{f.value}" for f in fields)


def generate_content_hash(fields: Iterable[Field]) -> str:
    """Hash of the field content alone; used by the per-scope tier."""
    return djb2(join_fields(fields))


def generate_cache_key(deck_name: str, fields: Iterable[Field]) -> str:
    """Hash of the full deck path plus field content; shared across files."""
    return djb2(deck_name + "||" + join_fields(fields))
