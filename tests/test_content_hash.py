"""Tests for content hashing."""

from llmanki.domain.entities import Field
from llmanki.infrastructure.cache import djb2, generate_cache_key, generate_content_hash
from llmanki.infrastructure.cache.content_hash import _utf16_code_units, join_fields


def test_djb2_known_values() -> None:
    assert djb2("") == "1505"
    assert djb2("a") == "2b5c4"
    assert djb2("ab") == "596e26"


def test_djb2_wraps_to_32_bits() -> None:
    value = djb2("x" * 10_000)
    assert len(value) <= 8
    assert int(value, 16) < 2**32


def test_utf16_code_units_split_astral_characters() -> None:
    assert _utf16_code_units("é") == [0xE9]
    assert _utf16_code_units("😀") == [0xD83D, 0xDE00]


def test_join_fields() -> None:
    fields = [Field("Front", "q"), Field("Back", "a")]
    assert join_fields(fields) == "Front:q|Back:a"


def test_content_hash_is_stable() -> None:
    fields = [Field("Front", "What is ATP?"), Field("Back", "Energy currency")]
    assert generate_content_hash(fields) == generate_content_hash(list(fields))


def test_content_hash_changes_with_any_field() -> None:
    fields = [Field("Front", "q"), Field("Back", "a")]
    changed = [Field("Front", "q"), Field("Back", "a!")]
    renamed = [Field("Front", "q"), Field("Answer", "a")]
    base = generate_content_hash(fields)
    assert generate_content_hash(changed) != base
    assert generate_content_hash(renamed) != base


def test_cache_key_includes_deck_path() -> None:
    fields = [Field("Front", "q")]
    assert generate_cache_key("Bio", fields) != generate_cache_key("Bio::Cells", fields)
    assert generate_cache_key("Bio", fields) == djb2("Bio||Front:q")
