"""Test fixtures package."""

from .collections import (
    BASIC_MODEL_ID,
    CLOZE_MODEL_ID,
    DECK_ID,
    basic_model,
    cloze_model,
    make_collection,
    snapshot_document,
)
from .mock_provider import MockProvider, analysis_json

__all__ = [
    "BASIC_MODEL_ID",
    "CLOZE_MODEL_ID",
    "DECK_ID",
    "MockProvider",
    "analysis_json",
    "basic_model",
    "cloze_model",
    "make_collection",
    "snapshot_document",
]
