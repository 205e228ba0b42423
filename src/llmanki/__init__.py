"""LLM-assisted flashcard review: rendering, analysis caching and deck insights."""

__version__ = "0.3.0"
