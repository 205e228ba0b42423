"""Analysis cache, deck state and their key-value stores."""

from .analysis_cache import (
    AnalysisCache,
    GlobalCacheEntry,
    GlobalCacheStats,
    ScopeCacheEntry,
    ScopeCacheInfo,
    format_bytes,
)
from .content_hash import djb2, generate_cache_key, generate_content_hash
from .deck_state import DeckState, DeckStateStore
from .stores import DiskCacheStore, InMemoryStore

__all__ = [
    "AnalysisCache",
    "DeckState",
    "DeckStateStore",
    "DiskCacheStore",
    "GlobalCacheEntry",
    "GlobalCacheStats",
    "InMemoryStore",
    "ScopeCacheEntry",
    "ScopeCacheInfo",
    "djb2",
    "format_bytes",
    "generate_cache_key",
    "generate_content_hash",
]
