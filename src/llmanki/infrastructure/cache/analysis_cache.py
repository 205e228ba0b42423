"""Content-addressed cache of per-card analysis results.

Two tiers share one key-value store:

- the global tier, one array of ``{cacheKey, deckName, result, cachedAt}``
  keyed by deck path plus field content, so identical cards in different
  collection files reuse one analysis; it is authoritative.
- the legacy per-scope tier, one array of ``{cardId, contentHash, result,
  cachedAt}`` per collection file, consulted only when the global tier misses.

Every mutation reads, modifies and rewrites the whole document. Store and
decoding failures are logged and degrade to cache misses.
"""

import json
import re
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError
from pydantic.alias_generators import to_camel

from ...domain.entities import Field, LLMAnalysisResult, RenderedCard
from ...domain.interfaces import IKeyValueStore
from ...utils.logging import get_logger
from .content_hash import generate_cache_key, generate_content_hash

logger = get_logger(__name__)

CACHE_PREFIX = "llmanki-analysis-cache-"
CACHE_INDEX_KEY = "llmanki-analysis-cache-index"
GLOBAL_CACHE_KEY = "llmanki-global-analysis-cache"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GlobalCacheEntry(_Record):
    cache_key: str
    deck_name: str
    result: LLMAnalysisResult
    cached_at: int


class ScopeCacheEntry(_Record):
    card_id: int
    content_hash: str
    result: LLMAnalysisResult
    cached_at: int


class ScopeCacheInfo(_Record):
    deck_file_name: str
    card_count: int
    size_bytes: int
    last_updated: int


class GlobalCacheStats(_Record):
    entry_count: int = 0
    size_bytes: int = 0
    deck_names: list[str] = PydanticField(default_factory=list)


def sanitize_scope(scope_file: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", scope_file)


def scope_cache_key(scope_file: str) -> str:
    return f"{CACHE_PREFIX}{sanitize_scope(scope_file)}"


def format_bytes(size: int) -> str:
    """Format a byte count as a short human readable string."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 1):g} {units[unit]}"


class AnalysisCache:
    """Two-tier analysis cache over an injected key-value store.

    Construct once per process and pass it to the orchestrator and the
    aggregator; it holds no state besides the store.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ------------------------------------------------------------------
    # Raw document access
    # ------------------------------------------------------------------

    def _read_raw(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except Exception as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

    def _read_json(self, key: str) -> Any:
        raw = self._read_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("cache_document_corrupt", key=key, error=str(e))
            return None

    def _write_json(self, key: str, value: Any) -> int | None:
        """Serialize and store a document; returns its size in bytes."""
        data = json.dumps(value, ensure_ascii=False)
        try:
            self.store.set(key, data)
        except Exception as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return None
        return len(data.encode("utf-8"))

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except Exception as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))

    # ------------------------------------------------------------------
    # Tier documents
    # ------------------------------------------------------------------

    def _load_entries(self, key: str, model: type[_Record]) -> list[Any]:
        data = self._read_json(key)
        if not isinstance(data, list):
            return []
        entries = []
        for item in data:
            try:
                entries.append(model.model_validate(item))
            except ValidationError:
                logger.debug("cache_entry_skipped", key=key)
        return entries

    def _load_global(self) -> dict[str, GlobalCacheEntry]:
        return {
            entry.cache_key: entry
            for entry in self._load_entries(GLOBAL_CACHE_KEY, GlobalCacheEntry)
        }

    def _save_global(self, entries: dict[str, GlobalCacheEntry]) -> None:
        self._write_json(
            GLOBAL_CACHE_KEY,
            [entry.model_dump(by_alias=True, mode="json") for entry in entries.values()],
        )

    def _load_scope(self, scope_file: str) -> dict[int, ScopeCacheEntry]:
        return {
            entry.card_id: entry
            for entry in self._load_entries(scope_cache_key(scope_file), ScopeCacheEntry)
        }

    def _save_scope(self, scope_file: str, entries: dict[int, ScopeCacheEntry]) -> None:
        size = self._write_json(
            scope_cache_key(scope_file),
            [entry.model_dump(by_alias=True, mode="json") for entry in entries.values()],
        )
        if size is None:
            return
        index = self._load_index()
        index[scope_file] = ScopeCacheInfo(
            deck_file_name=scope_file,
            card_count=len(entries),
            size_bytes=size,
            last_updated=self._now_ms(),
        )
        self._save_index(index)

    def _load_index(self) -> dict[str, ScopeCacheInfo]:
        data = self._read_json(CACHE_INDEX_KEY)
        decks = data.get("decks") if isinstance(data, dict) else None
        if not isinstance(decks, dict):
            return {}
        index = {}
        for name, info in decks.items():
            try:
                index[name] = ScopeCacheInfo.model_validate(info)
            except ValidationError:
                logger.debug("cache_index_entry_skipped", scope=name)
        return index

    def _save_index(self, index: dict[str, ScopeCacheInfo]) -> None:
        self._write_json(
            CACHE_INDEX_KEY,
            {
                "decks": {
                    name: info.model_dump(by_alias=True, mode="json")
                    for name, info in index.items()
                }
            },
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(
        self,
        scope_file: str,
        card_id: int,
        fields: Sequence[Field],
        deck_name: str | None = None,
    ) -> LLMAnalysisResult | None:
        """Look up a prior result for a card.

        The global tier is tried first when ``deck_name`` is known; the
        per-scope tier only returns a result whose stored content hash
        matches the current fields.
        """
        if deck_name:
            entry = self._load_global().get(generate_cache_key(deck_name, fields))
            if entry is not None:
                return entry.result

        scoped = self._load_scope(scope_file).get(card_id)
        if scoped is None:
            return None
        if scoped.content_hash != generate_content_hash(fields):
            logger.debug("cache_content_changed", scope=scope_file, card_id=card_id)
            return None
        return scoped.result

    def put(
        self,
        scope_file: str,
        card_id: int,
        fields: Sequence[Field],
        result: LLMAnalysisResult,
        deck_name: str | None = None,
    ) -> None:
        """Store a result in both tiers."""
        now = self._now_ms()
        if deck_name:
            entries = self._load_global()
            key = generate_cache_key(deck_name, fields)
            entries[key] = GlobalCacheEntry(
                cache_key=key, deck_name=deck_name, result=result, cached_at=now
            )
            self._save_global(entries)

        scoped = self._load_scope(scope_file)
        scoped[card_id] = ScopeCacheEntry(
            card_id=card_id,
            content_hash=generate_content_hash(fields),
            result=result,
            cached_at=now,
        )
        self._save_scope(scope_file, scoped)

    def bulk_put(
        self,
        scope_file: str,
        items: Iterable[tuple[RenderedCard, LLMAnalysisResult]],
    ) -> None:
        """Store many results with a single write per tier."""
        now = self._now_ms()
        global_entries = self._load_global()
        scoped = self._load_scope(scope_file)
        global_changed = False

        for card, result in items:
            if card.deck_name:
                key = generate_cache_key(card.deck_name, card.fields)
                global_entries[key] = GlobalCacheEntry(
                    cache_key=key, deck_name=card.deck_name, result=result, cached_at=now
                )
                global_changed = True
            scoped[card.id] = ScopeCacheEntry(
                card_id=card.id,
                content_hash=generate_content_hash(card.fields),
                result=result,
                cached_at=now,
            )

        self._save_scope(scope_file, scoped)
        if global_changed:
            self._save_global(global_entries)

    def load_valid_results(
        self, scope_file: str, cards: Iterable[RenderedCard]
    ) -> dict[int, LLMAnalysisResult]:
        """Collect the cached results still valid for ``cards``, by card id."""
        global_entries = self._load_global()
        scoped = self._load_scope(scope_file)
        results: dict[int, LLMAnalysisResult] = {}

        for card in cards:
            if card.deck_name:
                entry = global_entries.get(generate_cache_key(card.deck_name, card.fields))
                if entry is not None:
                    results[card.id] = entry.result
                    continue
            legacy = scoped.get(card.id)
            if legacy is not None and legacy.content_hash == generate_content_hash(card.fields):
                results[card.id] = legacy.result

        return results

    def clear_scope(self, scope_file: str) -> None:
        """Drop the per-scope tier of one collection file."""
        self._delete(scope_cache_key(scope_file))
        index = self._load_index()
        if index.pop(scope_file, None) is not None:
            self._save_index(index)
        logger.info("cache_scope_cleared", scope=scope_file)

    def clear_all(self) -> None:
        """Drop every per-scope tier, the index and the global tier."""
        for scope_file in self._load_index():
            self._delete(scope_cache_key(scope_file))
        self._delete(CACHE_INDEX_KEY)
        self._delete(GLOBAL_CACHE_KEY)
        logger.info("cache_cleared")

    def scope_index(self) -> dict[str, ScopeCacheInfo]:
        return self._load_index()

    def global_stats(self) -> GlobalCacheStats:
        """Entry count, serialized size and deck names of the global tier."""
        raw = self._read_raw(GLOBAL_CACHE_KEY)
        if raw is None:
            return GlobalCacheStats()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("cache_document_corrupt", key=GLOBAL_CACHE_KEY, error=str(e))
            data = []
        # Counted from the raw records; results are not validated here
        records = [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []
        deck_names = {item.get("deckName") for item in records}
        return GlobalCacheStats(
            entry_count=len(records),
            size_bytes=len(raw.encode("utf-8")),
            deck_names=sorted(name for name in deck_names if isinstance(name, str) and name),
        )

    def total_size(self) -> int:
        """Bytes used by every per-scope tier plus the global tier."""
        total = sum(info.size_bytes for info in self._load_index().values())
        raw = self._read_raw(GLOBAL_CACHE_KEY)
        if raw is not None:
            total += len(raw.encode("utf-8"))
        return total
