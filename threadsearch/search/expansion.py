import time
from collections.abc import Callable
from typing import Protocol

from threadsearch.constants import EXPANSION_CACHE_TTL, SHORT_QUERY_MAX_CHARS
from threadsearch.llm.prompts import EXPANSION_PROMPT
from threadsearch.logging import get_logger
from threadsearch.search.types import ExpansionCacheEntry

_logger = get_logger(__name__)

SIMPLE_EXPANSIONS: dict[str, list[str]] = {
    "milk": ["dairy", "grocery", "store"],
    "jobs": ["roles", "positions", "openings"],
    "hiring": ["recruiting", "openings"],
    "meeting": ["call", "sync", "standup"],
    "deadline": ["due", "launch", "date"],
}


class CompleterProtocol(Protocol):
    async def complete(self, prompt: str, context: str | None = None) -> str: ...


class QueryExpansionCache:
    """Alternate phrasings of a query, cached per raw query string for `ttl` seconds.

    Stale entries are only replaced when read, never swept. Writes are plain
    overwrites so concurrent requests can share one instance without a lock.
    """

    def __init__(
        self,
        completer: CompleterProtocol,
        ttl: float = EXPANSION_CACHE_TTL,
        short_query_max_chars: int = SHORT_QUERY_MAX_CHARS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.completer = completer
        self.ttl = ttl
        self.short_query_max_chars = short_query_max_chars
        self._clock = clock
        self._entries: dict[str, ExpansionCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def _cached(self, query: str) -> str | None:
        entry = self._entries.get(query)
        if entry and self._clock() - entry.timestamp < self.ttl:
            return entry.expansion
        return None

    def _simple_expansion(self, query: str) -> str | None:
        words = query.lower().split(" ")
        expanded = [w for word in words for w in SIMPLE_EXPANSIONS.get(word, [word])]
        if len(expanded) > len(words):
            return " ".join(expanded)
        return None

    async def get_expansion(self, query: str) -> str | None:
        if (cached := self._cached(query)) is not None:
            return cached

        if len(query) <= self.short_query_max_chars:
            if simple := self._simple_expansion(query):
                return simple

        try:
            expansion = await self.completer.complete(EXPANSION_PROMPT.format(query=query))
        except Exception as e:
            _logger.warning("Query expansion failed, continuing without it", query=query, error=str(e))
            return None

        if not expansion:
            return None

        self._entries[query] = ExpansionCacheEntry(timestamp=self._clock(), expansion=expansion)
        return expansion
