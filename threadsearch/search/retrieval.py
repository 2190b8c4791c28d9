import asyncio
from dataclasses import dataclass
from typing import Protocol

from threadsearch.constants import EXPANSION_RESULT_LIMIT, LEXICAL_RESULT_LIMIT, SEMANTIC_RESULT_LIMIT
from threadsearch.logging import get_logger
from threadsearch.search.expansion import QueryExpansionCache
from threadsearch.search.query import classify_intent, normalize_query, query_variations
from threadsearch.search.types import RetrievalMode, SearchResult

_logger = get_logger(__name__)


class MessageIndexProtocol(Protocol):
    async def query(
        self,
        text: str,
        *,
        result_limit: int,
        mode: RetrievalMode,
        user_id: str | None = None,
    ) -> list[SearchResult]: ...


@dataclass(frozen=True)
class RetrievalCall:
    text: str
    mode: RetrievalMode
    limit: int


def dedupe_result_sets(result_sets: list[list[SearchResult]]) -> list[list[SearchResult]]:
    """Drop candidates already seen in an earlier set. The first set to mention an id owns it."""
    seen: set[str] = set()
    deduped: list[list[SearchResult]] = []
    for results in result_sets:
        kept = []
        for doc in results:
            if doc.message_id in seen:
                continue
            seen.add(doc.message_id)
            kept.append(doc)
        deduped.append(kept)
    return deduped


class MultiStrategyRetriever:
    def __init__(
        self,
        index: MessageIndexProtocol,
        expansion_cache: QueryExpansionCache | None = None,
        semantic_limit: int = SEMANTIC_RESULT_LIMIT,
        lexical_limit: int = LEXICAL_RESULT_LIMIT,
        expansion_limit: int = EXPANSION_RESULT_LIMIT,
    ):
        self.index = index
        self.expansion_cache = expansion_cache
        self.semantic_limit = semantic_limit
        self.lexical_limit = lexical_limit
        self.expansion_limit = expansion_limit

    def plan(self, query: str) -> list[RetrievalCall]:
        normalized = normalize_query(query)
        intent = classify_intent(query)
        calls = []
        for variation in query_variations(normalized, intent):
            calls.append(RetrievalCall(variation, RetrievalMode.SEMANTIC, self.semantic_limit))
            calls.append(RetrievalCall(variation, RetrievalMode.LEXICAL, self.lexical_limit))
        return calls

    async def _run(self, call: RetrievalCall, user_id: str) -> list[SearchResult]:
        try:
            return await self.index.query(call.text, result_limit=call.limit, mode=call.mode, user_id=user_id)
        except Exception as e:
            _logger.warning(
                "Retrieval call failed, skipping it",
                mode=str(call.mode),
                query=call.text,
                error=str(e),
            )
            return []

    async def _run_expansion(self, query: str, user_id: str) -> list[SearchResult] | None:
        if self.expansion_cache is None:
            return None
        expansion = await self.expansion_cache.get_expansion(query)
        if not expansion:
            return None
        return await self._run(RetrievalCall(expansion, RetrievalMode.SEMANTIC, self.expansion_limit), user_id)

    async def retrieve(self, query: str, user_id: str) -> list[list[SearchResult]]:
        """One deduplicated ranked list per retrieval call actually issued, in issue order."""
        calls = self.plan(query)

        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self._run(call, user_id)) for call in calls]
            expansion_task = tg.create_task(self._run_expansion(query, user_id))

        result_sets = [task.result() for task in tasks]
        if (expanded := expansion_task.result()) is not None:
            result_sets.append(expanded)

        deduped = dedupe_result_sets(result_sets)
        _logger.info(
            "retrieval done",
            calls=len(result_sets),
            raw=sum(len(s) for s in result_sets),
            unique=sum(len(s) for s in deduped),
        )
        return deduped
