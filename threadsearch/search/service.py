from datetime import datetime

from threadsearch.constants import RECENT_MESSAGE_DAYS, RRF_K
from threadsearch.logging import get_logger
from threadsearch.search.assembler import AnswerAssembler
from threadsearch.search.fusion import fuse
from threadsearch.search.permissions import PermissionFilter
from threadsearch.search.retrieval import MultiStrategyRetriever
from threadsearch.search.types import SearchResponse

_logger = get_logger(__name__)


class SearchService:
    """Query -> retrieval -> fusion -> permission filter -> answer."""

    def __init__(
        self,
        retriever: MultiStrategyRetriever,
        permissions: PermissionFilter,
        assembler: AnswerAssembler,
        rrf_k: int = RRF_K,
        recency_days: int = RECENT_MESSAGE_DAYS,
    ):
        self.retriever = retriever
        self.permissions = permissions
        self.assembler = assembler
        self.rrf_k = rrf_k
        self.recency_days = recency_days

    async def perform_search(self, query: str, user_id: str, now: datetime | None = None) -> SearchResponse:
        result_sets = await self.retriever.retrieve(query, user_id)
        fused = fuse(result_sets, query, k=self.rrf_k, now=now, recency_days=self.recency_days)
        permitted = await self.permissions.filter(fused, user_id)

        _logger.info(
            "search pipeline",
            user_id=user_id,
            retrieved=sum(len(s) for s in result_sets),
            fused=len(fused),
            permitted=len(permitted),
        )
        return await self.assembler.assemble(query, permitted)
