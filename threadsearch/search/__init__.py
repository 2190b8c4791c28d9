from threadsearch.search.assembler import AnswerAssembler
from threadsearch.search.expansion import QueryExpansionCache
from threadsearch.search.fusion import fuse
from threadsearch.search.permissions import PermissionFilter
from threadsearch.search.retrieval import MultiStrategyRetriever
from threadsearch.search.service import SearchService
from threadsearch.search.types import (
    ChannelMetadata,
    DirectMetadata,
    EvidenceItem,
    QueryIntent,
    RetrievalMode,
    SearchResponse,
    SearchResult,
    SummaryMetadata,
)

__all__ = [
    "AnswerAssembler",
    "ChannelMetadata",
    "DirectMetadata",
    "EvidenceItem",
    "MultiStrategyRetriever",
    "PermissionFilter",
    "QueryExpansionCache",
    "QueryIntent",
    "RetrievalMode",
    "SearchResponse",
    "SearchResult",
    "SearchService",
    "SummaryMetadata",
    "fuse",
]
