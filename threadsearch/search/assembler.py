from dataclasses import replace

from threadsearch.constants import ANSWER_RESULT_LIMIT, DM_FINAL_BOOST, NO_RESULTS_ANSWER, NO_RESULTS_CONTEXT
from threadsearch.errors import SynthesisError
from threadsearch.logging import get_logger
from threadsearch.search.expansion import CompleterProtocol
from threadsearch.search.types import (
    ChannelMetadata,
    DirectMetadata,
    EvidenceItem,
    SearchResponse,
    SearchResult,
    SummaryMetadata,
)

_logger = get_logger(__name__)


def empty_response() -> SearchResponse:
    return SearchResponse(answer=NO_RESULTS_ANSWER, evidence=[], additional_context=NO_RESULTS_CONTEXT)


def apply_dm_boost(results: list[SearchResult], boost: float = DM_FINAL_BOOST) -> list[SearchResult]:
    boosted = [replace(r, score=(r.score or 0.0) + (boost if r.is_dm else 0.0)) for r in results]
    boosted.sort(key=lambda r: r.score, reverse=True)
    return boosted


def format_context(results: list[SearchResult]) -> str:
    return "\n\n".join(f"[{i}] {r.metadata.user_name}: {r.content}" for i, r in enumerate(results, start=1))


def to_evidence(result: SearchResult) -> EvidenceItem:
    meta = result.metadata
    item = EvidenceItem(
        content=result.content,
        message_id=meta.message_id,
        timestamp=meta.created_at.isoformat(),
        type=meta.type,
        user_name=meta.user_name or None,
    )
    match meta:
        case ChannelMetadata(channel_id=channel_id) | SummaryMetadata(channel_id=channel_id):
            item.channel_id = channel_id
        case DirectMetadata():
            item.sender_id = meta.sender_id
            item.receiver_id = meta.receiver_id
            item.other_user_id = meta.other_user_id
    return item


class AnswerAssembler:
    def __init__(self, completer: CompleterProtocol, limit: int = ANSWER_RESULT_LIMIT):
        self.completer = completer
        self.limit = limit

    async def assemble(self, query: str, permitted: list[SearchResult]) -> SearchResponse:
        if not permitted:
            return empty_response()

        top = apply_dm_boost(permitted)[: self.limit]
        context = format_context(top)

        try:
            answer = await self.completer.complete(query, context)
        except Exception as e:
            raise SynthesisError(f"Answer generation failed: {e}") from e

        _logger.info("answer assembled", evidence=len(top))
        return SearchResponse(
            answer=answer,
            evidence=[to_evidence(r) for r in top],
            additional_context=f"Found {len(top)} relevant messages",
        )
