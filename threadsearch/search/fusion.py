import re
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from threadsearch.constants import (
    DEFAULT_DOC_SCORE,
    DM_FUSION_BOOST,
    HIRING_PHRASES,
    NUMBER_MATCH_BOOST,
    NUMBER_QUALIFIER_BOOST,
    PHRASE_MATCH_BOOST,
    RECENCY_BOOST,
    RECENT_MESSAGE_DAYS,
    RRF_K,
)
from threadsearch.logging import get_logger
from threadsearch.search.query import classify_intent
from threadsearch.search.types import ContentScore, FusionEntry, QueryIntent, SearchResult, parse_timestamp

_logger = get_logger(__name__)

_NUMBER_RE = re.compile(r"\d+(\+|\s*plus)?")


def content_score(content: str, intent: QueryIntent) -> ContentScore:
    """Heuristic relevance of lowercased message text for the given intent."""
    score = 0.0
    match_count = 0
    has_number = False

    if intent.is_hiring_question and intent.is_quantity_question:
        if match := _NUMBER_RE.search(content):
            has_number = True
            score += NUMBER_MATCH_BOOST
            if match.group(1):
                score += NUMBER_QUALIFIER_BOOST

    for phrase in HIRING_PHRASES:
        if phrase in content:
            score += PHRASE_MATCH_BOOST
            match_count += 1

    return ContentScore(score=score, match_count=match_count, has_number=has_number)


def is_recent(created_at: datetime, now: datetime | None = None, days: int = RECENT_MESSAGE_DAYS) -> bool:
    now = parse_timestamp(now) if now else datetime.now(UTC)
    return now - parse_timestamp(created_at) <= timedelta(days=days)


def score_document(
    doc: SearchResult,
    rank: int,
    intent: QueryIntent,
    k: int = RRF_K,
    now: datetime | None = None,
    recency_days: int = RECENT_MESSAGE_DAYS,
) -> tuple[float, ContentScore, bool]:
    """Score one document at 0-based `rank` within a single ranked list."""
    base = 1 / (k + rank + 1)
    score = base * (doc.score if doc.score is not None else DEFAULT_DOC_SCORE)

    if doc.is_dm:
        score *= DM_FUSION_BOOST

    relevance = content_score(doc.content.lower(), intent)
    score *= 1 + relevance.score

    recent = is_recent(doc.metadata.created_at, now, recency_days)
    if intent.is_current_question and recent:
        score *= RECENCY_BOOST

    return score, relevance, recent


def fuse(
    result_sets: list[list[SearchResult]],
    query: str,
    k: int = RRF_K,
    now: datetime | None = None,
    recency_days: int = RECENT_MESSAGE_DAYS,
) -> list[SearchResult]:
    """Merge ranked lists into one list ordered by fused score.

    Rank-based like Reciprocal Rank Fusion, but a document seen in several
    lists keeps its best score (max), it does not accumulate (sum). Ties keep
    first-seen order.
    """
    intent = classify_intent(query)
    now = now or datetime.now(UTC)
    entries: dict[str, FusionEntry] = {}

    for results in result_sets:
        for rank, doc in enumerate(results):
            score, relevance, recent = score_document(doc, rank, intent, k, now, recency_days)

            entry = entries.get(doc.message_id)
            if entry is None:
                entries[doc.message_id] = FusionEntry(
                    doc=doc,
                    sum_score=score,
                    match_count=relevance.match_count,
                    has_number=relevance.has_number,
                    is_recent=recent,
                )
            else:
                entry.sum_score = max(entry.sum_score, score)
                entry.match_count = max(entry.match_count, relevance.match_count)

    ranked = sorted(entries.values(), key=lambda e: e.sum_score, reverse=True)
    _logger.info("fusion done", lists=len(result_sets), fused=len(ranked))
    return [replace(entry.doc, score=entry.sum_score) for entry in ranked]
