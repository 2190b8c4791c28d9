from datetime import timedelta

import pytest

from threadsearch.constants import NO_RESULTS_ANSWER, NO_RESULTS_CONTEXT
from threadsearch.errors import PermissionLookupError, SearchFailedError, SynthesisError
from threadsearch.search.assembler import AnswerAssembler
from threadsearch.search.expansion import QueryExpansionCache
from threadsearch.search.permissions import PermissionFilter
from threadsearch.search.retrieval import MultiStrategyRetriever
from threadsearch.search.service import SearchService
from threadsearch.search.types import DirectMessageRecord, RetrievalMode
from tests.conftest import NOW, FakeCompleter, FakeIndex, FakeRepository, channel_msg, dm_msg


def build_service(index: FakeIndex, repo: FakeRepository, completer: FakeCompleter) -> SearchService:
    return SearchService(
        retriever=MultiStrategyRetriever(index, QueryExpansionCache(completer)),
        permissions=PermissionFilter(repo),
        assembler=AnswerAssembler(completer),
    )


class TestPerformSearch:
    @pytest.mark.asyncio
    async def test_hiring_scenario(self):
        query = "how many roles are hiring right now"
        channel = channel_msg("c1", "We're hiring for 60+ roles right now", 0.9, created_at=NOW - timedelta(hours=2))
        dm = dm_msg("d1", "hiring for 5 roles", 0.3, created_at=NOW - timedelta(hours=3))
        index = FakeIndex(responses={(query, RetrievalMode.SEMANTIC): [channel, dm]})
        repo = FakeRepository(channel_ids={"c1"}, direct=[DirectMessageRecord("d1", "u-bob", "u-me")])
        completer = FakeCompleter(answer="Over 60 roles [1].")

        response = await build_service(index, repo, completer).perform_search(query, "u-me", now=NOW)

        assert response.answer == "Over 60 roles [1]."
        assert [e.message_id for e in response.evidence] == ["c1", "d1"]
        assert response.evidence[1].other_user_id == "u-bob"
        assert response.additional_context == "Found 2 relevant messages"

    @pytest.mark.asyncio
    async def test_nothing_retrieved_is_canonical_empty(self):
        completer = FakeCompleter()

        response = await build_service(FakeIndex(), FakeRepository(), completer).perform_search(
            "who owns the billing migration", "u-me", now=NOW
        )

        assert response.answer == NO_RESULTS_ANSWER
        assert response.evidence == []
        assert response.additional_context == NO_RESULTS_CONTEXT
        assert completer.answer_calls == []

    @pytest.mark.asyncio
    async def test_nothing_accessible_is_canonical_empty(self):
        index = FakeIndex(default=[dm_msg("d9", "secret plans")])
        repo = FakeRepository(direct=[DirectMessageRecord("d9", "u-bob", "u-carol")])

        response = await build_service(index, repo, FakeCompleter()).perform_search("secret plans", "u-me", now=NOW)

        assert response.answer == NO_RESULTS_ANSWER
        assert response.evidence == []

    @pytest.mark.asyncio
    async def test_only_permitted_messages_reach_the_answer(self):
        index = FakeIndex(
            default=[
                channel_msg("c1", "budget approved", 0.8),
                dm_msg("d1", "budget is tight", 0.7),
                dm_msg("d2", "budget gossip", 0.9),
                channel_msg("c2", "deleted budget thread", 0.6),
            ]
        )
        repo = FakeRepository(
            channel_ids={"c1"},
            direct=[DirectMessageRecord("d1", "u-me", "u-bob"), DirectMessageRecord("d2", "u-bob", "u-carol")],
        )
        completer = FakeCompleter()

        response = await build_service(index, repo, completer).perform_search("budget status", "u-me", now=NOW)

        evidence = {e.message_id: e for e in response.evidence}
        assert set(evidence) == {"c1", "d1"}
        assert "u-me" in (evidence["d1"].sender_id, evidence["d1"].receiver_id)
        (_, context), = completer.answer_calls
        assert "gossip" not in context

    @pytest.mark.asyncio
    async def test_expansion_failure_does_not_abort(self):
        index = FakeIndex(default=[channel_msg("c1", "release on monday")])
        completer = FakeCompleter(fail_expansion=True, answer="Monday.")

        response = await build_service(index, FakeRepository(channel_ids={"c1"}), completer).perform_search(
            "when is the release", "u-me", now=NOW
        )

        assert response.answer == "Monday."

    @pytest.mark.asyncio
    async def test_permission_failure_propagates(self):
        index = FakeIndex(default=[channel_msg("c1", "release on monday")])

        with pytest.raises(PermissionLookupError):
            await build_service(index, FakeRepository(fail=True), FakeCompleter()).perform_search(
                "when is the release", "u-me", now=NOW
            )

    @pytest.mark.asyncio
    async def test_synthesis_failure_propagates(self):
        index = FakeIndex(default=[channel_msg("c1", "release on monday")])
        completer = FakeCompleter(fail_answer=True)

        with pytest.raises(SearchFailedError) as exc_info:
            await build_service(index, FakeRepository(channel_ids={"c1"}), completer).perform_search(
                "when is the release", "u-me", now=NOW
            )

        assert isinstance(exc_info.value, SynthesisError)
