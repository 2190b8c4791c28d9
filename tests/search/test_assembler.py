import pytest

from threadsearch.constants import NO_RESULTS_ANSWER
from threadsearch.errors import SynthesisError
from threadsearch.search.assembler import AnswerAssembler, apply_dm_boost, format_context, to_evidence
from threadsearch.search.types import DirectMetadata, SearchResult
from tests.conftest import NOW, FakeCompleter, channel_msg, dm_msg, summary_msg


def ids(results) -> list[str]:
    return [r.message_id for r in results]


class TestApplyDmBoost:
    def test_additive_boost_and_resort(self):
        results = [channel_msg("c", "x", 0.3), dm_msg("d", "y", 0.15)]
        boosted = apply_dm_boost(results)

        assert ids(boosted) == ["d", "c"]
        assert boosted[0].score == pytest.approx(0.35)
        assert boosted[1].score == pytest.approx(0.3)

    def test_channel_scores_untouched(self):
        boosted = apply_dm_boost([channel_msg("c", "x", 0.3), summary_msg("s", "y", 0.2)])
        assert [r.score for r in boosted] == [0.3, 0.2]


class TestFormatContext:
    def test_numbered_blocks(self):
        context = format_context([channel_msg("c", "launch friday", user_name="alice"), dm_msg("d", "ok", user_name="bob")])
        assert context == "[1] alice: launch friday\n\n[2] bob: ok"


class TestToEvidence:
    def test_channel(self):
        item = to_evidence(channel_msg("c", "launch friday", channel_id="eng"))
        assert item.type == "channel"
        assert item.channel_id == "eng"
        assert item.sender_id is None
        assert item.timestamp == channel_msg("c", "x").metadata.created_at.isoformat()

    def test_dm(self):
        result = SearchResult(
            content="see you",
            metadata=DirectMetadata(
                message_id="d",
                user_id="u-bob",
                user_name="bob",
                created_at=NOW,
                sender_id="u-bob",
                receiver_id="u-me",
                other_user_id="u-bob",
            ),
            score=0.1,
        )
        item = to_evidence(result)
        assert item.type == "dm"
        assert item.channel_id is None
        assert (item.sender_id, item.receiver_id, item.other_user_id) == ("u-bob", "u-me", "u-bob")


class TestAnswerAssembler:
    @pytest.mark.asyncio
    async def test_empty_is_canonical_response(self):
        completer = FakeCompleter()
        response = await AnswerAssembler(completer).assemble("anything", [])

        assert response.answer == NO_RESULTS_ANSWER
        assert response.evidence == []
        assert completer.calls == []

    @pytest.mark.asyncio
    async def test_answer_from_context(self):
        completer = FakeCompleter(answer="Launch is Friday [1].")
        results = [channel_msg("c1", "launch is friday", 0.4, user_name="alice"), dm_msg("d1", "moved?", 0.1, user_name="bob")]

        response = await AnswerAssembler(completer).assemble("when is launch", results)

        assert response.answer == "Launch is Friday [1]."
        assert completer.answer_calls == [("when is launch", "[1] alice: launch is friday\n\n[2] bob: moved?")]
        assert [e.message_id for e in response.evidence] == ["c1", "d1"]
        assert response.additional_context == "Found 2 relevant messages"

    @pytest.mark.asyncio
    async def test_truncates_after_boost(self):
        results = [channel_msg(f"c{i}", "x", 0.5 - i * 0.01) for i in range(12)]
        results.append(dm_msg("d", "y", 0.35))

        response = await AnswerAssembler(FakeCompleter()).assemble("q", results)

        evidence_ids = [e.message_id for e in response.evidence]
        assert len(evidence_ids) == 10
        assert evidence_ids[0] == "d"
        assert response.additional_context == "Found 10 relevant messages"

    @pytest.mark.asyncio
    async def test_synthesis_failure_raises(self):
        completer = FakeCompleter(fail_answer=True)

        with pytest.raises(SynthesisError):
            await AnswerAssembler(completer).assemble("q", [channel_msg("c1", "x")])
