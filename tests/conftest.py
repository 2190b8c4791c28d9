import hashlib
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import numpy as np
import pytest
import pytest_asyncio

from threadsearch.messages.store import MessageStore
from threadsearch.search.store import MessageIndex
from threadsearch.search.types import (
    ChannelMetadata,
    DirectMessageRecord,
    DirectMetadata,
    RetrievalMode,
    SearchResult,
    SummaryMetadata,
)

TEST_EMBEDDING_DIM = 64

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def mock_embedding(text: str) -> np.ndarray:
    h = hashlib.md5(text.encode()).hexdigest()
    # MD5 is 32 chars, repeat to get TEST_EMBEDDING_DIM
    arr = np.array([int(c, 16) / 15.0 for c in h] * (TEST_EMBEDDING_DIM // 32))
    norm = np.linalg.norm(arr)
    return arr / norm if norm > 0 else arr


class MockEmbedder:
    def __init__(self):
        self.calls: list[str] = []

    async def embed_one(self, text: str) -> np.ndarray:
        self.calls.append(text)
        return mock_embedding(text)


def channel_msg(
    message_id: str,
    content: str,
    score: float | None = 0.5,
    created_at: datetime | None = None,
    user_name: str = "alice",
    channel_id: str = "general",
) -> SearchResult:
    return SearchResult(
        content=content,
        metadata=ChannelMetadata(
            message_id=message_id,
            user_id=f"u-{user_name}",
            user_name=user_name,
            created_at=created_at or NOW - timedelta(hours=1),
            channel_id=channel_id,
        ),
        score=score,
    )


def dm_msg(
    message_id: str,
    content: str,
    score: float | None = 0.5,
    created_at: datetime | None = None,
    user_name: str = "bob",
) -> SearchResult:
    return SearchResult(
        content=content,
        metadata=DirectMetadata(
            message_id=message_id,
            user_id=f"u-{user_name}",
            user_name=user_name,
            created_at=created_at or NOW - timedelta(hours=1),
        ),
        score=score,
    )


def summary_msg(message_id: str, content: str, score: float | None = 0.5) -> SearchResult:
    return SearchResult(
        content=content,
        metadata=SummaryMetadata(
            message_id=message_id,
            user_id="u-bot",
            user_name="summary",
            created_at=NOW - timedelta(days=2),
            channel_id="general",
        ),
        score=score,
    )


class FakeIndex:
    """In-memory retrieval collaborator. Answers from `responses[(text, mode)]`, else `default`."""

    def __init__(
        self,
        responses: dict[tuple[str, RetrievalMode], list[SearchResult]] | None = None,
        default: list[SearchResult] | None = None,
        fail_on: set[tuple[str, RetrievalMode]] | None = None,
    ):
        self.responses = responses or {}
        self.default = default or []
        self.fail_on = fail_on or set()
        self.calls: list[tuple[str, RetrievalMode, int, str | None]] = []

    async def query(
        self,
        text: str,
        *,
        result_limit: int,
        mode: RetrievalMode,
        user_id: str | None = None,
    ) -> list[SearchResult]:
        self.calls.append((text, mode, result_limit, user_id))
        if (text, mode) in self.fail_on:
            raise RuntimeError("index unavailable")
        return list(self.responses.get((text, mode), self.default))[:result_limit]


class FakeRepository:
    def __init__(
        self,
        channel_ids: set[str] | None = None,
        direct: list[DirectMessageRecord] | None = None,
        fail: bool = False,
    ):
        self.channel_ids = channel_ids or set()
        self.direct = direct or []
        self.fail = fail
        self.calls: list[str] = []

    async def find_channel_message_ids_among(self, ids: list[str]) -> list[str]:
        self.calls.append("channel")
        if self.fail:
            raise RuntimeError("database is locked")
        return [i for i in ids if i in self.channel_ids]

    async def find_direct_message_records_among(self, ids: list[str], user_id: str) -> list[DirectMessageRecord]:
        self.calls.append("direct")
        if self.fail:
            raise RuntimeError("database is locked")
        return [r for r in self.direct if r.id in ids and user_id in (r.sender_id, r.receiver_id)]


class FakeCompleter:
    """Rephrases when called without context, answers when called with it."""

    def __init__(
        self,
        expansion: str | None = "rephrased query",
        answer: str = "Here is what I found.",
        fail_expansion: bool = False,
        fail_answer: bool = False,
    ):
        self.expansion = expansion
        self.answer = answer
        self.fail_expansion = fail_expansion
        self.fail_answer = fail_answer
        self.calls: list[tuple[str, str | None]] = []

    async def complete(self, prompt: str, context: str | None = None) -> str:
        self.calls.append((prompt, context))
        if context is None:
            if self.fail_expansion or self.expansion is None:
                raise RuntimeError("LLM unavailable")
            return self.expansion
        if self.fail_answer:
            raise RuntimeError("LLM unavailable")
        return self.answer

    @property
    def expansion_calls(self) -> list[str]:
        return [prompt for prompt, context in self.calls if context is None]

    @property
    def answer_calls(self) -> list[tuple[str, str]]:
        return [(prompt, context) for prompt, context in self.calls if context is not None]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest_asyncio.fixture
async def message_store(tmp_path: Path) -> AsyncGenerator[MessageStore]:
    store = MessageStore(tmp_path / "messages.db")
    await store.connect()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def message_index(tmp_path: Path) -> AsyncGenerator[MessageIndex]:
    index = MessageIndex(tmp_path / "index.db", MockEmbedder(), TEST_EMBEDDING_DIM)
    await index.connect()
    yield index
    await index.close()
