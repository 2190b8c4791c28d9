import asyncio
from dataclasses import replace
from typing import Protocol

from threadsearch.errors import PermissionLookupError
from threadsearch.logging import get_logger
from threadsearch.search.types import DirectMessageRecord, DirectMetadata, SearchResult

_logger = get_logger(__name__)


class MessageRepositoryProtocol(Protocol):
    async def find_channel_message_ids_among(self, ids: list[str]) -> list[str]: ...

    async def find_direct_message_records_among(self, ids: list[str], user_id: str) -> list[DirectMessageRecord]: ...


class PermissionFilter:
    """Restricts fused candidates to messages the requesting user may read.

    Channel and summary candidates are visible when they exist as channel
    messages. DM candidates are visible when the user sent or received them.
    Each candidate is only checked under the rule of its declared type.
    """

    def __init__(self, repo: MessageRepositoryProtocol):
        self.repo = repo

    async def _channel_ids(self, ids: list[str]) -> list[str]:
        if not ids:
            return []
        return await self.repo.find_channel_message_ids_among(ids)

    async def _direct_records(self, ids: list[str], user_id: str) -> list[DirectMessageRecord]:
        if not ids:
            return []
        return await self.repo.find_direct_message_records_among(ids, user_id)

    async def filter(self, results: list[SearchResult], user_id: str) -> list[SearchResult]:
        dm_ids = [r.message_id for r in results if r.is_dm]
        other_ids = [r.message_id for r in results if not r.is_dm]

        try:
            channel_ids, dm_records = await asyncio.gather(
                self._channel_ids(other_ids),
                self._direct_records(dm_ids, user_id),
            )
        except Exception as e:
            raise PermissionLookupError(f"Permission lookup failed: {e}") from e

        records = {rec.id: rec for rec in dm_records if user_id in (rec.sender_id, rec.receiver_id)}
        permitted_channel = set(channel_ids) & set(other_ids)

        permitted: list[SearchResult] = []
        for result in results:
            if result.is_dm:
                record = records.get(result.message_id)
                if record is None:
                    continue
                permitted.append(replace(result, metadata=_with_participants(result.metadata, record, user_id)))
            elif result.message_id in permitted_channel:
                permitted.append(result)

        _logger.info(
            "permission filter done",
            user_id=user_id,
            checked=len(results),
            permitted=len(permitted),
        )
        return permitted


def _with_participants(metadata: DirectMetadata, record: DirectMessageRecord, user_id: str) -> DirectMetadata:
    other = record.receiver_id if record.sender_id == user_id else record.sender_id
    return replace(
        metadata,
        sender_id=record.sender_id,
        receiver_id=record.receiver_id,
        other_user_id=other,
    )
