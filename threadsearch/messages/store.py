from datetime import UTC, datetime
from pathlib import Path

from threadsearch.database import Database, placeholders
from threadsearch.search.types import DirectMessageRecord

SCHEMA = """
CREATE TABLE IF NOT EXISTS channel_messages (
    id TEXT PRIMARY KEY,
    channel_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_channel_messages_channel ON channel_messages(channel_id);

CREATE TABLE IF NOT EXISTS direct_messages (
    id TEXT PRIMARY KEY,
    sender_id TEXT NOT NULL,
    receiver_id TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_direct_messages_sender ON direct_messages(sender_id);
CREATE INDEX IF NOT EXISTS idx_direct_messages_receiver ON direct_messages(receiver_id);
"""


class MessageStore:
    """Source of truth for which messages exist and who took part in each DM."""

    def __init__(self, db_path: Path):
        self.db = Database(db_path, SCHEMA)

    async def connect(self) -> None:
        await self.db.connect()

    async def close(self) -> None:
        await self.db.close()

    @property
    def conn(self):
        return self.db.conn

    async def add_channel_message(
        self,
        message_id: str,
        channel_id: str,
        user_id: str,
        content: str,
        created_at: datetime | None = None,
    ) -> None:
        await self.conn.execute(
            """
            INSERT OR REPLACE INTO channel_messages (id, channel_id, user_id, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (message_id, channel_id, user_id, content, (created_at or datetime.now(UTC)).isoformat()),
        )
        await self.conn.commit()

    async def add_direct_message(
        self,
        message_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        created_at: datetime | None = None,
    ) -> None:
        await self.conn.execute(
            """
            INSERT OR REPLACE INTO direct_messages (id, sender_id, receiver_id, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (message_id, sender_id, receiver_id, content, (created_at or datetime.now(UTC)).isoformat()),
        )
        await self.conn.commit()

    async def find_channel_message_ids_among(self, ids: list[str]) -> list[str]:
        if not ids:
            return []
        rows = await self.conn.execute_fetchall(
            f"SELECT id FROM channel_messages WHERE id IN ({placeholders(ids)})",
            ids,
        )
        return [row["id"] for row in rows]

    async def find_direct_message_records_among(self, ids: list[str], user_id: str) -> list[DirectMessageRecord]:
        if not ids:
            return []
        rows = await self.conn.execute_fetchall(
            f"""
            SELECT id, sender_id, receiver_id FROM direct_messages
            WHERE id IN ({placeholders(ids)}) AND (sender_id = ? OR receiver_id = ?)
            """,
            [*ids, user_id, user_id],
        )
        return [DirectMessageRecord(id=row["id"], sender_id=row["sender_id"], receiver_id=row["receiver_id"]) for row in rows]
