import hashlib
import json
from datetime import UTC, datetime
from pathlib import Path

from threadsearch.database import VectorDatabase, placeholders, serialize_embedding
from threadsearch.embedder import Embedder
from threadsearch.logging import get_logger
from threadsearch.search.fts import build_fts_query
from threadsearch.search.types import MessageMetadata, RetrievalMode, SearchResult, metadata_from_dict

_logger = get_logger(__name__)

_COUNT_SQL = "SELECT COUNT(*) FROM indexed_messages"


def _schema(embedding_dim: int) -> str:
    return f"""
        CREATE TABLE IF NOT EXISTS indexed_messages (
            id INTEGER PRIMARY KEY,
            message_id TEXT NOT NULL UNIQUE,
            content TEXT NOT NULL,
            content_hash TEXT NOT NULL,
            metadata TEXT NOT NULL,
            indexed_at TEXT
        );

        CREATE VIRTUAL TABLE IF NOT EXISTS indexed_messages_fts USING fts5(
            content,
            content='indexed_messages',
            content_rowid='id'
        );

        CREATE TRIGGER IF NOT EXISTS indexed_messages_ai AFTER INSERT ON indexed_messages BEGIN
            INSERT INTO indexed_messages_fts(rowid, content) VALUES (new.id, new.content);
        END;

        CREATE TRIGGER IF NOT EXISTS indexed_messages_ad AFTER DELETE ON indexed_messages BEGIN
            INSERT INTO indexed_messages_fts(indexed_messages_fts, rowid, content)
            VALUES ('delete', old.id, old.content);
        END;

        CREATE TRIGGER IF NOT EXISTS indexed_messages_au AFTER UPDATE ON indexed_messages BEGIN
            INSERT INTO indexed_messages_fts(indexed_messages_fts, rowid, content)
            VALUES ('delete', old.id, old.content);
            INSERT INTO indexed_messages_fts(rowid, content) VALUES (new.id, new.content);
        END;

        CREATE VIRTUAL TABLE IF NOT EXISTS indexed_messages_vec USING vec0(
            item_id INTEGER PRIMARY KEY,
            embedding float[{embedding_dim}] distance_metric=cosine
        );
    """


async def count_indexed(db_path: Path) -> int:
    """Row count of an existing index file, without an embedder."""
    db = VectorDatabase(db_path)
    await db.connect()
    try:
        return await db.scalar(_COUNT_SQL)
    finally:
        await db.close()


class MessageIndex:
    """Vector + keyword index over message text.

    `semantic` mode runs a cosine KNN over sqlite-vec embeddings, `lexical`
    mode runs FTS5 bm25. Both return scores in [0, 1], best first.
    """

    def __init__(self, db_path: Path, embedder: Embedder, embedding_dim: int):
        self.db = VectorDatabase(db_path, _schema(embedding_dim))
        self.embedder = embedder
        self.embedding_dim = embedding_dim

    async def connect(self) -> None:
        await self.db.connect()

    async def close(self) -> None:
        await self.db.close()

    @property
    def conn(self):
        return self.db.conn

    @staticmethod
    def hash_content(content: str) -> str:
        return hashlib.md5(content.encode()).hexdigest()

    async def upsert(self, content: str, metadata: MessageMetadata) -> bool:
        """Index one message. Returns False when the stored copy is already current."""
        content_hash = self.hash_content(content)
        metadata_json = json.dumps(metadata.to_dict())
        now = datetime.now(UTC).isoformat()

        existing = await self.conn.execute_fetchall(
            "SELECT id, content_hash, metadata FROM indexed_messages WHERE message_id = ?",
            (metadata.message_id,),
        )
        if existing and existing[0]["content_hash"] == content_hash and existing[0]["metadata"] == metadata_json:
            return False

        embedding = serialize_embedding(await self.embedder.embed_one(content))

        if existing:
            item_id = existing[0]["id"]
            await self.conn.execute(
                """
                UPDATE indexed_messages
                SET content = ?, content_hash = ?, metadata = ?, indexed_at = ?
                WHERE id = ?
                """,
                (content, content_hash, metadata_json, now, item_id),
            )
            await self.conn.execute("DELETE FROM indexed_messages_vec WHERE item_id = ?", (item_id,))
        else:
            cursor = await self.conn.execute(
                """
                INSERT INTO indexed_messages (message_id, content, content_hash, metadata, indexed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (metadata.message_id, content, content_hash, metadata_json, now),
            )
            item_id = cursor.lastrowid

        await self.conn.execute(
            "INSERT INTO indexed_messages_vec(item_id, embedding) VALUES (?, ?)",
            (item_id, embedding),
        )
        await self.conn.commit()
        return True

    async def delete(self, message_id: str) -> bool:
        rows = await self.conn.execute_fetchall(
            "SELECT id FROM indexed_messages WHERE message_id = ?",
            (message_id,),
        )
        if not rows:
            return False

        item_id = rows[0]["id"]
        await self.conn.execute("DELETE FROM indexed_messages_vec WHERE item_id = ?", (item_id,))
        await self.conn.execute("DELETE FROM indexed_messages WHERE id = ?", (item_id,))
        await self.conn.commit()
        return True

    async def count(self) -> int:
        return await self.db.scalar(_COUNT_SQL)

    async def query(
        self,
        text: str,
        *,
        result_limit: int,
        mode: RetrievalMode,
        user_id: str | None = None,
    ) -> list[SearchResult]:
        # user_id does not narrow candidates here; visibility is checked against the message store
        match mode:
            case RetrievalMode.SEMANTIC:
                scored = await self._vector_search(text, result_limit)
            case RetrievalMode.LEXICAL:
                scored = await self._fts_search(text, result_limit)
            case _:
                raise ValueError(f"Unknown retrieval mode: {mode}")

        results = await self._hydrate(scored)
        _logger.debug("index query", mode=str(mode), query=text, results=len(results))
        return results

    async def _vector_search(self, text: str, limit: int) -> list[tuple[int, float]]:
        if not text.strip():
            return []
        query_embedding = serialize_embedding(await self.embedder.embed_one(text))
        rows = await self.conn.execute_fetchall(
            """
            SELECT item_id, distance
            FROM indexed_messages_vec
            WHERE embedding MATCH ? AND k = ?
            ORDER BY distance
            """,
            (query_embedding, limit),
        )
        # cosine distance is in [0, 2]
        return [(row[0], min(1.0, max(0.0, 1.0 - row[1]))) for row in rows]

    async def _fts_search(self, text: str, limit: int) -> list[tuple[int, float]]:
        fts_query = build_fts_query(text)
        if fts_query is None:
            return []

        rows = await self.conn.execute_fetchall(
            """
            SELECT indexed_messages.id, bm25(indexed_messages_fts) AS score
            FROM indexed_messages_fts
            JOIN indexed_messages ON indexed_messages_fts.rowid = indexed_messages.id
            WHERE indexed_messages_fts MATCH ?
            ORDER BY score
            LIMIT ?
            """,
            (fts_query, limit),
        )
        if not rows:
            return []

        # bm25 is negative, more negative is better
        relevance = [(row[0], -row[1]) for row in rows]
        best = relevance[0][1]
        if best <= 0:
            return [(item_id, 1.0) for item_id, _ in relevance]
        return [(item_id, max(0.0, score / best)) for item_id, score in relevance]

    async def _hydrate(self, scored: list[tuple[int, float]]) -> list[SearchResult]:
        if not scored:
            return []

        ids = [item_id for item_id, _ in scored]
        rows = await self.conn.execute_fetchall(
            f"SELECT id, content, metadata FROM indexed_messages WHERE id IN ({placeholders(ids)})",
            ids,
        )
        by_id = {row["id"]: row for row in rows}

        results = []
        for item_id, score in scored:
            row = by_id.get(item_id)
            if row is None:
                continue
            results.append(
                SearchResult(
                    content=row["content"],
                    metadata=metadata_from_dict(json.loads(row["metadata"])),
                    score=score,
                )
            )
        return results
