from pathlib import Path

import aiosqlite
import numpy as np
import sqlite_vec

_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA busy_timeout=30000;",
)


def serialize_embedding(embedding: np.ndarray | list[float]) -> bytes:
    arr = embedding if isinstance(embedding, np.ndarray) else np.array(embedding)
    return arr.astype(np.float32).tobytes()


def placeholders(values: list) -> str:
    return ",".join("?" * len(values))


class Database:
    """One aiosqlite connection. `schema` runs on every connect, so it must be idempotent."""

    def __init__(self, db_path: Path, schema: str | None = None):
        self.db_path = db_path
        self.schema = schema
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row
        for pragma in _PRAGMAS:
            await self._conn.execute(pragma)
        await self._load_extensions()
        if self.schema:
            await self._conn.executescript(self.schema)
            await self._conn.commit()

    async def _load_extensions(self) -> None:
        pass

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected")
        return self._conn

    async def scalar(self, sql: str, params: tuple | list = ()):
        rows = await self.conn.execute_fetchall(sql, params)
        return rows[0][0] if rows else None


class VectorDatabase(Database):
    """Database with sqlite-vec loaded, for `vec0` tables."""

    async def _load_extensions(self) -> None:
        await self.conn.enable_load_extension(True)
        await self.conn.load_extension(sqlite_vec.loadable_path())
        await self.conn.enable_load_extension(False)
