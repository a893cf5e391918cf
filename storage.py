import aiosqlite
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Persisted string key-value store on SQLite."""

    def __init__(self, db_path: str):
        self.db_path = db_path.split("///")[-1]
        self.pool: Optional[aiosqlite.Connection] = None

    async def connect(self):
        """Open the connection and make sure the schema exists"""
        self.pool = await aiosqlite.connect(
            self.db_path,
            isolation_level=None,
            timeout=10
        )
        self.pool.row_factory = aiosqlite.Row
        await self.pool.execute("PRAGMA journal_mode=WAL")
        await self.pool.execute("PRAGMA synchronous=NORMAL")
        await self._migrate()

    async def close(self):
        if self.pool:
            try:
                await self.pool.close()
            except Exception as e:
                logger.error(f"Key-value store close error: {str(e)}")
            finally:
                self.pool = None

    async def _migrate(self):
        try:
            await self.pool.execute("BEGIN")
            await self.pool.execute('''
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )''')
            await self.pool.execute("COMMIT")
        except Exception:
            await self.pool.execute("ROLLBACK")
            raise

    def _require_connection(self) -> aiosqlite.Connection:
        if not self.pool:
            raise RuntimeError("Key-value store not connected")
        return self.pool

    async def get(self, key: str) -> Optional[str]:
        pool = self._require_connection()
        async with pool.execute("SELECT value FROM kv_store WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
            return row['value'] if row else None

    async def set(self, key: str, value: str) -> None:
        pool = self._require_connection()
        await pool.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
            (key, str(value))
        )
        await pool.commit()

    async def remove(self, key: str) -> None:
        pool = self._require_connection()
        await pool.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await pool.commit()
