"""PostgreSQL storage implementation."""

import json
import logging
import os
import psycopg2
from psycopg2.extras import RealDictCursor

from core.interfaces import Storage

logger = logging.getLogger(__name__)


class PostgresStorage(Storage):
    """PostgreSQL-based key-value storage on a JSONB table."""

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/grammaire'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key VARCHAR(255) PRIMARY KEY,
                    value JSONB NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_kv_store_updated
                ON kv_store(updated_at)
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def get(self, key: str):
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT value FROM kv_store WHERE key = %s", (key,))
            row = cur.fetchone()
        # Read-only transaction, release it
        self.conn.rollback()
        if row:
            return row['value']
        return None

    def set(self, key: str, value) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (key)
                    DO UPDATE SET value = EXCLUDED.value, updated_at = CURRENT_TIMESTAMP
                """, (key, json.dumps(value)))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving {key}: {e}")
            self.conn.rollback()
            raise

    def delete(self, key: str) -> bool:
        try:
            with self.conn.cursor() as cur:
                cur.execute("DELETE FROM kv_store WHERE key = %s", (key,))
                deleted = cur.rowcount > 0
            self.conn.commit()
            return deleted
        except Exception as e:
            logger.error(f"Error deleting {key}: {e}")
            self.conn.rollback()
            raise

    def keys(self, prefix: str = '') -> list[str]:
        """List all stored keys starting with prefix."""
        with self.conn.cursor() as cur:
            cur.execute(
                "SELECT key FROM kv_store WHERE key LIKE %s ORDER BY key",
                (prefix.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_') + '%',)
            )
            rows = cur.fetchall()
        self.conn.rollback()
        return [row[0] for row in rows]
