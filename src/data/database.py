"""
DuckDB-backed key-value gateway for feedback state.

Keeps each persisted entry as one row of a two-column table, so the
records collection and the sort preference are written independently
and each write is atomic on its own.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import duckdb

from src.feedback.errors import PersistenceError


logger = logging.getLogger(__name__)


class DuckDBGateway:
    """
    DuckDB interface implementing the persistence gateway contract.

    Features:
    - Lazily opened connection, created on first use
    - Table created on first connection if missing
    - duckdb errors surfaced as PersistenceError
    """

    TABLE_NAME = "kv_store"

    def __init__(self, db_path: Path):
        """
        Initialize the gateway.

        Args:
            db_path: Path to the DuckDB file (created if missing)
        """
        self.db_path = Path(db_path)
        self._connection: Optional[duckdb.DuckDBPyConnection] = None

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get the database connection, opening it on first use."""
        if self._connection is None:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._connection = duckdb.connect(str(self.db_path))
                self._connection.execute(
                    f"CREATE TABLE IF NOT EXISTS {self.TABLE_NAME} "
                    "(entry_key VARCHAR PRIMARY KEY, entry_value VARCHAR NOT NULL)"
                )
            except (duckdb.Error, OSError) as e:
                self._connection = None
                raise PersistenceError(f"Failed to open {self.db_path}: {e}") from e
            logger.debug(f"Opened DuckDB store at {self.db_path}")
        return self._connection

    def get(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                f"SELECT entry_value FROM {self.TABLE_NAME} WHERE entry_key = ?", (key,)
            ).fetchone()
        except duckdb.Error as e:
            raise PersistenceError(f"Failed to read '{key}': {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO {self.TABLE_NAME} (entry_key, entry_value) VALUES (?, ?)",
                (key, value),
            )
        except duckdb.Error as e:
            raise PersistenceError(f"Failed to write '{key}': {e}") from e

    def keys(self) -> list[str]:
        """List all stored keys."""
        conn = self._get_connection()
        rows = conn.execute(f"SELECT entry_key FROM {self.TABLE_NAME} ORDER BY entry_key").fetchall()
        return [row[0] for row in rows]

    def health_check(self) -> dict[str, Any]:
        """Check database health and return statistics."""
        try:
            return {
                "status": "healthy",
                "db_path": str(self.db_path),
                "keys": self.keys(),
            }
        except Exception as e:
            return {
                "status": "error",
                "error": str(e),
                "db_path": str(self.db_path),
            }

    def close(self):
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
