"""DuckDB database setup and connection management."""

import duckdb
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS outcome_records (
    id                VARCHAR PRIMARY KEY,
    model_id          VARCHAR NOT NULL,
    mr_type           VARCHAR NOT NULL,
    source_input      VARCHAR NOT NULL,
    transformed_input VARCHAR,
    verdict           VARCHAR,
    is_violated       BOOLEAN NOT NULL,
    metadata          JSON,
    timestamp_utc     TIMESTAMP NOT NULL
);
"""

# per-model analytics reads scan by model, oldest first
INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_outcome_model_time ON outcome_records (model_id, timestamp_utc)",
)


class Database:
    """DuckDB-backed store for the append-only outcome log.

    The connection opens on first use; the parent directory of a file
    database is created then if it does not exist.
    """

    def __init__(self, db_path: str = "metatest.duckdb"):
        self.db_path = str(db_path)
        self._conn: Optional[duckdb.DuckDBPyConnection] = None

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            if self.db_path != IN_MEMORY:
                Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            self._conn = duckdb.connect(self.db_path)
            self._init_schema()
        return self._conn

    def _init_schema(self) -> None:
        self._conn.execute(SCHEMA_SQL)
        for statement in INDEX_SQL:
            self._conn.execute(statement)
        logger.info(f"Outcome log ready at {self.db_path}")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def execute(self, query: str, params=None):
        if params:
            return self.conn.execute(query, params)
        return self.conn.execute(query)

    @staticmethod
    def _columns(result) -> List[str]:
        return [desc[0] for desc in result.description]

    def fetchall(self, query: str, params=None) -> List[Dict[str, Any]]:
        result = self.execute(query, params)
        columns = self._columns(result)
        return [dict(zip(columns, row)) for row in result.fetchall()]

    def fetchone(self, query: str, params=None) -> Optional[Dict[str, Any]]:
        result = self.execute(query, params)
        columns = self._columns(result)
        row = result.fetchone()
        return dict(zip(columns, row)) if row else None
