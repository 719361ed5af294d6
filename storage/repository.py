"""Repository for the append-only outcome log."""

import json
import logging
from typing import Any, Dict, List, Optional

from .database import Database
from .models import TestOutcomeRecord, as_utc

logger = logging.getLogger(__name__)


def _row_to_record(row: Dict[str, Any]) -> TestOutcomeRecord:
    metadata = row.get("metadata")
    if isinstance(metadata, str):
        metadata = json.loads(metadata)
    return TestOutcomeRecord(
        id=row["id"],
        model_id=row["model_id"],
        mr_type=row["mr_type"],
        source_input=row["source_input"],
        transformed_input=row.get("transformed_input"),
        verdict=row.get("verdict"),
        is_violated=bool(row["is_violated"]),
        metadata=metadata or {},
        timestamp_utc=as_utc(row["timestamp_utc"]),
    )


class OutcomeRepository:
    """Append and read operations for test outcome records."""

    def __init__(self, db: Database):
        self.db = db

    def append(self, record: TestOutcomeRecord) -> str:
        """Insert one outcome record. Returns the record id."""
        self.db.execute(
            """INSERT INTO outcome_records (
                id, model_id, mr_type, source_input, transformed_input,
                verdict, is_violated, metadata, timestamp_utc
            ) VALUES (?,?,?,?,?,?,?,?,?)""",
            [
                record.id, record.model_id, record.mr_type,
                record.source_input, record.transformed_input,
                record.verdict, record.is_violated, json.dumps(record.metadata),
                # stored as naive UTC
                as_utc(record.timestamp_utc).replace(tzinfo=None),
            ],
        )
        logger.debug(f"Appended outcome {record.id} for {record.model_id}/{record.mr_type}")
        return record.id

    def get(self, record_id: str) -> Optional[TestOutcomeRecord]:
        row = self.db.fetchone("SELECT * FROM outcome_records WHERE id = ?", [record_id])
        return _row_to_record(row) if row else None

    def list_records(
        self,
        model_id: Optional[str] = None,
        mr_type: Optional[str] = None,
        is_violated: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[TestOutcomeRecord]:
        """Filtered records, newest first."""
        query = "SELECT * FROM outcome_records WHERE 1=1"
        params: list = []
        if model_id:
            query += " AND model_id = ?"
            params.append(model_id)
        if mr_type:
            query += " AND mr_type = ?"
            params.append(mr_type)
        if is_violated is not None:
            query += " AND is_violated = ?"
            params.append(is_violated)
        query += " ORDER BY timestamp_utc DESC, id LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        return [_row_to_record(row) for row in self.db.fetchall(query, params)]

    def records_for_analytics(self, model_id: Optional[str] = None) -> List[TestOutcomeRecord]:
        """Every record (optionally for one model), oldest first."""
        if model_id:
            rows = self.db.fetchall(
                "SELECT * FROM outcome_records WHERE model_id = ? ORDER BY timestamp_utc, id",
                [model_id],
            )
        else:
            rows = self.db.fetchall("SELECT * FROM outcome_records ORDER BY timestamp_utc, id")
        return [_row_to_record(row) for row in rows]

    def list_models(self) -> List[str]:
        """Distinct model ids that have at least one recorded test."""
        rows = self.db.fetchall("SELECT DISTINCT model_id FROM outcome_records ORDER BY model_id")
        return [row["model_id"] for row in rows]

    def count(self, model_id: Optional[str] = None) -> int:
        if model_id:
            row = self.db.fetchone("SELECT COUNT(*) AS n FROM outcome_records WHERE model_id = ?", [model_id])
        else:
            row = self.db.fetchone("SELECT COUNT(*) AS n FROM outcome_records")
        return int(row["n"]) if row else 0
