"""Data models for the storage layer."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TestOutcomeRecord:
    """One executed metamorphic test, as reported by the execution engine."""
    __test__ = False  # keep pytest from collecting this as a test class

    model_id: str
    mr_type: str
    source_input: str
    is_violated: bool
    timestamp_utc: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    verdict: Optional[str] = None
    transformed_input: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "model_id": self.model_id,
            "mr_type": self.mr_type,
            "source_input": self.source_input,
            "transformed_input": self.transformed_input,
            "verdict": self.verdict,
            "is_violated": self.is_violated,
            "timestamp_utc": as_utc(self.timestamp_utc).isoformat(),
            "metadata": self.metadata,
        }
