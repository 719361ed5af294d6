"""Storage layer for MetaTest outcome records."""

from .database import Database
from .models import TestOutcomeRecord
from .repository import OutcomeRepository

__all__ = [
    "Database",
    "TestOutcomeRecord",
    "OutcomeRepository",
]
