"""Catalog session: seeding, load-more and search cycles over one store."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from core.errors import ValidationFailure
from registry.base import FetchOutcome, SourceFetcher
from registry.factory import FetcherFactory
from .merge import MergeEngine, MergeResult, seed_descriptor
from .store import CatalogStore

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    """What a fetch cycle did to the catalog."""
    ADDED = "added"
    NO_NEW_ITEMS = "no_new_items"
    NO_RESULTS = "no_results"
    FAILED = "failed"


@dataclass
class CycleResult:
    """Aggregate outcome of one seed, load-more or search cycle."""
    action: str
    status: CycleStatus
    merge: MergeResult = field(default_factory=MergeResult)
    fetched_count: int = 0
    failed_sources: List[str] = field(default_factory=list)
    term: Optional[str] = None

    @property
    def added_count(self) -> int:
        return self.merge.added_count

    @property
    def message(self) -> str:
        count = self.added_count
        if self.action == "search":
            if self.status is CycleStatus.ADDED:
                return f'Found {count} models matching "{self.term}"'
            if self.status is CycleStatus.NO_NEW_ITEMS:
                return f'No new models found for "{self.term}"'
            if self.status is CycleStatus.NO_RESULTS:
                return f'No models found for "{self.term}"'
            return "Search failed - please try again"
        if self.action == "seed":
            if self.status is CycleStatus.FAILED:
                return "Failed to fetch models"
            return f"Loaded {count} models"
        if self.status is CycleStatus.ADDED:
            return f"Added {count} new models"
        if self.status is CycleStatus.FAILED:
            return "Failed to load more models"
        return "No new models found - try searching instead!"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "status": self.status.value,
            "message": self.message,
            "added_count": self.added_count,
            "added": [d.to_dict() for d in self.merge.added],
            "fetched_count": self.fetched_count,
            "failed_sources": self.failed_sources,
        }


def _cycle_status(outcomes: Sequence[FetchOutcome], merge: MergeResult) -> CycleStatus:
    if not merge.is_empty:
        return CycleStatus.ADDED
    if outcomes and all(outcome.failed for outcome in outcomes):
        return CycleStatus.FAILED
    if sum(len(outcome.records) for outcome in outcomes) == 0:
        return CycleStatus.NO_RESULTS
    return CycleStatus.NO_NEW_ITEMS


class CatalogSession:
    """Owns one catalog for the lifetime of a user session."""

    def __init__(
        self,
        fetchers: FetcherFactory,
        merge_engine: Optional[MergeEngine] = None,
        catalog: Optional[CatalogStore] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.fetchers = fetchers
        self.merge_engine = merge_engine or MergeEngine()
        self.catalog = catalog if catalog is not None else CatalogStore()
        self.created_at = datetime.now(timezone.utc)

    async def seed(self) -> CycleResult:
        """Load the backend catalog as the session's initial contents."""
        outcome = await self.fetchers.catalog_fetcher().fetch_isolated()
        if outcome.failed:
            return CycleResult(
                action="seed",
                status=CycleStatus.FAILED,
                failed_sources=[outcome.source],
            )

        existing = set(self.catalog.current_ids())
        added = []
        for record in outcome.records:
            if record.id in existing:
                continue
            existing.add(record.id)
            added.append(seed_descriptor(record))
        self.catalog.append(added)
        logger.info(f"Session {self.session_id} seeded with {len(added)} models")

        merge = MergeResult(added=added)
        return CycleResult(
            action="seed",
            status=CycleStatus.ADDED if added else CycleStatus.NO_RESULTS,
            merge=merge,
            fetched_count=len(outcome.records),
        )

    async def load_more(self) -> CycleResult:
        """Query every task bucket concurrently and merge what arrives."""
        return await self._run_cycle("load_more", self.fetchers.load_more_fetchers())

    async def search(self, term: str) -> CycleResult:
        """Free-text registry search merged into the catalog."""
        term = (term or "").strip()
        if not term:
            raise ValidationFailure("Please enter a search term", field="term")
        return await self._run_cycle("search", [self.fetchers.search_fetcher(term)], term=term)

    async def _run_cycle(
        self,
        action: str,
        fetchers: Sequence[SourceFetcher],
        term: Optional[str] = None,
    ) -> CycleResult:
        outcomes: List[FetchOutcome] = list(
            await asyncio.gather(*(fetcher.fetch_isolated() for fetcher in fetchers))
        )

        completed = [outcome.records for outcome in outcomes if not outcome.failed]
        failed_sources = [outcome.source for outcome in outcomes if outcome.failed]
        if failed_sources:
            logger.info(f"{action}: {len(failed_sources)}/{len(outcomes)} sources failed: {failed_sources}")

        merge = self.merge_engine.merge_cycle(self.catalog, completed)
        return CycleResult(
            action=action,
            status=_cycle_status(outcomes, merge),
            merge=merge,
            fetched_count=sum(len(batch) for batch in completed),
            failed_sources=failed_sources,
            term=term,
        )

    async def aclose(self) -> None:
        await self.fetchers.aclose()
