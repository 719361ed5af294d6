"""MetaTest engine exposed as an async service for API and CLI consumers."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from analytics.aggregator import AnalyticsAggregator, AnalyticsReport
from catalog.merge import MergeEngine
from catalog.service import CatalogSession, CycleResult
from core.config import load_config
from registry.factory import FetcherFactory
from storage.database import Database
from storage.repository import OutcomeRepository
from .engine import ExecutionEngineClient
from .relations import MRTypeInfo
from .runner import TestRunResult, TestRunner

logger = logging.getLogger(__name__)


class MetaTestService:
    """Orchestrates catalog sessions, test runs and analytics reads."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        repository: Optional[OutcomeRepository] = None,
        engine: Optional[ExecutionEngineClient] = None,
        fetcher_factory: Optional[Callable[[Dict[str, Any]], FetcherFactory]] = None,
    ):
        self.config = config if config is not None else load_config()
        self._db: Optional[Database] = None
        self._repository = repository
        self._engine = engine
        self._fetcher_factory = fetcher_factory or FetcherFactory
        self._sessions: Dict[str, CatalogSession] = {}
        self.aggregator = AnalyticsAggregator()

    @property
    def repository(self) -> OutcomeRepository:
        if self._repository is None:
            db_path = self.config.get("storage", {}).get("db_path", "metatest.duckdb")
            self._db = Database(db_path)
            self._repository = OutcomeRepository(self._db)
        return self._repository

    @property
    def engine(self) -> ExecutionEngineClient:
        if self._engine is None:
            self._engine = ExecutionEngineClient(self.config.get("backend", {}))
        return self._engine

    # ── Catalog sessions ──────────────────────────────────────────────

    async def create_session(self, seed: bool = True) -> tuple[CatalogSession, Optional[CycleResult]]:
        dedupe = bool(self.config.get("catalog", {}).get("dedupe_within_cycle", False))
        session = CatalogSession(
            fetchers=self._fetcher_factory(self.config),
            merge_engine=MergeEngine(dedupe_within_cycle=dedupe),
        )
        self._sessions[session.session_id] = session

        result = await session.seed() if seed else None
        logger.info(f"Created session {session.session_id} with {len(session.catalog)} models")
        return session, result

    def get_session(self, session_id: str) -> Optional[CatalogSession]:
        return self._sessions.get(session_id)

    def list_sessions(self) -> List[Dict[str, Any]]:
        return [
            {
                "session_id": session.session_id,
                "models": len(session.catalog),
                "created_at": session.created_at.isoformat(),
            }
            for session in self._sessions.values()
        ]

    async def close_session(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.aclose()
        return True

    # ── Tests ─────────────────────────────────────────────────────────

    async def run_test(
        self,
        model_id: Optional[str],
        mr_type: Optional[str],
        source_input: Optional[str],
    ) -> TestRunResult:
        runner = TestRunner(self.engine, self.repository)
        return await runner.run(model_id, mr_type, source_input)

    async def list_mr_types(self, category: Optional[str] = None) -> List[MRTypeInfo]:
        return await self.engine.list_mr_types(category)

    def get_results(
        self,
        model_id: Optional[str] = None,
        mr_type: Optional[str] = None,
        is_violated: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Dict[str, Any]:
        records = self.repository.list_records(
            model_id=model_id,
            mr_type=mr_type,
            is_violated=is_violated,
            limit=limit,
            offset=offset,
        )
        return {"results": [r.to_dict() for r in records], "total": len(records)}

    # ── Analytics ─────────────────────────────────────────────────────

    def get_analytics(self, model_id: Optional[str] = None) -> AnalyticsReport:
        """Recompute analytics from the full record set on every call."""
        records = self.repository.records_for_analytics(model_id)
        return self.aggregator.aggregate(records, scope_model_id=model_id)

    async def aclose(self) -> None:
        for session_id in list(self._sessions):
            await self.close_session(session_id)
        if self._engine is not None:
            await self._engine.aclose()
            self._engine = None
        if self._db is not None:
            self._db.close()
            self._db = None
            self._repository = None
