"""Hugging Face Hub model registry client and fetchers."""

import os
from typing import Any, Dict, List, Optional
import logging

import httpx

from core.errors import FetchFailure
from .base import RawModelRecord, RegistryQuery, SourceFetcher, parse_records

logger = logging.getLogger(__name__)


class HuggingFaceRegistry:
    """Client for the Hub's public ``/api/models`` listing."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.base_url = config.get("base_url", "https://huggingface.co")
        headers = {"Accept": "application/json"}
        token_env = config.get("token_env")
        token = os.getenv(token_env) if token_env else None
        if token and token.strip():
            headers["Authorization"] = f"Bearer {token.strip()}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=config.get("timeout", 30),
        )

    async def list_models(self, query: RegistryQuery) -> List[RawModelRecord]:
        """Run one registry query. Raises FetchFailure or httpx errors."""
        source = f"registry({query.task or query.search_term or '*'})"
        logger.debug(f"Querying registry with {query.to_params()}")

        response = await self.client.get("/api/models", params=query.to_params())
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchFailure(source, "response is not valid JSON") from e
        return parse_records(source, payload)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


class RegistryTaskFetcher(SourceFetcher):
    """Most-downloaded registry models for one pipeline task."""

    def __init__(self, registry: HuggingFaceRegistry, task: str, limit: int = 5):
        super().__init__(f"registry:{task}")
        self.registry = registry
        self.task = task
        self.limit = limit

    async def fetch(self) -> List[RawModelRecord]:
        records = await self.registry.list_models(RegistryQuery(task=self.task, limit=self.limit))
        return [record.with_default_tag(self.task) for record in records]


class RegistrySearchFetcher(SourceFetcher):
    """Free-text registry search; tags pass through untouched."""

    def __init__(self, registry: HuggingFaceRegistry, term: str, limit: int = 10):
        super().__init__(f"search:{term}")
        self.registry = registry
        self.term = term
        self.limit = limit

    async def fetch(self) -> List[RawModelRecord]:
        return await self.registry.list_models(RegistryQuery(search_term=self.term, limit=self.limit))
