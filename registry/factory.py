"""Factory for building source fetchers from configuration."""

from typing import Any, Dict, List, Optional
import logging

from core.errors import ConfigError
from .backend import BackendCatalogFetcher, BackendClient, BackendTaskFetcher
from .base import SourceFetcher
from .huggingface import HuggingFaceRegistry, RegistrySearchFetcher, RegistryTaskFetcher

logger = logging.getLogger(__name__)


class FetcherFactory:
    """Builds the fetchers a catalog session needs.

    Usage:
        factory = FetcherFactory(load_config())
        fetchers = factory.load_more_fetchers()
        search = factory.search_fetcher("bert")
        await factory.aclose()
    """

    LOAD_MORE_SOURCES = ("backend", "registry")

    def __init__(
        self,
        config: Dict[str, Any],
        backend: Optional[BackendClient] = None,
        registry: Optional[HuggingFaceRegistry] = None,
    ):
        self.config = config
        self._backend = backend
        self._registry = registry

    @property
    def backend(self) -> BackendClient:
        if self._backend is None:
            self._backend = BackendClient(self.config.get("backend", {}))
        return self._backend

    @property
    def registry(self) -> HuggingFaceRegistry:
        if self._registry is None:
            self._registry = HuggingFaceRegistry(self.config.get("registry", {}))
        return self._registry

    def catalog_fetcher(self) -> SourceFetcher:
        return BackendCatalogFetcher(self.backend)

    def load_more_fetchers(self) -> List[SourceFetcher]:
        """One fetcher per configured task bucket."""
        catalog_config = self.config.get("catalog", {})
        source = catalog_config.get("load_more_source", "backend")
        tasks = catalog_config.get("load_more_tasks", [])

        if source not in self.LOAD_MORE_SOURCES:
            available = ", ".join(self.LOAD_MORE_SOURCES)
            raise ConfigError(f"Unknown load-more source: {source}. Available: {available}")

        if source == "registry":
            limit = self.config.get("registry", {}).get("task_limit", 5)
            return [RegistryTaskFetcher(self.registry, task, limit=limit) for task in tasks]
        return [BackendTaskFetcher(self.backend, task) for task in tasks]

    def search_fetcher(self, term: str) -> SourceFetcher:
        limit = self.config.get("registry", {}).get("search_limit", 10)
        return RegistrySearchFetcher(self.registry, term, limit=limit)

    async def aclose(self) -> None:
        if self._backend is not None:
            await self._backend.aclose()
            self._backend = None
        if self._registry is not None:
            await self._registry.aclose()
            self._registry = None
