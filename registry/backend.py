"""MetaTest backend catalog client and its per-task fetcher."""

from typing import Any, Dict, List, Optional
import logging

import httpx

from core.errors import FetchFailure
from .base import RawModelRecord, SourceFetcher, parse_records

logger = logging.getLogger(__name__)


def unwrap_envelope(source: str, payload: Any) -> Any:
    """Return ``data`` from a ``{success, data}`` backend envelope."""
    if not isinstance(payload, dict):
        raise FetchFailure(source, "response is not a JSON object")
    if not payload.get("success", False):
        message = payload.get("error") or payload.get("message") or "request unsuccessful"
        raise FetchFailure(source, str(message))
    return payload.get("data", [])


class BackendClient:
    """Client for the backend's ``/tests/models`` catalog endpoint."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.base_url = config.get("base_url", "")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=config.get("timeout", 30),
        )

    async def get_models(self, task: Optional[str] = None, include_dynamic: bool = False) -> List[RawModelRecord]:
        """List catalog models, optionally including registry-backed ones for a task."""
        source = f"backend({task or 'catalog'})"
        params: Dict[str, Any] = {}
        if include_dynamic:
            params["includeDynamic"] = "true"
        if task:
            params["task"] = task

        response = await self.client.get("/tests/models", params=params)
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchFailure(source, "response is not valid JSON") from e
        return parse_records(source, unwrap_envelope(source, payload))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


class BackendTaskFetcher(SourceFetcher):
    """One load-more bucket served by the backend for a single task."""

    def __init__(self, backend: BackendClient, task: str):
        super().__init__(f"backend:{task}")
        self.backend = backend
        self.task = task

    async def fetch(self) -> List[RawModelRecord]:
        records = await self.backend.get_models(task=self.task, include_dynamic=True)
        return [record.with_default_tag(self.task) for record in records]


class BackendCatalogFetcher(SourceFetcher):
    """The backend's seed catalog, read once when a session starts."""

    def __init__(self, backend: BackendClient):
        super().__init__("backend:catalog")
        self.backend = backend

    async def fetch(self) -> List[RawModelRecord]:
        return await self.backend.get_models()
