"""Client for the external metamorphic test execution engine."""

from typing import Any, Dict, List, Optional
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import ExecutionError
from .relations import DEFAULT_MR_TYPES, MRTypeInfo, filter_by_category
from .submission import TestSubmission

logger = logging.getLogger(__name__)


class ExecutionVerdict(BaseModel):
    """What the engine decided for one test. Only ``is_violated`` feeds analytics."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    verdict: str = ""
    is_violated: bool = Field(..., alias="isViolated")
    transformed_input: Optional[str] = Field(default=None, alias="transformedInput")
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)


class ExecutionEngineClient:
    """Runs tests and lists relation types through the backend API."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.base_url = config.get("base_url", "")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=config.get("timeout", 30),
        )

    async def run_test(self, submission: TestSubmission) -> ExecutionVerdict:
        """Submit one test. Raises ExecutionError on any failure."""
        payload = submission.to_engine_payload()
        logger.debug(f"Sending test data: {payload}")
        try:
            response = await self.client.post("/tests/run", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}: {e.response.text}"
            logger.error(f"Execution engine error: {error_msg}")
            raise ExecutionError(error_msg) from e
        except httpx.HTTPError as e:
            error_msg = f"Execution engine unreachable: {e}"
            logger.error(error_msg)
            raise ExecutionError(error_msg) from e
        except ValueError as e:
            raise ExecutionError("Execution engine returned invalid JSON") from e

        if not isinstance(body, dict) or not body.get("success", False):
            message = body.get("error") if isinstance(body, dict) else None
            raise ExecutionError(message or "Execution engine reported failure")

        data = body.get("data") or {}
        try:
            verdict = ExecutionVerdict.model_validate(data)
        except ValidationError as e:
            raise ExecutionError(f"Malformed execution result: {e.errors()[0]['msg']}") from e
        verdict.raw = data
        return verdict

    async def list_mr_types(self, category: Optional[str] = None) -> List[MRTypeInfo]:
        """Relation types from the backend, or the built-in list if that fails."""
        params = {"category": category} if category else None
        try:
            response = await self.client.get("/tests/mr-types", params=params)
            response.raise_for_status()
            body = response.json()
            return [MRTypeInfo.model_validate(item) for item in body["data"]]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to fetch MR types, using built-in list: {e}")
            return filter_by_category(DEFAULT_MR_TYPES, category)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
