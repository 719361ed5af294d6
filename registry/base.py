"""Abstract base classes for model sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import FetchFailure

logger = logging.getLogger(__name__)


class RegistryQuery(BaseModel):
    """Standardized query for registry lookups."""
    task: Optional[str] = None
    search_term: Optional[str] = None
    limit: int = Field(default=10, ge=1)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": self.limit}
        if self.task:
            params["pipeline_tag"] = self.task
            params["sort"] = "downloads"
        if self.search_term:
            params["search"] = self.search_term
        return params


class RawModelRecord(BaseModel):
    """One model entry as a source returns it, before classification."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    pipeline_tag: Optional[str] = None
    # canonical task label, only sent by the backend catalog
    task: Optional[str] = None
    downloads: Optional[int] = None
    likes: Optional[int] = None
    name: Optional[str] = None
    is_dynamic: bool = Field(default=True, alias="isDynamic")

    def with_default_tag(self, tag: str) -> "RawModelRecord":
        """Return a copy tagged with ``tag`` when the source gave no tag."""
        if self.pipeline_tag:
            return self
        return self.model_copy(update={"pipeline_tag": tag})


@dataclass
class FetchOutcome:
    """Result channel of one fetch: either records or the error that replaced them."""
    source: str
    records: List[RawModelRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def parse_records(source: str, payload: Any) -> List[RawModelRecord]:
    """Validate a list payload into records, raising FetchFailure on bad shape."""
    if not isinstance(payload, list):
        raise FetchFailure(source, f"expected a list of models, got {type(payload).__name__}")
    try:
        return [RawModelRecord.model_validate(item) for item in payload]
    except ValidationError as e:
        raise FetchFailure(source, f"malformed model record: {e.errors()[0]['msg']}") from e


class SourceFetcher(ABC):
    """One call against one provider, returning a batch of raw records."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def fetch(self) -> List[RawModelRecord]:
        """Fetch the batch. May raise FetchFailure or httpx errors."""
        pass

    async def fetch_isolated(self) -> FetchOutcome:
        """Fetch, capturing any failure in the outcome instead of raising."""
        try:
            records = await self.fetch()
        except FetchFailure as e:
            logger.warning(f"Fetch from {self.name} failed: {e}")
            return FetchOutcome(source=self.name, error=str(e))
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}"
            logger.warning(f"Fetch from {self.name} failed: {error_msg}")
            return FetchOutcome(source=self.name, error=error_msg)
        except httpx.HTTPError as e:
            error_msg = f"{type(e).__name__}: {e}"
            logger.warning(f"Fetch from {self.name} failed: {error_msg}")
            return FetchOutcome(source=self.name, error=error_msg)
        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            logger.exception(f"Unexpected error fetching from {self.name}")
            return FetchOutcome(source=self.name, error=error_msg)

        logger.debug(f"Fetched {len(records)} records from {self.name}")
        return FetchOutcome(source=self.name, records=records)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
