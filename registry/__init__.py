"""Model sources feeding the catalog: backend catalog and model registry."""

from .base import FetchOutcome, RawModelRecord, RegistryQuery, SourceFetcher
from .backend import BackendCatalogFetcher, BackendClient, BackendTaskFetcher
from .huggingface import HuggingFaceRegistry, RegistrySearchFetcher, RegistryTaskFetcher
from .factory import FetcherFactory

__all__ = [
    "FetchOutcome",
    "RawModelRecord",
    "RegistryQuery",
    "SourceFetcher",
    "BackendClient",
    "BackendCatalogFetcher",
    "BackendTaskFetcher",
    "HuggingFaceRegistry",
    "RegistrySearchFetcher",
    "RegistryTaskFetcher",
    "FetcherFactory",
]
