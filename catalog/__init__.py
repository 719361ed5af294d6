"""Model catalog: classification, storage and merging of fetched models."""

from .tasks import TaskCode, TaskKind, classify
from .store import CatalogStore, ModelDescriptor, display_name
from .merge import MergeEngine, MergeResult, seed_descriptor, to_descriptor
from .service import CatalogSession, CycleResult, CycleStatus

__all__ = [
    "TaskCode",
    "TaskKind",
    "classify",
    "CatalogStore",
    "ModelDescriptor",
    "display_name",
    "MergeEngine",
    "MergeResult",
    "seed_descriptor",
    "to_descriptor",
    "CatalogSession",
    "CycleResult",
    "CycleStatus",
]
