"""Merging fetched batches into a catalog."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from registry.base import RawModelRecord
from .store import CatalogStore, ModelDescriptor, display_name
from .tasks import TaskCode, classify

logger = logging.getLogger(__name__)


def to_descriptor(record: RawModelRecord) -> ModelDescriptor:
    """Classify a fetched record into a dynamic descriptor."""
    return ModelDescriptor(
        id=record.id,
        name=record.name or display_name(record.id),
        task=classify(record.pipeline_tag),
        is_dynamic=record.is_dynamic,
        downloads=max(record.downloads or 0, 0),
        likes=max(record.likes or 0, 0),
    )


def seed_descriptor(record: RawModelRecord) -> ModelDescriptor:
    """Build a descriptor from a backend catalog entry.

    Catalog entries already carry a canonical task label; they are static
    unless the backend says otherwise.
    """
    task = TaskCode.parse(record.task) if record.task else classify(record.pipeline_tag)
    is_dynamic = record.is_dynamic if "is_dynamic" in record.model_fields_set else False
    return ModelDescriptor(
        id=record.id,
        name=record.name or display_name(record.id),
        task=task,
        is_dynamic=is_dynamic,
        downloads=max(record.downloads or 0, 0),
        likes=max(record.likes or 0, 0),
    )


@dataclass
class MergeResult:
    """Descriptors a merge appended, in append order."""
    added: List[ModelDescriptor] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def is_empty(self) -> bool:
        return not self.added

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": [d.to_dict() for d in self.added],
            "added_count": self.added_count,
        }


class MergeEngine:
    """Filters fetched descriptors against the catalog and appends the new ones.

    Deduplication is against the catalog as it was before the merge started.
    With ``dedupe_within_cycle`` off (the default) an id that arrives twice in
    the same merge is appended twice.
    """

    def __init__(self, dedupe_within_cycle: bool = False):
        self.dedupe_within_cycle = dedupe_within_cycle

    def merge(self, catalog: CatalogStore, batch: Sequence[RawModelRecord]) -> MergeResult:
        return self.merge_cycle(catalog, [batch])

    def merge_cycle(self, catalog: CatalogStore, batches: Iterable[Sequence[RawModelRecord]]) -> MergeResult:
        """Merge every batch of one cycle against a single pre-cycle snapshot."""
        descriptors = [to_descriptor(record) for batch in batches for record in batch]
        existing = catalog.current_ids()

        added: List[ModelDescriptor] = []
        seen = set()
        for descriptor in descriptors:
            if descriptor.id in existing:
                continue
            if self.dedupe_within_cycle:
                if descriptor.id in seen:
                    continue
                seen.add(descriptor.id)
            added.append(descriptor)

        catalog.append(added)
        logger.info(
            f"Merged {len(descriptors)} fetched descriptors: {len(added)} added, "
            f"catalog size {len(catalog)}"
        )
        return MergeResult(added=added)
