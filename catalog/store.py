"""In-memory model catalog."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .tasks import TaskCode

_WORD_START = re.compile(r"\b\w")


def display_name(model_id: str) -> str:
    """``"org/distilbert-base-uncased"`` -> ``"Distilbert Base Uncased"``."""
    short = model_id.split("/")[-1].replace("-", " ")
    return _WORD_START.sub(lambda m: m.group(0).upper(), short)


@dataclass(frozen=True)
class ModelDescriptor:
    """A selectable model. ``id`` alone decides identity."""
    id: str
    name: str = field(compare=False)
    task: TaskCode = field(default_factory=TaskCode.unknown, compare=False)
    is_dynamic: bool = field(default=False, compare=False)
    downloads: int = field(default=0, compare=False)
    likes: int = field(default=0, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "task": self.task.label,
            "task_kind": self.task.kind.value,
            "is_dynamic": self.is_dynamic,
            "downloads": self.downloads,
            "likes": self.likes,
        }


class CatalogStore:
    """Ordered, append-only sequence of model descriptors.

    Uniqueness is not enforced here; the merge engine filters before appending.
    """

    def __init__(self, descriptors: Optional[Iterable[ModelDescriptor]] = None):
        self._items: List[ModelDescriptor] = list(descriptors or [])

    def current_ids(self) -> FrozenSet[str]:
        return frozenset(d.id for d in self._items)

    def append(self, batch: Iterable[ModelDescriptor]) -> None:
        self._items.extend(batch)

    def snapshot(self) -> Tuple[ModelDescriptor, ...]:
        return tuple(self._items)

    def get(self, model_id: str) -> Optional[ModelDescriptor]:
        for descriptor in self._items:
            if descriptor.id == model_id:
                return descriptor
        return None

    def group_by_task(self) -> Dict[str, List[ModelDescriptor]]:
        """Group by task label, keeping catalog order inside and across groups."""
        groups: Dict[str, List[ModelDescriptor]] = {}
        for descriptor in self._items:
            groups.setdefault(descriptor.task.label, []).append(descriptor)
        return groups

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._items)

    def __contains__(self, model_id: object) -> bool:
        return any(d.id == model_id for d in self._items)
