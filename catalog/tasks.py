"""Task codes and the registry tag classifier."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class TaskKind(str, Enum):
    """Canonical task families a model can be grouped under."""
    SENTIMENT = "sentiment"
    ZERO_SHOT = "zero-shot"
    TEXT_GENERATION = "text-generation"
    TRANSLATION = "translation"
    SUMMARIZATION = "summarization"
    QUESTION_ANSWERING = "question-answering"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TaskCode:
    """A task kind plus its display label.

    Known kinds always carry their canonical label. ``UNKNOWN`` keeps the raw
    registry tag so unrecognised tasks can still be displayed and grouped.
    """
    kind: TaskKind
    label: str

    @classmethod
    def of(cls, kind: TaskKind) -> "TaskCode":
        return cls(kind=kind, label=kind.value)

    @classmethod
    def unknown(cls, raw_tag: Optional[str] = None) -> "TaskCode":
        return cls(kind=TaskKind.UNKNOWN, label=raw_tag or TaskKind.UNKNOWN.value)

    @classmethod
    def parse(cls, label: Optional[str]) -> "TaskCode":
        """Map a canonical label back to its code; anything else is UNKNOWN(label)."""
        if not label:
            return cls.unknown()
        try:
            kind = TaskKind(label)
        except ValueError:
            return cls.unknown(label)
        return cls(kind=kind, label=label)

    @property
    def is_known(self) -> bool:
        return self.kind is not TaskKind.UNKNOWN

    def __str__(self) -> str:
        return self.label


# Order matters: tags can contain several of these substrings and the first
# matching rule decides.
CLASSIFICATION_RULES: Tuple[Tuple[Tuple[str, ...], TaskKind], ...] = (
    (("sentiment", "text-classification"), TaskKind.SENTIMENT),
    (("zero-shot",), TaskKind.ZERO_SHOT),
    (("text-generation",), TaskKind.TEXT_GENERATION),
    (("translation",), TaskKind.TRANSLATION),
    (("summarization",), TaskKind.SUMMARIZATION),
)


def classify(raw_tag: Optional[str]) -> TaskCode:
    """Classify a raw registry ``pipeline_tag`` into a TaskCode. Never fails."""
    if not raw_tag:
        return TaskCode.unknown()

    for needles, kind in CLASSIFICATION_RULES:
        if any(needle in raw_tag for needle in needles):
            return TaskCode.of(kind)

    return TaskCode.unknown(raw_tag)
