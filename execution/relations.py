"""Metamorphic relation types offered for testing."""

from typing import List, Optional

from pydantic import BaseModel


class MRTypeInfo(BaseModel):
    """Display metadata for one metamorphic relation."""
    value: str
    label: str
    description: str
    category: str = "general"


DEFAULT_MR_TYPES: List[MRTypeInfo] = [
    MRTypeInfo(
        value="SYNONYM",
        label="Synonym Replacement",
        description="Tests semantic consistency by replacing words with synonyms",
        category="semantic",
    ),
    MRTypeInfo(
        value="GENDER_SWAP",
        label="Gender Swap",
        description="Fairness & bias check by swapping gender-specific terms",
        category="fairness",
    ),
    MRTypeInfo(
        value="PUNCTUATION",
        label="Punctuation Perturbation",
        description="Robustness check by modifying punctuation",
        category="robustness",
    ),
    MRTypeInfo(
        value="NEGATION",
        label="Negation",
        description="Logical consistency by adding/removing negation",
        category="logic",
    ),
    MRTypeInfo(
        value="PARAPHRASE",
        label="Paraphrase",
        description="Semantic invariance through rephrasing",
        category="semantic",
    ),
]

DEFAULT_MR_TYPE = "SYNONYM"


def filter_by_category(mr_types: List[MRTypeInfo], category: Optional[str] = None) -> List[MRTypeInfo]:
    if not category:
        return list(mr_types)
    return [mr for mr in mr_types if mr.category == category]
