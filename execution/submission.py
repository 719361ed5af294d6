"""Test submission schema and pre-flight validation."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.errors import ValidationFailure
from .relations import DEFAULT_MR_TYPE


class TestSubmission(BaseModel):
    """A validated request to run one metamorphic test."""
    __test__ = False
    model_config = ConfigDict(protected_namespaces=())

    model_id: str = Field(..., min_length=1)
    mr_type: str = Field(default=DEFAULT_MR_TYPE, min_length=1)
    source_input: str = Field(..., min_length=1)

    def to_engine_payload(self) -> dict:
        return {
            "modelId": self.model_id,
            "MRType": self.mr_type,
            "sourceInput": self.source_input,
        }


def validate_submission(
    model_id: Optional[str],
    source_input: Optional[str],
    mr_type: Optional[str] = DEFAULT_MR_TYPE,
) -> TestSubmission:
    """Check a submission before any network call. Raises ValidationFailure."""
    if not model_id or not model_id.strip():
        raise ValidationFailure("Please select a model first", field="model_id")
    if not source_input or not source_input.strip():
        raise ValidationFailure("Please enter a test input", field="source_input")
    if not mr_type or not mr_type.strip():
        raise ValidationFailure("Please choose a metamorphic relation", field="mr_type")

    return TestSubmission(
        model_id=model_id.strip(),
        mr_type=mr_type.strip(),
        source_input=source_input.strip(),
    )
