"""Runs one metamorphic test and records its outcome."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from storage.models import TestOutcomeRecord, utc_now
from storage.repository import OutcomeRepository
from .engine import ExecutionEngineClient, ExecutionVerdict
from .submission import validate_submission

logger = logging.getLogger(__name__)


@dataclass
class TestRunResult:
    """Engine verdict plus the record appended for it."""
    __test__ = False

    verdict: ExecutionVerdict
    record: TestOutcomeRecord

    @property
    def is_violated(self) -> bool:
        return self.record.is_violated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.verdict,
            "is_violated": self.record.is_violated,
            "transformed_input": self.verdict.transformed_input,
            "record": self.record.to_dict(),
        }


class TestRunner:
    """Validates a submission, forwards it to the engine and logs the outcome."""
    __test__ = False

    def __init__(self, engine: ExecutionEngineClient, repository: OutcomeRepository):
        self.engine = engine
        self.repository = repository

    async def run(
        self,
        model_id: Optional[str],
        mr_type: Optional[str],
        source_input: Optional[str],
    ) -> TestRunResult:
        """
        Run one test.

        Raises:
            ValidationFailure: before anything is sent, when the submission is incomplete.
            ExecutionError: when the engine call fails; nothing is recorded then.
        """
        submission = validate_submission(model_id, source_input, mr_type)

        logger.info(f"Running {submission.mr_type} test against {submission.model_id}")
        verdict = await self.engine.run_test(submission)

        record = TestOutcomeRecord(
            model_id=submission.model_id,
            mr_type=submission.mr_type,
            source_input=submission.source_input,
            is_violated=verdict.is_violated,
            timestamp_utc=utc_now(),
            verdict=verdict.verdict,
            transformed_input=verdict.transformed_input,
        )
        self.repository.append(record)
        logger.info(
            f"Test {record.id} on {record.model_id}: "
            f"{'violated' if record.is_violated else 'passed'}"
        )
        return TestRunResult(verdict=verdict, record=record)
