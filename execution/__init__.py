"""Metamorphic test execution: validation, engine client, runner and service."""

from .relations import DEFAULT_MR_TYPES, MRTypeInfo, filter_by_category
from .submission import TestSubmission, validate_submission
from .engine import ExecutionEngineClient, ExecutionVerdict
from .runner import TestRunner, TestRunResult
from .service import MetaTestService

__all__ = [
    "DEFAULT_MR_TYPES",
    "MRTypeInfo",
    "filter_by_category",
    "TestSubmission",
    "validate_submission",
    "ExecutionEngineClient",
    "ExecutionVerdict",
    "TestRunner",
    "TestRunResult",
    "MetaTestService",
]
