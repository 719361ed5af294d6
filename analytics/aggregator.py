"""Reliability analytics derived from test outcome records."""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from storage.models import TestOutcomeRecord, as_utc

logger = logging.getLogger(__name__)

LOW_RELIABILITY_THRESHOLD = 70
RECENT_TREND_DAYS = 3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percent_passed(total: int, violations: int) -> float:
    """Share of non-violated tests in percent, 0 when there are no tests."""
    if total <= 0:
        return 0.0
    return 100.0 * (total - violations) / total


# ── Result containers ─────────────────────────────────────────────────────

@dataclass
class PerModelStat:
    model_id: str
    total_tests: int = 0
    total_violations: int = 0
    unique_mrs: int = 0
    reliability_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_id": self.model_id,
            "total_tests": self.total_tests,
            "total_violations": self.total_violations,
            "unique_mrs": self.unique_mrs,
            "reliability_score": self.reliability_score,
        }


@dataclass
class PerRelationStat:
    mr_type: str
    total_tests: int = 0
    violations: int = 0
    pass_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mr_type": self.mr_type,
            "total_tests": self.total_tests,
            "violations": self.violations,
            "pass_rate": self.pass_rate,
        }


@dataclass
class TrendBucket:
    date: date
    daily_tests: int = 0
    daily_violations: int = 0

    @property
    def daily_passes(self) -> int:
        return self.daily_tests - self.daily_violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "daily_tests": self.daily_tests,
            "daily_violations": self.daily_violations,
            "daily_passes": self.daily_passes,
        }


def average_reliability(stats: Iterable[PerModelStat]) -> int:
    """Unweighted mean of per-model reliability scores.

    Every model counts once regardless of how many tests it has.
    """
    scores = [stat.reliability_score for stat in stats]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


@dataclass
class AnalyticsReport:
    """Per-model, per-relation and per-day summaries of one record set."""
    overall: List[PerModelStat] = field(default_factory=list)
    by_relation: List[PerRelationStat] = field(default_factory=list)
    trends: List[TrendBucket] = field(default_factory=list)
    scope_model_id: Optional[str] = None

    @property
    def total_tests(self) -> int:
        return sum(stat.total_tests for stat in self.overall)

    @property
    def total_violations(self) -> int:
        return sum(stat.total_violations for stat in self.overall)

    @property
    def average_reliability(self) -> int:
        return average_reliability(self.overall)

    def recent_trends(self, days: int = RECENT_TREND_DAYS) -> List[TrendBucket]:
        return self.trends[-days:] if days > 0 else []

    def low_reliability_models(self, threshold: int = LOW_RELIABILITY_THRESHOLD) -> List[PerModelStat]:
        return [stat for stat in self.overall if stat.reliability_score < threshold]

    def summary(self) -> Dict[str, Any]:
        low = self.low_reliability_models()
        return {
            "scope_model_id": self.scope_model_id,
            "total_tests": self.total_tests,
            "total_violations": self.total_violations,
            "average_reliability": self.average_reliability,
            "models_tested": len(self.overall),
            "low_reliability_models": [stat.model_id for stat in low],
            "needs_review": bool(low),
            "recent_trends": [bucket.to_dict() for bucket in self.recent_trends()],
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": [stat.to_dict() for stat in self.overall],
            "by_relation": [stat.to_dict() for stat in self.by_relation],
            "trends": [bucket.to_dict() for bucket in self.trends],
            "summary": self.summary(),
        }


# ── Aggregator ────────────────────────────────────────────────────────────

class AnalyticsAggregator:
    """Recomputes every summary from the supplied records on each call.

    No state is kept between calls; the caller fetches the records.
    """

    def aggregate(
        self,
        records: Iterable[TestOutcomeRecord],
        scope_model_id: Optional[str] = None,
    ) -> AnalyticsReport:
        if scope_model_id:
            records = [r for r in records if r.model_id == scope_model_id]
        else:
            records = list(records)

        overall = self._per_model(records)
        if scope_model_id and not overall:
            overall = [PerModelStat(model_id=scope_model_id)]

        report = AnalyticsReport(
            overall=overall,
            by_relation=self._per_relation(records),
            trends=self._trends(records),
            scope_model_id=scope_model_id,
        )
        logger.debug(
            f"Aggregated {len(records)} records into {len(report.overall)} models, "
            f"{len(report.by_relation)} relations, {len(report.trends)} days"
        )
        return report

    @staticmethod
    def _per_model(records: List[TestOutcomeRecord]) -> List[PerModelStat]:
        stats: Dict[str, PerModelStat] = {}
        relations: Dict[str, set] = {}

        for record in records:
            stat = stats.setdefault(record.model_id, PerModelStat(model_id=record.model_id))
            stat.total_tests += 1
            if record.is_violated:
                stat.total_violations += 1
            relations.setdefault(record.model_id, set()).add(record.mr_type)

        for model_id, stat in stats.items():
            stat.unique_mrs = len(relations[model_id])
            stat.reliability_score = round_half_up(
                _percent_passed(stat.total_tests, stat.total_violations)
            )
        return list(stats.values())

    @staticmethod
    def _per_relation(records: List[TestOutcomeRecord]) -> List[PerRelationStat]:
        stats: Dict[str, PerRelationStat] = {}
        for record in records:
            stat = stats.setdefault(record.mr_type, PerRelationStat(mr_type=record.mr_type))
            stat.total_tests += 1
            if record.is_violated:
                stat.violations += 1

        for stat in stats.values():
            stat.pass_rate = _percent_passed(stat.total_tests, stat.violations)
        return list(stats.values())

    @staticmethod
    def _trends(records: List[TestOutcomeRecord]) -> List[TrendBucket]:
        buckets: Dict[date, TrendBucket] = {}
        for record in records:
            day = as_utc(record.timestamp_utc).date()
            bucket = buckets.setdefault(day, TrendBucket(date=day))
            bucket.daily_tests += 1
            if record.is_violated:
                bucket.daily_violations += 1
        return [buckets[day] for day in sorted(buckets)]
