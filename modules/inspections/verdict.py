"""Completion, score, verdict and follow-up rules for checklist inspections."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from .models import ChecklistDefinition, Finding, ItemStatus, QualityBand, Verdict
from .policy import DEFAULT_POLICY, InspectionPolicy
from .responses import CompletionStats, ResponseStore, round_percent


@dataclass(frozen=True, slots=True)
class Evaluation:
    total: int
    progress_percent: int
    pass_count: int
    fail_count: int
    na_count: int
    unchecked_count: int
    critical_failed_count: int
    verdict: Verdict
    score: int
    quality_band: QualityBand

    @property
    def out_of_service(self) -> bool:
        return self.verdict is Verdict.FAIL


def compute_score(stats: CompletionStats) -> int:
    """Share of passed items among checked, non-N/A items, as 0-100."""
    return round_percent(stats.passed, stats.scored_count)


def quality_band(score: int, policy: InspectionPolicy = DEFAULT_POLICY) -> QualityBand:
    if score >= policy.pass_score_threshold:
        return QualityBand.PASS
    if score >= policy.conditional_score_threshold:
        return QualityBand.CONDITIONAL
    return QualityBand.FAIL


def critical_failed_count(definition: ChecklistDefinition, store: ResponseStore) -> int:
    return sum(
        1
        for item_id in definition.critical_item_ids()
        if store.status(item_id) is ItemStatus.FAIL
    )


def decide_verdict(
    stats: CompletionStats,
    critical_failed: int,
    policy: InspectionPolicy = DEFAULT_POLICY,
) -> Verdict:
    if stats.checked_count < stats.total:
        return Verdict.INCOMPLETE
    if critical_failed > 0:
        return Verdict.FAIL
    if stats.failed > policy.max_non_critical_failures_allowed:
        return Verdict.FAIL
    return Verdict.PASS


def evaluate(
    definition: ChecklistDefinition,
    store: ResponseStore,
    policy: InspectionPolicy = DEFAULT_POLICY,
) -> Evaluation:
    stats = store.completion_stats()
    critical_failed = critical_failed_count(definition, store)
    verdict = decide_verdict(stats, critical_failed, policy)
    score = compute_score(stats)
    return Evaluation(
        total=stats.total,
        progress_percent=stats.progress_percent,
        pass_count=stats.passed,
        fail_count=stats.failed,
        na_count=stats.na,
        unchecked_count=stats.unchecked,
        critical_failed_count=critical_failed,
        verdict=verdict,
        score=score,
        quality_band=quality_band(score, policy),
    )


def follow_up_date(
    findings: Iterable[Finding],
    inspection_date: date,
    policy: InspectionPolicy = DEFAULT_POLICY,
) -> Optional[date]:
    """Next day for any urgent finding, a week out for any other, else ``None``."""
    findings = list(findings)
    if not findings:
        return None
    if any(finding.severity in policy.urgent_finding_severities for finding in findings):
        return inspection_date + timedelta(days=policy.urgent_follow_up_days)
    return inspection_date + timedelta(days=policy.standard_follow_up_days)
