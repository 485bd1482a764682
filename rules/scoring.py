"""
FILE DESCRIPTION: Score, compliance classification and fix ordering for a scan.
KEY FUNCTIONS/CLASSES: classify, summarize, fix_priority
"""

import math
from typing import Sequence, Tuple, List

from rules.models import (
    Issue, Pass, Warning, ScanSummary, FixPriority, Severity, ComplianceLevel,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_score(issue_count: int, pass_count: int) -> int:
    """Share of applicable rules that passed, 0-100. No applicable rules scores 0."""
    applicable = issue_count + pass_count
    if applicable == 0:
        return 0
    return _round_half_up(100 * pass_count / applicable)


def compliance_level(issues: Sequence[Issue]) -> ComplianceLevel:
    critical = sum(1 for i in issues if i.severity is Severity.CRITICAL)
    serious = sum(1 for i in issues if i.severity is Severity.SERIOUS)
    if critical > 0:
        return ComplianceLevel.NON_COMPLIANT
    if serious > 1:
        return ComplianceLevel.PARTIALLY_COMPLIANT
    if issues:
        return ComplianceLevel.NEEDS_IMPROVEMENT
    return ComplianceLevel.COMPLIANT


def classify(issues: Sequence[Issue], warnings: Sequence[Warning],
             passes: Sequence[Pass]) -> Tuple[int, ComplianceLevel]:
    # Warnings never move the score or the level.
    return compute_score(len(issues), len(passes)), compliance_level(issues)


def summarize(issues: Sequence[Issue], warnings: Sequence[Warning], passes: Sequence[Pass]) -> ScanSummary:
    by_severity = {severity: 0 for severity in Severity}
    for issue in issues:
        by_severity[issue.severity] += 1
    return ScanSummary(
        total_checks=len(issues) + len(passes),
        passed=len(passes),
        issues=len(issues),
        warnings=len(warnings),
        critical=by_severity[Severity.CRITICAL],
        serious=by_severity[Severity.SERIOUS],
        moderate=by_severity[Severity.MODERATE],
        minor=by_severity[Severity.MINOR],
    )


def fallback_steps(issue: Issue) -> Tuple[str, ...]:
    return (
        f"Review the WCAG guideline: {issue.rule.wcag}",
        "Check each flagged element and apply the fix",
        "Re-test to confirm the issue is resolved",
    )


def fix_priority(issues: Sequence[Issue], limit: int = 3) -> List[FixPriority]:
    """Highest severity-weight x count first; ties keep scan order."""
    ranked = sorted(issues, key=lambda i: i.severity.weight * i.count, reverse=True)
    return [
        FixPriority(
            issue=issue,
            steps=issue.rule.fix or fallback_steps(issue),
            weight=issue.severity.weight * issue.count,
        )
        for issue in ranked[:limit]
    ]
