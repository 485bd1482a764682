"""
FILE DESCRIPTION: Score trend and issue diff over one host's scan history.
KEY FUNCTIONS/CLASSES: TrendEngine

Read-only: records come from a ScanStore, oldest first.
"""

from typing import Sequence, List, Optional

from rules.catalogue import RULES
from history.models import (
    ScanRecord, DataPoint, TrendSummary, TrendDirection, ScanDiff, HistoryEntry,
)


def _rule_name(rule_id: str) -> str:
    rule = RULES.get(rule_id)
    return rule.name if rule else rule_id


def _ordered_ids(record: ScanRecord) -> List[str]:
    seen = []
    for issue in record.issues:
        if issue.id not in seen:
            seen.append(issue.id)
    return seen


class TrendEngine:
    """
    FLOW: Host records (oldest first) -> DataPoints -> first/last TrendSummary;
    consecutive pairs -> ScanDiff by rule id set difference.
    """

    def data_points(self, records: Sequence[ScanRecord]) -> List[DataPoint]:
        return [
            DataPoint(
                id=r.id,
                date=r.scanned_at,
                score=r.score,
                issues=r.summary.issues,
                critical=r.summary.critical,
                passed=r.summary.passed,
                compliance_level=r.compliance_level,
            )
            for r in records
        ]

    def trend(self, records: Sequence[ScanRecord]) -> Optional[TrendSummary]:
        if len(records) < 2:
            return None
        first, last = records[0], records[-1]
        score_change = last.score - first.score
        if score_change > 0:
            direction = TrendDirection.IMPROVING
        elif score_change < 0:
            direction = TrendDirection.DECLINING
        else:
            direction = TrendDirection.STABLE
        return TrendSummary(
            score_change=score_change,
            issues_change=last.summary.issues - first.summary.issues,
            direction=direction,
            total_scans=len(records),
            first_scan=first.scanned_at,
            last_scan=last.scanned_at,
        )

    def diff(self, earlier: ScanRecord, later: ScanRecord) -> ScanDiff:
        before, after = _ordered_ids(earlier), _ordered_ids(later)
        fixed = tuple(rule_id for rule_id in before if rule_id not in after)
        new = tuple(rule_id for rule_id in after if rule_id not in before)
        return ScanDiff(
            score_change=later.score - earlier.score,
            issues_fixed=fixed,
            new_issues=new,
            fixed_names=tuple(_rule_name(i) for i in fixed),
            new_names=tuple(_rule_name(i) for i in new),
        )

    def history(self, records: Sequence[ScanRecord]) -> List[HistoryEntry]:
        entries = []
        for index, record in enumerate(records):
            entries.append(HistoryEntry(
                id=record.id,
                date=record.scanned_at,
                score=record.score,
                compliance_level=record.compliance_level,
                issue_count=record.summary.issues,
                critical=record.summary.critical,
                serious=record.summary.serious,
                passed=record.summary.passed,
                issue_ids=tuple(issue.id for issue in record.issues),
                diff=self.diff(records[index - 1], record) if index > 0 else None,
            ))
        return entries

    def latest_diff(self, records: Sequence[ScanRecord]) -> Optional[ScanDiff]:
        if len(records) < 2:
            return None
        return self.diff(records[-2], records[-1])
