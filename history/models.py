from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple, Optional
import uuid

from rules.catalogue import get_rule
from rules.models import (
    RuleDefinition, Issue, Pass, Warning, PageInfo, ScanSummary, Evaluation,
    ComplianceLevel, ConformanceLevel, Severity,
)
from rules.scoring import classify, summarize
from scanner.url_utils import LinkUtility


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_time(value) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _rule_from_dict(data: dict) -> RuleDefinition:
    """Catalogue entry for a stored id; rebuilt from the stored fields if the id was retired."""
    try:
        return get_rule(data["id"])
    except KeyError:
        return RuleDefinition(
            id=data["id"],
            name=data.get("name", data["id"]),
            wcag=data.get("wcag", ""),
            level=ConformanceLevel(data.get("level", "A")),
            principle=data.get("principle", ""),
            severity=Severity(data.get("impact", "moderate")),
            description=data.get("description", ""),
            url=data.get("url", ""),
        )


@dataclass(frozen=True)
class ScanRecord:
    """
    Immutable result of one scan.
    Invariant: `id` is unique and never reused; records are never edited after creation.
    """
    id: str
    url: str
    scanned_at: datetime
    score: int
    compliance_level: ComplianceLevel
    summary: ScanSummary
    issues: Tuple[Issue, ...] = ()
    warnings: Tuple[Warning, ...] = ()
    passes: Tuple[Pass, ...] = ()
    page_info: PageInfo = field(default_factory=PageInfo)

    @classmethod
    def from_evaluation(cls, url: str, evaluation: Evaluation, scanned_at: Optional[datetime] = None):
        score, level = classify(evaluation.issues, evaluation.warnings, evaluation.passes)
        return cls(
            id=uuid.uuid4().hex,
            url=url,
            scanned_at=scanned_at or utcnow(),
            score=score,
            compliance_level=level,
            summary=summarize(evaluation.issues, evaluation.warnings, evaluation.passes),
            issues=evaluation.issues,
            warnings=evaluation.warnings,
            passes=evaluation.passes,
            page_info=evaluation.page_info,
        )

    @property
    def host(self) -> Optional[str]:
        return LinkUtility.hostname(self.url)

    @property
    def issue_ids(self) -> frozenset:
        return frozenset(issue.id for issue in self.issues)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "scanned_at": self.scanned_at.isoformat(),
            "score": self.score,
            "compliance_level": self.compliance_level.value,
            "summary": self.summary.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "warnings": [w.to_dict() for w in self.warnings],
            "passes": [p.to_dict() for p in self.passes],
            "page_info": self.page_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScanRecord":
        return cls(
            id=data["id"],
            url=data["url"],
            scanned_at=parse_time(data["scanned_at"]),
            score=int(data["score"]),
            compliance_level=ComplianceLevel(data["compliance_level"]),
            summary=ScanSummary(**data["summary"]),
            issues=tuple(
                Issue(
                    rule=_rule_from_dict(i),
                    elements=tuple(i.get("elements", ())),
                    count=int(i.get("count", len(i.get("elements", ())))),
                    context=i.get("context", ""),
                )
                for i in data.get("issues", ())
            ),
            warnings=tuple(Warning(_rule_from_dict(w), w.get("details", "")) for w in data.get("warnings", ())),
            passes=tuple(Pass(_rule_from_dict(p)) for p in data.get("passes", ())),
            page_info=PageInfo(**data.get("page_info", {})),
        )


# === TREND / DIFF MODELS ===

class TrendDirection(Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class DataPoint:
    id: str
    date: datetime
    score: int
    issues: int
    critical: int
    passed: int
    compliance_level: ComplianceLevel

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "score": self.score,
            "issues": self.issues,
            "critical": self.critical,
            "passed": self.passed,
            "compliance_level": self.compliance_level.value,
        }


@dataclass(frozen=True)
class TrendSummary:
    score_change: int
    issues_change: int
    direction: TrendDirection
    total_scans: int
    first_scan: datetime
    last_scan: datetime

    def to_dict(self) -> dict:
        return {
            "score_change": self.score_change,
            "issues_change": self.issues_change,
            "direction": self.direction.value,
            "total_scans": self.total_scans,
            "first_scan": self.first_scan.isoformat(),
            "last_scan": self.last_scan.isoformat(),
        }


@dataclass(frozen=True)
class ScanDiff:
    """Set difference on rule ids between two scans of the same host."""
    score_change: int
    issues_fixed: Tuple[str, ...]
    new_issues: Tuple[str, ...]
    fixed_names: Tuple[str, ...] = ()
    new_names: Tuple[str, ...] = ()

    @property
    def issues_fixed_count(self) -> int:
        return len(self.issues_fixed)

    @property
    def new_issues_count(self) -> int:
        return len(self.new_issues)

    def to_dict(self) -> dict:
        return {
            "score_change": self.score_change,
            "issues_fixed": list(self.issues_fixed),
            "issues_fixed_count": self.issues_fixed_count,
            "new_issues": list(self.new_issues),
            "new_issues_count": self.new_issues_count,
            "fixed_names": list(self.fixed_names),
            "new_names": list(self.new_names),
        }


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    date: datetime
    score: int
    compliance_level: ComplianceLevel
    issue_count: int
    critical: int
    serious: int
    passed: int
    issue_ids: Tuple[str, ...]
    diff: Optional[ScanDiff] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "score": self.score,
            "compliance_level": self.compliance_level.value,
            "issue_count": self.issue_count,
            "critical": self.critical,
            "serious": self.serious,
            "passed": self.passed,
            "issue_ids": list(self.issue_ids),
            "diff": self.diff.to_dict() if self.diff else None,
        }
