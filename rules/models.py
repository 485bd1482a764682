from enum import Enum
from functools import total_ordering
from dataclasses import dataclass, field
from typing import Tuple


@total_ordering
class OrderedEnum(Enum):
    """Enum whose members compare by declaration order (first is lowest)."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank


class Severity(OrderedEnum):
    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        # fix-priority weight: minor 1 .. critical 4
        return self.rank + 1


class ConformanceLevel(OrderedEnum):
    A = "A"
    AA = "AA"
    AAA = "AAA"


class ComplianceLevel(OrderedEnum):
    COMPLIANT = "compliant"
    NEEDS_IMPROVEMENT = "needs-improvement"
    PARTIALLY_COMPLIANT = "partially-compliant"
    NON_COMPLIANT = "non-compliant"


class OutcomeStatus(Enum):
    ISSUE = "ISSUE"
    PASS = "PASS"
    WARNING = "WARNING"
    INAPPLICABLE = "INAPPLICABLE"


@dataclass(frozen=True)
class RuleDefinition:
    """
    Immutable catalogue entry.
    `id` is the stable key used by issues, passes, diffs and external consumers.
    """
    id: str
    name: str
    wcag: str
    level: ConformanceLevel
    principle: str
    severity: Severity
    description: str
    url: str
    fix: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "wcag": self.wcag,
            "level": self.level.value,
            "principle": self.principle,
            "impact": self.severity.value,
            "description": self.description,
            "url": self.url,
        }


@dataclass(frozen=True)
class RuleOutcome:
    """What a single predicate concluded about the page."""
    status: OutcomeStatus
    elements: Tuple[str, ...] = ()
    details: str = ""

    @classmethod
    def from_violations(cls, elements, context: str = "") -> "RuleOutcome":
        """Issue when anything was found, pass otherwise."""
        elements = tuple(elements)
        if elements:
            return cls(OutcomeStatus.ISSUE, elements, context)
        return cls(OutcomeStatus.PASS)

    @classmethod
    def passed(cls) -> "RuleOutcome":
        return cls(OutcomeStatus.PASS)

    @classmethod
    def warning(cls, details: str) -> "RuleOutcome":
        return cls(OutcomeStatus.WARNING, (), details)

    @classmethod
    def inapplicable(cls) -> "RuleOutcome":
        return cls(OutcomeStatus.INAPPLICABLE)


MAX_EXCERPTS = 5


@dataclass(frozen=True)
class Issue:
    """
    A rule bound to the offending elements of one scan.
    INVARIANT: count >= 1; `elements` holds at most MAX_EXCERPTS excerpts, count is the true total.
    """
    rule: RuleDefinition
    elements: Tuple[str, ...]
    count: int
    context: str = ""

    @property
    def id(self) -> str:
        return self.rule.id

    @property
    def severity(self) -> Severity:
        return self.rule.severity

    def to_dict(self) -> dict:
        data = self.rule.to_dict()
        data.update({"elements": list(self.elements), "count": self.count, "context": self.context})
        return data


@dataclass(frozen=True)
class Pass:
    rule: RuleDefinition

    @property
    def id(self) -> str:
        return self.rule.id

    def to_dict(self) -> dict:
        return {"id": self.rule.id, "name": self.rule.name, "wcag": self.rule.wcag, "level": self.rule.level.value}


@dataclass(frozen=True)
class Warning:
    rule: RuleDefinition
    details: str = ""

    @property
    def id(self) -> str:
        return self.rule.id

    def to_dict(self) -> dict:
        data = self.rule.to_dict()
        data["details"] = self.details
        return data


@dataclass(frozen=True)
class PageInfo:
    title: str = "(no title)"
    lang: str = "(not set)"
    heading_count: int = 0
    image_count: int = 0
    link_count: int = 0
    form_count: int = 0
    landmarks: int = 0

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "lang": self.lang,
            "heading_count": self.heading_count,
            "image_count": self.image_count,
            "link_count": self.link_count,
            "form_count": self.form_count,
            "landmarks": self.landmarks,
        }


@dataclass(frozen=True)
class Evaluation:
    """Output of one evaluator pass, before scoring."""
    issues: Tuple[Issue, ...] = ()
    warnings: Tuple[Warning, ...] = ()
    passes: Tuple[Pass, ...] = ()
    page_info: PageInfo = field(default_factory=PageInfo)


@dataclass(frozen=True)
class ScanSummary:
    total_checks: int
    passed: int
    issues: int
    warnings: int
    critical: int
    serious: int
    moderate: int
    minor: int

    def to_dict(self) -> dict:
        return {
            "total_checks": self.total_checks,
            "passed": self.passed,
            "issues": self.issues,
            "warnings": self.warnings,
            "critical": self.critical,
            "serious": self.serious,
            "moderate": self.moderate,
            "minor": self.minor,
        }


@dataclass(frozen=True)
class FixPriority:
    issue: Issue
    steps: Tuple[str, ...]
    weight: int

    def to_dict(self) -> dict:
        return {
            "id": self.issue.id,
            "name": self.issue.rule.name,
            "impact": self.issue.severity.value,
            "count": self.issue.count,
            "steps": list(self.steps),
        }
