from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Optional
import uuid

from history.models import utcnow, parse_time
from rules.models import OrderedEnum


class Frequency(OrderedEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def interval(self) -> timedelta:
        # monthly is a fixed 30 days, not calendar arithmetic
        return {
            Frequency.DAILY: timedelta(hours=24),
            Frequency.WEEKLY: timedelta(days=7),
            Frequency.MONTHLY: timedelta(days=30),
        }[self]

    @classmethod
    def parse(cls, value) -> "Frequency":
        """Unknown or missing values fall back to weekly."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.WEEKLY


@dataclass(frozen=True)
class Monitor:
    """
    Recurring scan registration.
    Invariants:
    - (url, contact) is unique among monitors; contact is stored lower-cased.
    - Monitors are deactivated, never deleted.
    """
    id: str
    url: str
    contact: str
    frequency: Frequency
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    last_scan_at: Optional[datetime] = None
    last_score: Optional[int] = None
    next_scan_at: Optional[datetime] = None

    @classmethod
    def create(cls, url: str, contact: str, frequency: Frequency, now: Optional[datetime] = None) -> "Monitor":
        now = now or utcnow()
        return cls(
            id=uuid.uuid4().hex,
            url=url,
            contact=contact,
            frequency=frequency,
            created_at=now,
            updated_at=now,
            next_scan_at=now + frequency.interval,
        )

    def is_due(self, now: datetime) -> bool:
        return self.active and (self.next_scan_at is None or self.next_scan_at <= now)

    def after_scan(self, now: datetime, score: int) -> "Monitor":
        return replace(
            self,
            last_scan_at=now,
            last_score=score,
            next_scan_at=now + self.frequency.interval,
            updated_at=now,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "contact": self.contact,
            "frequency": self.frequency.value,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "last_scan_at": self.last_scan_at.isoformat() if self.last_scan_at else None,
            "last_score": self.last_score,
            "next_scan_at": self.next_scan_at.isoformat() if self.next_scan_at else None,
        }

    def to_public_dict(self) -> dict:
        """Listing view without the contact address."""
        return {
            "id": self.id,
            "url": self.url,
            "frequency": self.frequency.value,
            "last_score": self.last_score,
            "next_scan_at": self.next_scan_at.isoformat() if self.next_scan_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Monitor":
        return cls(
            id=data["id"],
            url=data["url"],
            contact=data["contact"],
            frequency=Frequency.parse(data.get("frequency")),
            active=bool(data.get("active", True)),
            created_at=parse_time(data["created_at"]),
            updated_at=parse_time(data.get("updated_at") or data["created_at"]),
            last_scan_at=parse_time(data["last_scan_at"]) if data.get("last_scan_at") else None,
            last_score=data.get("last_score"),
            next_scan_at=parse_time(data["next_scan_at"]) if data.get("next_scan_at") else None,
        )


@dataclass(frozen=True)
class TickReport:
    scanned: tuple = ()
    failed: tuple = ()
    skipped: bool = False

    def to_dict(self) -> dict:
        return {"scanned": list(self.scanned), "failed": list(self.failed), "skipped": self.skipped}


@dataclass(frozen=True)
class AlertPreference:
    """Per-contact alert settings; one row per lower-cased contact."""
    contact: str
    frequency: Frequency
    enabled: bool = True
    url: Optional[str] = None
    configured_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "contact": self.contact,
            "frequency": self.frequency.value,
            "enabled": self.enabled,
            "url": self.url,
            "configured_at": self.configured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AlertPreference":
        return cls(
            contact=data["contact"],
            frequency=Frequency.parse(data.get("frequency")),
            enabled=bool(data.get("enabled", True)),
            url=data.get("url"),
            configured_at=parse_time(data["configured_at"]),
        )
