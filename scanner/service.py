"""
FILE DESCRIPTION: Scan service, the single interface the web layer, CLI and scheduler call.
KEY FUNCTIONS/CLASSES: ScanService, TrendReport, HistoryReport, Comparison, BatchResult

FLOW: URL -> LinkUtility.normalize_target -> PageFetcher.fetch -> RuleEvaluator.evaluate ->
ScanRecord.from_evaluation (score + compliance) -> ScanStore.append
"""

from dataclasses import dataclass, replace
from typing import Optional, List, Tuple

from scanner.core import MAX_BATCH_URLS, logger
from scanner.errors import (
    ScanError, FetchError, InvalidURLError, InvalidContactError, InvalidRequestError,
    NotFoundError, InternalError, SURFACED_FETCH_ERRORS,
)
from scanner.fetcher import PageFetcher
from scanner.url_utils import LinkUtility, normalize_contact
from rules.evaluator import RuleEvaluator
from rules.scoring import fix_priority
from history.models import ScanRecord, DataPoint, TrendSummary, HistoryEntry, ScanDiff, utcnow
from history.trend import TrendEngine
from monitoring.models import Monitor, Frequency, AlertPreference


# === RESULT TYPES ===

@dataclass(frozen=True)
class TrendReport:
    url: str
    domain: str
    scans: Tuple[DataPoint, ...] = ()
    trend: Optional[TrendSummary] = None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "domain": self.domain,
            "scans": [s.to_dict() for s in self.scans],
            "trend": self.trend.to_dict() if self.trend else None,
        }


@dataclass(frozen=True)
class HistoryReport:
    url: str
    domain: str
    history: Tuple[HistoryEntry, ...] = ()
    latest_diff: Optional[ScanDiff] = None

    @property
    def total_scans(self) -> int:
        return len(self.history)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "domain": self.domain,
            "total_scans": self.total_scans,
            "history": [h.to_dict() for h in self.history],
            "latest_diff": self.latest_diff.to_dict() if self.latest_diff else None,
        }


@dataclass(frozen=True)
class Comparison:
    site1: ScanRecord
    site2: ScanRecord

    @property
    def winner(self) -> str:
        # ties go to the first site
        return "site1" if self.site1.score >= self.site2.score else "site2"

    def to_dict(self) -> dict:
        return {"site1": self.site1.to_dict(), "site2": self.site2.to_dict(), "winner": self.winner}


@dataclass(frozen=True)
class BatchResult:
    url: str
    id: Optional[str] = None
    score: Optional[int] = None
    total_issues: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"url": self.url, "error": self.error}
        return {"url": self.url, "id": self.id, "score": self.score, "total_issues": self.total_issues}


# === SERVICE ===

class ScanService:
    """
    Owns the scan pipeline and mediates every read/write of the stores.
    Stores are injected; the service keeps no global state.
    """

    def __init__(self, scan_store, monitor_store, fetcher=None, evaluator=None, trend_engine=None):
        self.scan_store = scan_store
        self.monitor_store = monitor_store
        self.fetcher = fetcher or PageFetcher()
        self.evaluator = evaluator or RuleEvaluator()
        self.trend_engine = trend_engine or TrendEngine()

    # -------------------------------
    # SCANNING
    # -------------------------------
    def run_scan(self, url: str) -> ScanRecord:
        """Fetch, evaluate and score one page without storing it."""
        target = LinkUtility.normalize_target(url)
        logger.info(f"[SCAN] Scanning {target}")
        try:
            markup = self.fetcher.fetch(target)
            evaluation = self.evaluator.evaluate(markup)
        except SURFACED_FETCH_ERRORS:
            raise
        except InvalidURLError:
            raise
        except FetchError as e:
            logger.warning(f"[SCAN] Fetch failed for {target}: {e.message}")
            raise InternalError(f"Scan failed: {e.message}") from e
        except Exception as e:
            logger.error(f"[SCAN] Unexpected failure for {target}: {e}", exc_info=True)
            raise InternalError(f"Scan failed: {e}") from e

        record = ScanRecord.from_evaluation(target, evaluation)
        logger.info(
            f"[SCAN] {target} scored {record.score}/100 "
            f"({record.summary.issues} issues, {record.compliance_level.value})"
        )
        return record

    def scan(self, url: str) -> ScanRecord:
        record = self.run_scan(url)
        self.scan_store.append(record)
        return record

    def fix_priority(self, record: ScanRecord, limit: int = 3):
        return fix_priority(record.issues, limit)

    def get_scan(self, scan_id: str) -> ScanRecord:
        record = self.scan_store.get(scan_id)
        if record is None:
            raise NotFoundError("Scan not found")
        return record

    def history(self, url_filter: Optional[str] = None, limit: int = 20) -> List[ScanRecord]:
        return self.scan_store.recent(url_filter, limit)

    # -------------------------------
    # TREND / DIFF
    # -------------------------------
    def _host_records(self, url: str):
        if not url or not str(url).strip():
            raise InvalidRequestError("URL parameter required")
        target = LinkUtility.normalize_target(url)
        domain = LinkUtility.hostname(target)
        return target, domain, self.scan_store.for_host(domain)

    def trend(self, url: str) -> TrendReport:
        target, domain, records = self._host_records(url)
        return TrendReport(
            url=target,
            domain=domain,
            scans=tuple(self.trend_engine.data_points(records)),
            trend=self.trend_engine.trend(records),
        )

    def scan_history(self, url: str) -> HistoryReport:
        target, domain, records = self._host_records(url)
        return HistoryReport(
            url=target,
            domain=domain,
            history=tuple(self.trend_engine.history(records)),
            latest_diff=self.trend_engine.latest_diff(records),
        )

    # -------------------------------
    # COMPARE / BATCH
    # -------------------------------
    def compare(self, url1: str, url2: str) -> Comparison:
        if not url1 or not url2:
            raise InvalidRequestError("Two URLs are required")
        target1 = LinkUtility.normalize_target(url1)
        target2 = LinkUtility.normalize_target(url2)
        site1 = self.run_scan(target1)
        site2 = self.run_scan(target2)
        self.scan_store.append(site1)
        self.scan_store.append(site2)
        return Comparison(site1, site2)

    def batch_scan(self, urls) -> List[BatchResult]:
        if not urls or not isinstance(urls, (list, tuple)):
            raise InvalidRequestError("Provide an array of urls")
        if len(urls) > MAX_BATCH_URLS:
            raise InvalidRequestError(f"Maximum {MAX_BATCH_URLS} URLs per batch")

        results = []
        for url in urls:
            try:
                record = self.scan(url)
                results.append(BatchResult(
                    url=url, id=record.id, score=record.score, total_issues=len(record.issues),
                ))
            except ScanError as e:
                logger.warning(f"[SCAN] Batch entry {url} failed: {e.message}")
                results.append(BatchResult(url=url, error=e.message))
        return results

    # -------------------------------
    # MONITORS
    # -------------------------------
    def register_monitor(self, url: str, contact: str, frequency=None) -> Monitor:
        if not url or not contact:
            raise InvalidRequestError("URL and email are required")
        email = normalize_contact(contact)
        if email is None:
            raise InvalidContactError()
        target = LinkUtility.normalize_target(url)
        freq = Frequency.parse(frequency)
        now = utcnow()

        existing = self.monitor_store.find(target, email)
        if existing is not None:
            monitor = replace(existing, frequency=freq, active=True, updated_at=now)
            logger.info(f"[MONITOR] Updated monitor {monitor.id} for {target} ({freq.value})")
        else:
            monitor = Monitor.create(target, email, freq, now)
            logger.info(f"[MONITOR] Registered monitor {monitor.id} for {target} ({freq.value})")
        self.monitor_store.save(monitor)
        return monitor

    def deactivate_monitor(self, monitor_id: str) -> Monitor:
        monitor = self.monitor_store.get(monitor_id)
        if monitor is None:
            raise NotFoundError("Monitor not found")
        monitor = replace(monitor, active=False, updated_at=utcnow())
        self.monitor_store.save(monitor)
        logger.info(f"[MONITOR] Deactivated monitor {monitor.id}")
        return monitor

    def list_monitors(self, contact: Optional[str] = None) -> List[Monitor]:
        if contact is None:
            return self.monitor_store.list(active_only=True)
        return self.monitor_store.list(contact=contact.strip().lower(), active_only=True)

    def configure_alerts(self, contact: str, frequency=None, enabled: bool = True, url: Optional[str] = None) -> dict:
        """Persist the contact's alert preference and apply it to all of their monitors."""
        email = normalize_contact(contact)
        if email is None:
            raise InvalidContactError("Valid email is required")
        target = LinkUtility.normalize_target(url) if url else None
        preference = AlertPreference(
            contact=email, frequency=Frequency.parse(frequency), enabled=bool(enabled), url=target,
            configured_at=utcnow(),
        )
        self.monitor_store.save_alert_preference(preference)

        updated = 0
        for monitor in self.monitor_store.list(contact=email, active_only=False):
            self.monitor_store.save(replace(
                monitor, frequency=preference.frequency, active=preference.enabled,
                updated_at=preference.configured_at,
            ))
            updated += 1
        logger.info(
            f"[MONITOR] Alerts for {email}: {preference.frequency.value}, "
            f"enabled={preference.enabled} ({updated} monitor(s))"
        )
        config = preference.to_dict()
        config["monitors_updated"] = updated
        return config

    def alert_status(self, contact: str) -> dict:
        if not contact or not str(contact).strip():
            raise InvalidRequestError("Email parameter required")
        preference = self.monitor_store.get_alert_preference(str(contact).strip().lower())
        if preference is None:
            return {"configured": False}
        return {"configured": True, **preference.to_dict()}

    def health(self) -> dict:
        return {
            "status": "ok",
            "monitors": self.monitor_store.count(active_only=True),
            "total_scans": self.scan_store.count(),
        }
