"""
FILE DESCRIPTION: Background runner for recurring monitor scans.
KEY FUNCTIONS/CLASSES: MonitorScheduler
"""

import threading
import time
from datetime import datetime
from typing import Optional

from scanner.core import MONITOR_TICK_SECONDS, MONITOR_STARTUP_DELAY, logger
from history.models import utcnow
from monitoring.models import TickReport


class MonitorScheduler:
    """
    FLOW: Waits startup_delay -> Tick: loads due monitors -> Scans each sequentially ->
    Appends the record and reschedules the monitor -> Sleeps until the next fixed-cadence tick.

    Invariants:
    - Ticks never overlap; a tick that finds the run lock held is reported as skipped.
    - One failing monitor is logged and left untouched; the rest of the tick proceeds.
    - Only scan fields are written back, stamped with the time each scan finished.
      A monitor deactivated while its scan ran stays inactive.
    """

    def __init__(self, monitor_store, scan_store, scanner, tick_seconds=MONITOR_TICK_SECONDS,
                 startup_delay=MONITOR_STARTUP_DELAY):
        self.monitor_store = monitor_store
        self.scan_store = scan_store
        self.scanner = scanner
        self.tick_seconds = tick_seconds
        self.startup_delay = startup_delay

        self._run_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0
        self.last_tick_at: Optional[datetime] = None

    def log(self, level, msg, **kwargs):
        getattr(logger, level)(msg, extra={'context': "monitor"}, **kwargs)

    # === TICK ===

    def run_due(self, now: Optional[datetime] = None) -> TickReport:
        """Scan every due monitor once. An explicit `now` pins every timestamp in the tick."""
        if not self._run_lock.acquire(blocking=False):
            self.log("warning", "[MONITOR] Previous tick still running; skipping")
            return TickReport(skipped=True)
        try:
            tick_at = now or utcnow()
            due = self.monitor_store.due(tick_at)
            self.log("info", f"[MONITOR] Tick at {tick_at.isoformat()}: {len(due)} monitor(s) due")

            scanned, failed = [], []
            for monitor in due:
                try:
                    self.log("info", f"[MONITOR] Scanning {monitor.url} for {monitor.contact}")
                    record = self.scanner.run_scan(monitor.url)
                    self.scan_store.append(record)
                    updated = self.monitor_store.record_scan(monitor.id, now or utcnow(), record.score)
                    scanned.append(monitor.id)
                    if updated is None:
                        self.log("info", f"[MONITOR] {monitor.id} was deactivated during its scan; not rescheduled")
                        continue
                    self.log(
                        "info",
                        f"[MONITOR] {monitor.url} scored {record.score}/100 ({record.summary.issues} issues)",
                    )
                except Exception as e:
                    failed.append(monitor.id)
                    self.log("error", f"[MONITOR] Failed to scan {monitor.url}: {e}")

            with self._state_lock:
                self.tick_count += 1
                self.last_tick_at = tick_at
            return TickReport(scanned=tuple(scanned), failed=tuple(failed))
        finally:
            self._run_lock.release()

    # === BACKGROUND THREAD ===

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Monitor scheduler already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="monitor-scheduler", daemon=True)
        self._thread.start()
        self.log("info", f"[MONITOR] Scheduler started (first tick in {self.startup_delay}s, "
                         f"then every {self.tick_seconds}s)")

    def stop(self, timeout: Optional[float] = None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.log("info", "[MONITOR] Scheduler stopped")

    def _loop(self):
        if self._stop_event.wait(self.startup_delay):
            return
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.run_due()
            except Exception as e:
                # store failures end the tick, not the scheduler
                self.log("error", f"[MONITOR] Tick failed: {e}", exc_info=True)
            next_tick += self.tick_seconds
            if self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
                return

    def status(self) -> dict:
        with self._state_lock:
            return {
                "running": self._thread is not None and self._thread.is_alive(),
                "tick_count": self.tick_count,
                "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
                "tick_seconds": self.tick_seconds,
            }
