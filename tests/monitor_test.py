"""
Monitor store semantics and MonitorScheduler tick behaviour.
"""

import time
import unittest
from dataclasses import replace
from datetime import timedelta
from unittest.mock import MagicMock, patch

from history.sqlite_storage import SQLiteScanStore
from monitoring.models import Monitor, Frequency, AlertPreference
from monitoring.scheduler import MonitorScheduler
from monitoring.sqlite_storage import SQLiteMonitorStore
from scanner.errors import FetchTimeout
from factories import make_record, T0


class TestFrequency(unittest.TestCase):
    def test_intervals(self):
        self.assertEqual(Frequency.DAILY.interval, timedelta(hours=24))
        self.assertEqual(Frequency.WEEKLY.interval, timedelta(days=7))
        self.assertEqual(Frequency.MONTHLY.interval, timedelta(days=30))

    def test_parse_defaults_to_weekly(self):
        self.assertEqual(Frequency.parse("Daily"), Frequency.DAILY)
        for value in (None, "", "hourly", "biweekly"):
            self.assertEqual(Frequency.parse(value), Frequency.WEEKLY)
        self.assertLess(Frequency.DAILY, Frequency.MONTHLY)


class TestSQLiteMonitorStore(unittest.TestCase):
    def setUp(self):
        self.store = SQLiteMonitorStore(":memory:")

    def test_save_find_and_list(self):
        monitor = Monitor.create("https://example.com", "ops@example.com", Frequency.DAILY, T0)
        self.store.save(monitor)
        self.assertEqual(self.store.get(monitor.id), monitor)
        self.assertEqual(self.store.find("https://example.com", "ops@example.com"), monitor)
        self.assertEqual(monitor.next_scan_at, T0 + timedelta(hours=24))

        self.store.save(Monitor.create("https://other.com", "dev@example.com", Frequency.WEEKLY, T0))
        self.assertEqual(len(self.store.list()), 2)
        self.assertEqual([m.id for m in self.store.list(contact="ops@example.com")], [monitor.id])

    def test_due_skips_inactive_and_future(self):
        due = Monitor.create("https://a.com", "a@example.com", Frequency.DAILY, T0)
        later = Monitor.create("https://b.com", "b@example.com", Frequency.MONTHLY, T0)
        inactive = Monitor.create("https://c.com", "c@example.com", Frequency.DAILY, T0)
        for m in (due, later, inactive):
            self.store.save(m)
        self.store.save(replace(inactive, active=False))

        now = T0 + timedelta(days=2)
        self.assertEqual([m.id for m in self.store.due(now)], [due.id])
        self.assertEqual(len(self.store.list(active_only=False)), 3)

    def test_record_scan_updates_only_scan_fields(self):
        monitor = Monitor.create("https://example.com", "ops@example.com", Frequency.DAILY, T0)
        self.store.save(monitor)
        self.store.save(replace(monitor, frequency=Frequency.WEEKLY))

        later = T0 + timedelta(days=1)
        updated = self.store.record_scan(monitor.id, later, 64)
        self.assertEqual(updated.frequency, Frequency.WEEKLY)
        self.assertEqual(updated.next_scan_at, later + timedelta(days=7))
        self.assertEqual(self.store.get(monitor.id), updated)

        self.store.save(replace(updated, active=False))
        self.assertIsNone(self.store.record_scan(monitor.id, later, 10))
        self.assertIsNone(self.store.record_scan("missing", later, 10))
        self.assertEqual(self.store.get(monitor.id).last_score, 64)
        self.assertEqual((self.store.count(), self.store.count(active_only=False)), (0, 1))

    def test_alert_preferences_replace_by_contact(self):
        self.assertIsNone(self.store.get_alert_preference("ops@example.com"))
        self.store.save_alert_preference(AlertPreference("ops@example.com", Frequency.DAILY, configured_at=T0))
        self.store.save_alert_preference(
            AlertPreference("ops@example.com", Frequency.MONTHLY, enabled=False, url="https://a.com", configured_at=T0)
        )
        stored = self.store.get_alert_preference("ops@example.com")
        self.assertEqual(stored.frequency, Frequency.MONTHLY)
        self.assertFalse(stored.enabled)
        self.assertEqual(stored.url, "https://a.com")


class TestMonitorScheduler(unittest.TestCase):
    def setUp(self):
        self.monitors = SQLiteMonitorStore(":memory:")
        self.scans = SQLiteScanStore(":memory:")
        self.scanner = MagicMock()
        self.scheduler = MonitorScheduler(self.monitors, self.scans, self.scanner, tick_seconds=3600,
                                          startup_delay=30)

    def register(self, url, frequency=Frequency.DAILY):
        monitor = Monitor.create(url, "ops@example.com", frequency, T0)
        self.monitors.save(monitor)
        return monitor

    def test_due_monitor_is_scanned_and_rescheduled(self):
        monitor = self.register("https://example.com")
        self.scanner.run_scan.return_value = make_record("https://example.com", score=77)

        now = T0 + timedelta(days=1)
        report = self.scheduler.run_due(now)

        self.assertEqual(report.scanned, (monitor.id,))
        self.assertEqual(self.scans.count(), 1)
        updated = self.monitors.get(monitor.id)
        self.assertEqual(updated.last_scan_at, now)
        self.assertEqual(updated.last_score, 77)
        self.assertEqual(updated.next_scan_at, now + timedelta(hours=24))

    def test_not_due_is_left_alone(self):
        self.register("https://example.com", Frequency.WEEKLY)
        report = self.scheduler.run_due(T0 + timedelta(days=1))
        self.assertEqual(report.scanned, ())
        self.scanner.run_scan.assert_not_called()

    def test_one_failure_does_not_stop_the_tick(self):
        bad = self.register("https://down.example.com")
        good = self.register("https://up.example.com")

        def run_scan(url):
            if "down" in url:
                raise FetchTimeout()
            return make_record(url, score=90)

        self.scanner.run_scan.side_effect = run_scan
        now = T0 + timedelta(days=1)
        report = self.scheduler.run_due(now)

        self.assertEqual(report.failed, (bad.id,))
        self.assertEqual(report.scanned, (good.id,))
        self.assertEqual(self.monitors.get(bad.id), bad)
        self.assertTrue(self.monitors.get(bad.id).active)

    def test_deactivation_during_scan_is_kept(self):
        monitor = self.register("https://example.com")

        def run_scan(url):
            current = self.monitors.get(monitor.id)
            self.monitors.save(replace(current, active=False, frequency=Frequency.MONTHLY))
            return make_record(url, score=55)

        self.scanner.run_scan.side_effect = run_scan
        self.scheduler.run_due(T0 + timedelta(days=1))

        stored = self.monitors.get(monitor.id)
        self.assertFalse(stored.active)
        self.assertEqual(stored.frequency, Frequency.MONTHLY)
        self.assertIsNone(stored.last_scan_at)
        self.assertEqual(self.scans.count(), 1)

    def test_scan_time_is_taken_per_monitor(self):
        first = self.register("https://a.example.com")
        second = self.register("https://b.example.com")
        self.scanner.run_scan.side_effect = lambda url: make_record(url, score=80)
        self.monitors.save(replace(first, next_scan_at=T0))
        self.monitors.save(replace(second, next_scan_at=T0))

        stamps = iter([T0 + timedelta(minutes=1), T0 + timedelta(minutes=2), T0 + timedelta(minutes=3)])
        with patch("monitoring.scheduler.utcnow", side_effect=lambda: next(stamps)):
            report = self.scheduler.run_due()

        self.assertEqual(set(report.scanned), {first.id, second.id})
        scanned_at = sorted(self.monitors.get(m.id).last_scan_at for m in (first, second))
        self.assertEqual(scanned_at, [T0 + timedelta(minutes=2), T0 + timedelta(minutes=3)])
        self.assertEqual(self.scheduler.status()["last_tick_at"], (T0 + timedelta(minutes=1)).isoformat())

    def test_overlapping_tick_is_skipped(self):
        self.register("https://example.com")
        self.scheduler._run_lock.acquire()
        try:
            report = self.scheduler.run_due(T0 + timedelta(days=1))
        finally:
            self.scheduler._run_lock.release()
        self.assertTrue(report.skipped)
        self.scanner.run_scan.assert_not_called()
        self.assertEqual(self.scheduler.status()["tick_count"], 0)

    def test_start_twice_raises_and_stop_joins(self):
        scheduler = MonitorScheduler(self.monitors, self.scans, self.scanner, tick_seconds=3600, startup_delay=0)
        scheduler.start()
        try:
            with self.assertRaises(RuntimeError):
                scheduler.start()
            deadline = time.monotonic() + 5
            while scheduler.status()["tick_count"] == 0 and time.monotonic() < deadline:
                time.sleep(0.01)
            self.assertEqual(scheduler.status()["tick_count"], 1)
            self.assertTrue(scheduler.status()["running"])
        finally:
            scheduler.stop(timeout=5)
        self.assertFalse(scheduler.status()["running"])


if __name__ == "__main__":
    unittest.main()
