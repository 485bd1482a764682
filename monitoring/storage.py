from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from monitoring.models import Monitor, AlertPreference


class MonitorStore(ABC):
    """
    Abstract interface for monitor registrations.
    """

    @abstractmethod
    def save(self, monitor: Monitor) -> None:
        """Insert or replace by id."""
        pass

    @abstractmethod
    def get(self, monitor_id: str) -> Optional[Monitor]:
        pass

    @abstractmethod
    def find(self, url: str, contact: str) -> Optional[Monitor]:
        """The single monitor for (url, contact), active or not."""
        pass

    @abstractmethod
    def list(self, contact: Optional[str] = None, active_only: bool = True) -> List[Monitor]:
        pass

    @abstractmethod
    def due(self, now: datetime) -> List[Monitor]:
        """Active monitors whose next_scan_at is at or before `now`."""
        pass

    @abstractmethod
    def record_scan(self, monitor_id: str, scanned_at: datetime, score: int) -> Optional[Monitor]:
        """
        Stamp a completed scan onto the stored monitor and reschedule it.
        Only scan fields change; returns None when the monitor is gone or inactive.
        """
        pass

    @abstractmethod
    def count(self, active_only: bool = True) -> int:
        pass

    # -------------------------------
    # ALERT PREFERENCES
    # -------------------------------
    @abstractmethod
    def save_alert_preference(self, preference: AlertPreference) -> None:
        """Insert or replace by contact."""
        pass

    @abstractmethod
    def get_alert_preference(self, contact: str) -> Optional[AlertPreference]:
        pass
