from abc import ABC, abstractmethod
from typing import Optional, List
from history.models import ScanRecord


class ScanStore(ABC):
    """
    Abstract interface for the bounded, append-only scan history.
    """

    @abstractmethod
    def append(self, record: ScanRecord) -> None:
        """Persist a record, evicting the oldest beyond the history cap."""
        pass

    @abstractmethod
    def get(self, scan_id: str) -> Optional[ScanRecord]:
        pass

    @abstractmethod
    def recent(self, url_filter: Optional[str] = None, limit: int = 20) -> List[ScanRecord]:
        """Most recent first; `url_filter` is a substring match on the URL."""
        pass

    @abstractmethod
    def for_host(self, hostname: str) -> List[ScanRecord]:
        """All records for one host, oldest first."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass
