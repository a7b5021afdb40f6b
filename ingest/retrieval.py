"""
Issue retrieval coordinator.
Serializes the check-cache / fetch / persist sequence so concurrent callers trigger at most one upstream fetch.
"""
import logging
import threading
from typing import List, Optional

from normalize.models import IssueRecord
from settings import Settings
from storage.cache import SnapshotCache
from .github import ProjectItemsClient

logger = logging.getLogger(__name__)


class FifoLock:
    """Mutual exclusion lock that admits waiters in arrival order (ticket lock).

    A waiter interrupted while queued gives up its ticket so later waiters are still served.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._serving = 0
        self._abandoned = set()

    def acquire(self):
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            try:
                while ticket != self._serving:
                    self._cond.wait()
            except BaseException:
                if ticket == self._serving:
                    self._advance()
                else:
                    self._abandoned.add(ticket)
                raise

    def release(self):
        with self._cond:
            self._advance()

    def _advance(self):
        self._serving += 1
        while self._serving in self._abandoned:
            self._abandoned.discard(self._serving)
            self._serving += 1
        self._cond.notify_all()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class IssueRetrievalCoordinator:
    """Returns the configured board's issues, from the snapshot cache while fresh, otherwise from the API.

    One instance owns one critical section; every cache read, fetch and cache write happens inside it.
    """

    def __init__(self, settings: Settings, fetcher: Optional[ProjectItemsClient] = None, cache: Optional[SnapshotCache] = None):
        self.settings = settings
        self.fetcher = fetcher or ProjectItemsClient.from_settings(settings)
        self.cache = cache or SnapshotCache(settings.cache_path)
        self._lock = FifoLock()

    def get_issues(self) -> List[IssueRecord]:
        """Raises ConfigurationError when credentials are missing and FetchError when the refresh fails."""
        self.settings.require_credentials()
        with self._lock:
            if self.cache.is_fresh(self.settings.ttl_seconds):
                cached = self.cache.read()
                if cached is not None:
                    logger.info("Serving %d issues from cache %s", len(cached), self.cache.path)
                    return cached
                logger.info("Fresh cache %s is unreadable; refetching", self.cache.path)
            else:
                logger.info("Cache %s is missing or stale; fetching project %s", self.cache.path, self.settings.project_id)

            issues = self.fetcher.fetch_issues(self.settings.project_id, required_label=self.settings.required_label)
            self.cache.write(issues)
            return issues
