"""
Flat-file snapshot cache for retrieved issues.
Stores the whole issue batch as one JSON document; freshness comes from the file's modification time.
"""

import json
import logging
import os
import tempfile
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from normalize.models import IssueRecord
from normalize.util import issue_from_dict, issue_to_dict

logger = logging.getLogger(__name__)


class SnapshotCache:
    def __init__(self, path: str, clock: Callable[[], float] = time.time):
        """Create a cache bound to one snapshot file.

        :param path: snapshot file path; its directory is created on first use.
        :param clock: returns the current epoch time in seconds, injectable for tests.
        """
        self.path = os.path.abspath(os.path.expanduser(path))
        self._clock = clock

    def _ensure_dir(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)

    def age_seconds(self) -> Optional[float]:
        """Seconds since the snapshot was last written, or None when there is no snapshot."""
        self._ensure_dir()
        try:
            mtime = os.path.getmtime(self.path)
        except OSError:
            return None
        return self._clock() - mtime

    def is_fresh(self, ttl_seconds: float) -> bool:
        age = self.age_seconds()
        if age is None:
            return False
        return age < float(ttl_seconds)

    def read(self) -> Optional[List[IssueRecord]]:
        """Return the cached issues, or None when the snapshot is missing or unreadable."""
        self._ensure_dir()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as ex:
            logger.warning("Ignoring unreadable cache snapshot %s: %s", self.path, ex)
            return None
        if not isinstance(raw, list):
            logger.warning("Ignoring cache snapshot %s: expected a list, got %s", self.path, type(raw).__name__)
            return None
        try:
            return [issue_from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as ex:
            logger.warning("Ignoring malformed cache snapshot %s: %s", self.path, ex)
            return None

    def read_issues(self) -> List[IssueRecord]:
        """Tolerant read: an empty list stands in for a missing or corrupt snapshot."""
        issues = self.read()
        return issues if issues is not None else []

    def write(self, issues: Iterable[IssueRecord]):
        """Replace the snapshot with the given batch.

        The payload goes to a temp file in the same directory which is then renamed over the
        snapshot, so readers never observe a partial write.
        """
        self._ensure_dir()
        payload = [issue_to_dict(i) for i in issues]
        fd, tmp_path = tempfile.mkstemp(prefix='.' + os.path.basename(self.path) + '.', suffix='.tmp', dir=os.path.dirname(self.path))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise
        logger.info("Wrote %d issues to cache %s", len(payload), self.path)

    def stats(self, ttl_seconds: Optional[float] = None) -> Dict[str, Any]:
        """Return basic information about the snapshot: path, existence, age, size and entry count."""
        age = self.age_seconds()
        issues = self.read() if age is not None else None
        info: Dict[str, Any] = {
            'path': self.path,
            'exists': age is not None,
            'age_seconds': age,
            'size_bytes': os.path.getsize(self.path) if age is not None else 0,
            'count': len(issues) if issues is not None else 0,
            'readable': issues is not None,
        }
        if ttl_seconds is not None:
            info['ttl_seconds'] = float(ttl_seconds)
            info['fresh'] = age is not None and age < float(ttl_seconds)
        return info

    def clear(self) -> bool:
        """Remove the snapshot. Returns True when a file was deleted."""
        try:
            os.remove(self.path)
        except FileNotFoundError:
            return False
        logger.info("Cleared cache %s", self.path)
        return True


__all__ = ["SnapshotCache"]
