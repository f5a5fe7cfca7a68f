"""Per-cohort alert cooldown gate."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Dict, Iterator, Optional
import logging

from ripple.config import ALERT_COOLDOWN_HOURS

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(now: Optional[datetime]) -> datetime:
    """Default to the current time; naive instants are taken as UTC."""
    if now is None:
        return _utcnow()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


class CooldownTracker:
    """
    Remembers when each expiry cohort last alerted.

    Entries are created or overwritten by ``record_alert`` (directly or via
    ``claim``) and removed only when ``release`` rolls back an undelivered
    claim; the set of live expiries keeps the map small. ``claim`` is the
    atomic check-and-set; ``hold()`` exposes the lock for callers that need
    several calls in one step.
    """

    def __init__(self, cooldown_hours: float = ALERT_COOLDOWN_HOURS):
        self.cooldown_hours = float(cooldown_hours)
        self._last_alert: Dict[str, datetime] = {}
        self._lock = RLock()

    @contextmanager
    def hold(self) -> Iterator["CooldownTracker"]:
        with self._lock:
            yield self

    def may_alert(
        self,
        cohort_key: str,
        cooldown_hours: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """True if the cohort never alerted or its cooldown has elapsed."""
        if cooldown_hours is None:
            cooldown_hours = self.cooldown_hours
        now = _as_utc(now)

        with self._lock:
            last = self._last_alert.get(cohort_key)

        if last is None:
            return True
        return now - last >= timedelta(hours=cooldown_hours)

    def record_alert(self, cohort_key: str, now: Optional[datetime] = None) -> None:
        with self._lock:
            self._last_alert[cohort_key] = _as_utc(now)
        logger.debug("Recorded alert for cohort %s", cohort_key)

    def claim(
        self,
        cohort_key: str,
        cooldown_hours: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Atomic check-and-record; returns whether the caller may alert."""
        now = _as_utc(now)
        with self._lock:
            if not self.may_alert(cohort_key, cooldown_hours, now):
                return False
            self.record_alert(cohort_key, now)
            return True

    def release(
        self,
        cohort_key: str,
        claimed_at: datetime,
        previous: Optional[datetime] = None,
    ) -> None:
        """
        Undo a ``claim`` whose alert was never delivered.

        The entry is restored to ``previous`` only if it still holds the
        claimed instant; a newer record from another caller is left alone.
        """
        claimed_at = _as_utc(claimed_at)
        with self._lock:
            if self._last_alert.get(cohort_key) != claimed_at:
                return
            if previous is None:
                del self._last_alert[cohort_key]
            else:
                self._last_alert[cohort_key] = _as_utc(previous)
        logger.debug("Released cooldown claim for cohort %s", cohort_key)

    def last_alert(self, cohort_key: str) -> Optional[datetime]:
        with self._lock:
            return self._last_alert.get(cohort_key)

    def entries(self) -> Dict[str, datetime]:
        """Copy of the cohort -> last alert map."""
        with self._lock:
            return dict(self._last_alert)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_alert)
