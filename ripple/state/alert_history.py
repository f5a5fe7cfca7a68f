"""Ring buffer of dispatched alerts plus the latest monitor status."""
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import List, Optional
import logging

from ripple.config import ALERT_HISTORY_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertDispatch:
    cohort_key: str
    alert_count: int
    dispatched_at: datetime
    recipient: str


@dataclass(frozen=True)
class MonitorStatus:
    last_check: Optional[datetime] = None
    quotes_checked: int = 0
    anomalies_found: int = 0
    alerts_sent: int = 0
    check_duration_ms: float = 0.0
    reference_price: Optional[float] = None
    error: Optional[str] = None


class AlertHistoryBuffer:
    """Bounded append-only buffer for AlertDispatch entries."""

    def __init__(self, maxlen: int = ALERT_HISTORY_SIZE):
        self._buffer: deque[AlertDispatch] = deque(maxlen=maxlen)
        self._maxlen = maxlen
        self._lock = Lock()

    def append(self, dispatch: AlertDispatch) -> None:
        with self._lock:
            if self._buffer and dispatch.dispatched_at < self._buffer[-1].dispatched_at:
                logger.warning(
                    "Non-monotonic dispatch timestamp detected: new=%s last=%s",
                    dispatch.dispatched_at,
                    self._buffer[-1].dispatched_at,
                )
            self._buffer.append(dispatch)

    def latest(self) -> Optional[AlertDispatch]:
        with self._lock:
            return self._buffer[-1] if self._buffer else None

    def history(self, n: Optional[int] = 50) -> List[AlertDispatch]:
        """
        Return a copy of the last n dispatches (oldest→newest).

        Args:
            n: Number of items to return. None returns full buffer.
        """
        with self._lock:
            if not self._buffer:
                return []
            if n is None:
                return list(self._buffer)
            if n <= 0:
                return []
            return list(self._buffer)[-n:]

    def size(self) -> int:
        with self._lock:
            return len(self._buffer)

    @property
    def maxlen(self) -> int:
        return self._maxlen
