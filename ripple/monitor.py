"""One-pass monitoring driver: evaluate a snapshot, gate by cohort, dispatch alerts."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
import logging
import time

from ripple.alerts.notifier import Notifier, format_alert_message
from ripple.analysis.cohorts import ExpiryWindow
from ripple.analysis.scoring import AnomalyRecord, ScoringConstants, ThresholdWeights, evaluate_snapshot
from ripple.config import RECIPIENT_EMAIL
from ripple.market.snapshot import MarketSnapshot
from ripple.state.alert_history import AlertDispatch, AlertHistoryBuffer, MonitorStatus
from ripple.state.cooldown import CooldownTracker

logger = logging.getLogger(__name__)


class SnapshotFeed(Protocol):
    def collect_snapshot(self) -> MarketSnapshot:
        ...


def group_by_cohort(records: List[AnomalyRecord]) -> Dict[str, List[AnomalyRecord]]:
    """Bucket records by cohort, keeping score order inside each bucket."""
    grouped: Dict[str, List[AnomalyRecord]] = {}
    for record in records:
        grouped.setdefault(record.cohort_key, []).append(record)
    return grouped


class AlertMonitor:
    """
    Owns the cooldown gate and dispatch history for a sequence of evaluation cycles.

    Weights are plain values supplied by the caller (for example the output of
    ``select_weights``); the monitor never tunes them itself.
    """

    def __init__(
        self,
        notifier: Notifier,
        recipient: str = RECIPIENT_EMAIL,
        weights: Optional[ThresholdWeights] = None,
        window: Optional[ExpiryWindow] = None,
        constants: Optional[ScoringConstants] = None,
        cooldown: Optional[CooldownTracker] = None,
        history: Optional[AlertHistoryBuffer] = None,
        feed: Optional[SnapshotFeed] = None,
    ):
        self.notifier = notifier
        self.recipient = recipient
        self.weights = weights or ThresholdWeights()
        self.window = window or ExpiryWindow()
        self.constants = constants or ScoringConstants()
        self.cooldown = cooldown or CooldownTracker()
        self.history = history or AlertHistoryBuffer()
        self.feed = feed
        self.status = MonitorStatus()

    def run_cycle(self, snapshot: Optional[MarketSnapshot] = None) -> MonitorStatus:
        """
        Evaluate one snapshot and dispatch alerts for cohorts off cooldown.

        Fetches from the configured feed when no snapshot is given. Errors are
        recorded on the status and re-raised.
        """
        started = time.monotonic()

        try:
            if snapshot is None:
                if self.feed is None:
                    raise ValueError("No snapshot given and no feed configured")
                snapshot = self.feed.collect_snapshot()

            records = evaluate_snapshot(snapshot, self.weights, self.window, self.constants)
            alerts_sent = self._dispatch(records, snapshot.reference_price)

        except Exception as e:
            logger.error(f"Monitoring cycle failed: {e}")
            self.status = MonitorStatus(
                last_check=datetime.now(timezone.utc),
                quotes_checked=self.status.quotes_checked,
                error=str(e),
            )
            raise

        duration_ms = (time.monotonic() - started) * 1000.0
        self.status = MonitorStatus(
            last_check=datetime.now(timezone.utc),
            quotes_checked=len(snapshot.quotes),
            anomalies_found=len(records),
            alerts_sent=alerts_sent,
            check_duration_ms=duration_ms,
            reference_price=snapshot.reference_price,
        )

        logger.info(
            "Cycle complete in %.0fms: %d anomalies, %d alerts sent",
            duration_ms,
            len(records),
            alerts_sent,
        )
        return self.status

    def _dispatch(self, records: List[AnomalyRecord], reference_price: float) -> int:
        """
        Send one alert per cohort that is off cooldown.

        The cohort is claimed before sending, so a concurrent cycle skips it
        while the notifier call is in flight; the lock is not held across the
        send. An undelivered alert releases its claim.
        """
        sent = 0
        for cohort_key, cohort_records in group_by_cohort(records).items():
            now = datetime.now(timezone.utc)
            with self.cooldown.hold():
                previous = self.cooldown.last_alert(cohort_key)
                claimed = self.cooldown.claim(cohort_key, now=now)
            if not claimed:
                logger.info(f"Skipping alert for {cohort_key} (cooldown active)")
                continue

            logger.info(f"Sending alert for expiry {cohort_key} ({len(cohort_records)} anomalies)")
            message = format_alert_message(cohort_key, cohort_records, reference_price, self.constants)
            delivered = False
            try:
                delivered = self.notifier.send(message, self.recipient)
            finally:
                if not delivered:
                    self.cooldown.release(cohort_key, claimed_at=now, previous=previous)
            if not delivered:
                logger.warning(f"Alert for {cohort_key} was not delivered")
                continue

            self.history.append(
                AlertDispatch(
                    cohort_key=cohort_key,
                    alert_count=len(cohort_records),
                    dispatched_at=now,
                    recipient=self.recipient,
                )
            )
            sent += 1
        return sent
