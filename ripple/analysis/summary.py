"""Alert volume and direction summary for one evaluated snapshot."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
import math

from ripple.analysis.scoring import AnomalyRecord, Direction
from ripple.config import ALERT_COOLDOWN_HOURS


@dataclass(frozen=True)
class AlertVolumeSummary:
    total_anomalies: int
    unique_expiries: int
    emails_per_check: int
    max_emails_per_day: int
    estimated_emails_per_month: int
    bullish_signals: int
    bearish_signals: int

    def as_dict(self) -> dict:
        return {
            "total_anomalies": self.total_anomalies,
            "unique_expiries": self.unique_expiries,
            "emails_per_check": self.emails_per_check,
            "max_emails_per_day": self.max_emails_per_day,
            "estimated_emails_per_month": self.estimated_emails_per_month,
            "bullish_signals": self.bullish_signals,
            "bearish_signals": self.bearish_signals,
        }


def summarize_alerts(
    records: Sequence[AnomalyRecord],
    cooldown_hours: float = ALERT_COOLDOWN_HOURS,
    check_interval_minutes: float = 5.0,
    days: int = 30,
) -> AlertVolumeSummary:
    """
    Estimate how many emails a snapshot like this one would produce.

    One email goes out per expiry cohort per check, and each cohort can
    email at most once per cooldown period. The monthly figure assumes
    every day looks like this snapshot, so it is an upper bound.

    Args:
        records: Output of ``evaluate_snapshot``
        cooldown_hours: Per-cohort cooldown; 0 means every check may email
        check_interval_minutes: Time between monitoring cycles
        days: Length of the projection

    Returns:
        AlertVolumeSummary with the cohort count, email projections and the
        split between call (bullish) and put (bearish) anomalies
    """
    unique_expiries = len({r.cohort_key for r in records})

    checks_per_day = math.floor(24 * 60 / check_interval_minutes)
    if cooldown_hours > 0:
        emails_per_cohort_per_day = min(checks_per_day, math.ceil(24 / cooldown_hours))
    else:
        emails_per_cohort_per_day = checks_per_day

    max_emails_per_day = unique_expiries * emails_per_cohort_per_day

    return AlertVolumeSummary(
        total_anomalies=len(records),
        unique_expiries=unique_expiries,
        emails_per_check=unique_expiries,
        max_emails_per_day=max_emails_per_day,
        estimated_emails_per_month=max_emails_per_day * days,
        bullish_signals=sum(1 for r in records if r.direction is Direction.UP),
        bearish_signals=sum(1 for r in records if r.direction is Direction.DOWN),
    )
