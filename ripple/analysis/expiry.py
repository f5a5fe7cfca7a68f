"""Expiry parsing for exchange-style option symbols.

Symbols follow ``<ASSET>-<DDMONYY>[-<STRIKE>[-<SIDE>]]``, e.g. ``ETH-7NOV25-3300-C``.
Parsing is strict: anything that does not fit the grammar yields ``None``
rather than an exception, so one bad listing never fails a whole batch.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import re

# Listed options settle at 08:00 UTC on the expiry date
EXPIRY_HOUR_UTC = 8

MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

_DATE_SEGMENT = re.compile(r"^(?P<day>\d{1,2})(?P<month>[A-Z]{3})(?P<year>\d{2})$")


class OptionSide(Enum):
    CALL = "C"
    PUT = "P"


@dataclass(frozen=True)
class ExpiryInfo:
    asset: str
    expires_at: datetime
    cohort_key: str
    strike: Optional[float] = None
    side: Optional[OptionSide] = None


def _parse_strike(segment: str) -> Optional[float]:
    try:
        return float(segment)
    except ValueError:
        return None


def parse_expiry(symbol: str) -> Optional[ExpiryInfo]:
    """
    Derive the expiry instant and cohort key from an instrument symbol.

    Returns:
        ExpiryInfo, or None when the symbol has fewer than two segments, the
        date segment is malformed, the month is unknown or the date is invalid.
    """
    if not symbol:
        return None

    parts = symbol.split("-")
    if len(parts) < 2:
        return None

    match = _DATE_SEGMENT.match(parts[1])
    if match is None:
        return None

    month = MONTHS.get(match.group("month"))
    if month is None:
        return None

    try:
        expires_at = datetime(
            2000 + int(match.group("year")),
            month,
            int(match.group("day")),
            EXPIRY_HOUR_UTC,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None

    strike = _parse_strike(parts[2]) if len(parts) >= 3 else None
    side = None
    if len(parts) >= 4:
        side = {s.value: s for s in OptionSide}.get(parts[-1])

    return ExpiryInfo(
        asset=parts[0],
        expires_at=expires_at,
        cohort_key=expires_at.date().isoformat(),
        strike=strike,
        side=side,
    )


def hours_until(expires_at: datetime, now: datetime) -> float:
    """Signed hours between ``now`` and ``expires_at``."""
    return (expires_at - now).total_seconds() / 3600.0


def hours_to_expiry(expires_at: datetime, now: datetime) -> float:
    """Hours remaining until expiry, floored at zero."""
    return max(0.0, hours_until(expires_at, now))
