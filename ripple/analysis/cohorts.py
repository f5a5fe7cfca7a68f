"""Expiry cohort grouping and per-cohort descriptive statistics."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import logging

import numpy as np

from ripple.analysis.expiry import ExpiryInfo, hours_to_expiry, hours_until, parse_expiry
from ripple.config import MAX_HOURS_TO_EXPIRY, MIN_HOURS_TO_EXPIRY
from ripple.market.snapshot import InstrumentQuote, MarketSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpiryWindow:
    """Inclusive hours-to-expiry bounds a quote must fall in to be scored."""

    min_hours: float = MIN_HOURS_TO_EXPIRY
    max_hours: float = MAX_HOURS_TO_EXPIRY

    def contains(self, hours: float) -> bool:
        return self.min_hours <= hours <= self.max_hours


@dataclass(frozen=True)
class DimensionStats:
    mean: float
    std_dev: float
    count: int

    @property
    def defined(self) -> bool:
        return self.count > 0


UNDEFINED = DimensionStats(mean=0.0, std_dev=0.0, count=0)


@dataclass(frozen=True)
class CohortStatistics:
    price: DimensionStats
    volume: DimensionStats
    open_interest: DimensionStats
    member_count: int

    @property
    def mean_price(self) -> float:
        return self.price.mean

    @property
    def std_dev_price(self) -> float:
        return self.price.std_dev

    @property
    def mean_volume(self) -> float:
        return self.volume.mean

    @property
    def std_dev_volume(self) -> float:
        return self.volume.std_dev

    @property
    def mean_open_interest(self) -> float:
        return self.open_interest.mean

    @property
    def std_dev_open_interest(self) -> float:
        return self.open_interest.std_dev


@dataclass(frozen=True)
class ScoredQuote:
    """A quote that passed parsing and window filtering, with its expiry context."""

    quote: InstrumentQuote
    expiry: ExpiryInfo
    hours_to_expiry: float

    @property
    def cohort_key(self) -> str:
        return self.expiry.cohort_key


@dataclass
class CohortSet:
    statistics: Dict[str, CohortStatistics] = field(default_factory=dict)
    groups: Dict[str, List[ScoredQuote]] = field(default_factory=dict)

    def members(self) -> List[ScoredQuote]:
        """All grouped quotes, cohort by cohort."""
        return [sq for group in self.groups.values() for sq in group]

    def __len__(self) -> int:
        return len(self.groups)


def dimension_stats(values: Iterable[float]) -> DimensionStats:
    """
    Mean and population standard deviation over strictly-positive values.

    Non-positive entries are dropped, not counted as zeros.
    """
    positive = np.asarray([v for v in values if v is not None and v > 0], dtype=float)
    if positive.size == 0:
        return UNDEFINED
    return DimensionStats(
        mean=float(np.mean(positive)),
        std_dev=float(np.std(positive, ddof=0)),
        count=int(positive.size),
    )


def summarize_cohort(quotes: List[InstrumentQuote]) -> Optional[CohortStatistics]:
    """Statistics for one cohort, or None if no member has a positive mark price."""
    price = dimension_stats(q.mark_price for q in quotes)
    if not price.defined:
        return None

    return CohortStatistics(
        price=price,
        volume=dimension_stats(q.volume for q in quotes),
        open_interest=dimension_stats(q.open_interest for q in quotes),
        member_count=len(quotes),
    )


def group_by_cohort(
    snapshot: MarketSnapshot,
    window: Optional[ExpiryWindow] = None,
) -> Dict[str, List[ScoredQuote]]:
    """
    Parse every quote and bucket survivors by expiry date.

    Args:
        snapshot: Market snapshot to group
        window: Hours-to-expiry filter; None keeps every parseable quote

    Returns:
        Mapping cohort_key -> quotes in snapshot order
    """
    groups: Dict[str, List[ScoredQuote]] = {}
    skipped_symbols = 0
    skipped_window = 0

    for quote in snapshot.quotes:
        expiry = parse_expiry(quote.symbol)
        if expiry is None:
            skipped_symbols += 1
            continue

        raw_hours = hours_until(expiry.expires_at, snapshot.observed_at)
        if window is not None and not window.contains(raw_hours):
            skipped_window += 1
            continue

        scored = ScoredQuote(
            quote=quote,
            expiry=expiry,
            hours_to_expiry=hours_to_expiry(expiry.expires_at, snapshot.observed_at),
        )
        groups.setdefault(expiry.cohort_key, []).append(scored)

    if skipped_symbols:
        logger.debug("Skipped %d quotes with unparseable symbols", skipped_symbols)
    if skipped_window:
        logger.debug("Skipped %d quotes outside the expiry window", skipped_window)

    return groups


def compute_cohorts(
    snapshot: MarketSnapshot,
    window: Optional[ExpiryWindow] = ExpiryWindow(),
) -> CohortSet:
    """
    Group a snapshot by expiry cohort and compute per-cohort statistics.

    Cohorts with no positive mark price keep their group but get no
    statistics entry, so nothing in them can be scored.
    """
    groups = group_by_cohort(snapshot, window)

    statistics: Dict[str, CohortStatistics] = {}
    for cohort_key, members in groups.items():
        stats = summarize_cohort([sq.quote for sq in members])
        if stats is None:
            logger.debug("Cohort %s has no priced members; not scoring", cohort_key)
            continue
        statistics[cohort_key] = stats

    return CohortSet(statistics=statistics, groups=groups)
