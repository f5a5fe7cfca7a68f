"""Composite anomaly scoring over expiry cohorts.

Each quote is compared with its cohort on three dimensions (mark price,
volume, open interest). The absolute z-scores are weighted, a time-decay
bonus is added for imminent expiries, and quotes whose composite score
reaches the configured threshold become ``AnomalyRecord`` objects.

The scorer is a pure function of its inputs: weights and constants are
always passed in, never read from ambient state.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import logging

from ripple.analysis.cohorts import (
    CohortSet,
    CohortStatistics,
    DimensionStats,
    ExpiryWindow,
    ScoredQuote,
    compute_cohorts,
)
from ripple.analysis.expiry import OptionSide
from ripple.config import (
    MAX_HOURS_TO_EXPIRY,
    OI_WEIGHT,
    PRICE_WEIGHT,
    SCORE_THRESHOLD,
    TIME_DECAY_WEIGHT,
    VOLUME_WEIGHT,
)
from ripple.market.snapshot import MarketSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThresholdWeights:
    """
    Tunable per-dimension weights.

    Weights are expected to be non-negative; the scorer does not check.
    """

    price_weight: float = PRICE_WEIGHT
    volume_weight: float = VOLUME_WEIGHT
    oi_weight: float = OI_WEIGHT

    def as_dict(self) -> dict:
        return {
            "price_weight": self.price_weight,
            "volume_weight": self.volume_weight,
            "oi_weight": self.oi_weight,
        }


@dataclass(frozen=True)
class ScoringConstants:
    time_decay_weight: float = TIME_DECAY_WEIGHT
    score_threshold: float = SCORE_THRESHOLD
    max_window_hours: float = MAX_HOURS_TO_EXPIRY


class AnomalyType(Enum):
    PRICE_ANOMALY = "PRICE_ANOMALY"
    VOLUME_ANOMALY = "VOLUME_ANOMALY"


class Direction(Enum):
    UP = "UP"
    DOWN = "DOWN"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class AnomalyRecord:
    symbol: str
    cohort_key: str
    score: float
    price_z: float
    volume_z: float
    oi_z: float
    time_decay: float
    hours_to_expiry: float

    # Reporting only; never used for gating
    mark_price: float = 0.0
    volume: float = 0.0
    open_interest: float = 0.0
    anomaly_type: AnomalyType = AnomalyType.VOLUME_ANOMALY
    direction: Direction = Direction.UNKNOWN

    def as_dict(self) -> dict:
        """Convert to serializable dict for downstream components."""
        return {
            "symbol": self.symbol,
            "cohort_key": self.cohort_key,
            "score": self.score,
            "price_z": self.price_z,
            "volume_z": self.volume_z,
            "oi_z": self.oi_z,
            "time_decay": self.time_decay,
            "hours_to_expiry": self.hours_to_expiry,
            "mark_price": self.mark_price,
            "volume": self.volume,
            "open_interest": self.open_interest,
            "anomaly_type": self.anomaly_type.value,
            "direction": self.direction.value,
        }


def z_score(value: float, stats: DimensionStats) -> float:
    """Absolute z-score, or 0 when the value or the cohort dimension cannot support one."""
    if not stats.defined or stats.std_dev <= 0 or value is None or value <= 0:
        return 0.0
    return abs(value - stats.mean) / stats.std_dev


def time_decay(hours: float, max_window_hours: float) -> float:
    """Emphasis in [0, 1] that grows as expiry approaches."""
    if max_window_hours <= 0:
        return 0.0
    decay = (max_window_hours - hours) / max_window_hours
    return max(0.0, min(1.0, decay))


def composite_score(
    price_z: float,
    volume_z: float,
    oi_z: float,
    decay: float,
    weights: ThresholdWeights,
    constants: ScoringConstants,
) -> float:
    return (
        price_z * weights.price_weight
        + volume_z * weights.volume_weight
        + oi_z * weights.oi_weight
        + decay * constants.time_decay_weight
    )


def classify(price_z: float, volume_z: float) -> AnomalyType:
    return AnomalyType.PRICE_ANOMALY if price_z > volume_z else AnomalyType.VOLUME_ANOMALY


def direction_of(side: Optional[OptionSide]) -> Direction:
    # Rich calls lean bullish, rich puts bearish
    if side is OptionSide.CALL:
        return Direction.UP
    if side is OptionSide.PUT:
        return Direction.DOWN
    return Direction.UNKNOWN


def score_quote(
    scored: ScoredQuote,
    stats: CohortStatistics,
    weights: ThresholdWeights,
    constants: Optional[ScoringConstants] = None,
) -> Optional[AnomalyRecord]:
    """
    Score one quote against its cohort.

    Returns:
        AnomalyRecord when the composite score reaches the threshold, otherwise
        None. Quotes with a non-positive mark price are never scored.
    """
    constants = constants or ScoringConstants()
    quote = scored.quote

    if quote.mark_price is None or quote.mark_price <= 0:
        return None

    price_z = z_score(quote.mark_price, stats.price)
    volume_z = z_score(quote.volume, stats.volume)
    oi_z = z_score(quote.open_interest, stats.open_interest)
    decay = time_decay(scored.hours_to_expiry, constants.max_window_hours)

    score = composite_score(price_z, volume_z, oi_z, decay, weights, constants)
    if score < constants.score_threshold:
        return None

    return AnomalyRecord(
        symbol=quote.symbol,
        cohort_key=scored.cohort_key,
        score=score,
        price_z=price_z,
        volume_z=volume_z,
        oi_z=oi_z,
        time_decay=decay,
        hours_to_expiry=scored.hours_to_expiry,
        mark_price=quote.mark_price,
        volume=quote.volume,
        open_interest=quote.open_interest,
        anomaly_type=classify(price_z, volume_z),
        direction=direction_of(scored.expiry.side),
    )


def detect_anomalies(
    cohorts: CohortSet,
    weights: ThresholdWeights,
    constants: Optional[ScoringConstants] = None,
) -> List[AnomalyRecord]:
    """Score every grouped quote; results sorted by score, highest first, ties stable."""
    constants = constants or ScoringConstants()
    records: List[AnomalyRecord] = []

    for cohort_key, members in cohorts.groups.items():
        stats = cohorts.statistics.get(cohort_key)
        if stats is None:
            continue
        for scored in members:
            record = score_quote(scored, stats, weights, constants)
            if record is not None:
                records.append(record)

    return sorted(records, key=lambda r: r.score, reverse=True)


def evaluate_snapshot(
    snapshot: MarketSnapshot,
    weights: Optional[ThresholdWeights] = None,
    window: Optional[ExpiryWindow] = ExpiryWindow(),
    constants: Optional[ScoringConstants] = None,
) -> List[AnomalyRecord]:
    """
    Full evaluation of one snapshot: cohort statistics, then scoring.

    Args:
        snapshot: Market snapshot to evaluate
        weights: Dimension weights (defaults from config)
        window: Hours-to-expiry filter; None disables it
        constants: Decay weight, threshold and window length (defaults from config)

    Returns:
        Qualifying anomalies, highest score first
    """
    weights = weights or ThresholdWeights()
    cohorts = compute_cohorts(snapshot, window)
    records = detect_anomalies(cohorts, weights, constants)

    logger.info(
        "Evaluated %d quotes across %d cohorts: %d anomalies",
        len(snapshot.quotes),
        len(cohorts),
        len(records),
    )
    return records
