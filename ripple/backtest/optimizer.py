"""Grid-search calibration of scoring weights against historical outcomes.

For every (price, volume, oi) weight combination the scorer is replayed over
each stored snapshot. A snapshot that raises at least one alert counts as a
prediction; the prediction succeeded when the reference price later moved
by at least ``SIGNIFICANT_MOVE_PCT``. Combinations are ranked by success
rate and the winner is returned as an explicit value for the caller to
thread into live evaluation.

The search is exhaustive on purpose: the threshold gate makes the
objective non-differentiable and the candidate grids are small.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from itertools import product
from typing import List, Optional, Sequence, Tuple
import logging

import pandas as pd

from ripple.analysis.cohorts import CohortSet, compute_cohorts
from ripple.analysis.scoring import ScoringConstants, ThresholdWeights, detect_anomalies
from ripple.config import (
    MIN_APPLY_SUCCESS_RATE,
    OI_WEIGHT_CANDIDATES,
    PRICE_WEIGHT_CANDIDATES,
    SIGNIFICANT_MOVE_PCT,
    VOLUME_WEIGHT_CANDIDATES,
)
from ripple.market.snapshot import BacktestSample

logger = logging.getLogger(__name__)

RECOMMENDATIONS = (
    (70.0, "EXCELLENT: High success rate. Deploy with confidence."),
    (50.0, "GOOD: Moderate success rate. Consider collecting more data."),
    (30.0, "FAIR: Low success rate. Refine criteria or collect more data."),
)
POOR_RECOMMENDATION = "POOR: Very low success rate. Criteria need significant refinement."


@dataclass(frozen=True)
class BacktestResult:
    weights: ThresholdWeights
    total_alerts: int = 0
    successful: int = 0
    false_positives: int = 0

    @property
    def success_rate(self) -> float:
        return self.successful / self.total_alerts * 100 if self.total_alerts > 0 else 0.0

    @property
    def precision(self) -> float:
        return self.successful / self.total_alerts if self.total_alerts > 0 else 0.0

    def as_dict(self) -> dict:
        return {
            **self.weights.as_dict(),
            "total_alerts": self.total_alerts,
            "successful": self.successful,
            "false_positives": self.false_positives,
            "success_rate": self.success_rate,
            "precision": self.precision,
        }


@dataclass(frozen=True)
class OptimizationReport:
    best_weights: ThresholdWeights
    success_rate: float
    precision: float
    total_alerts: int
    successful: int
    false_positives: int
    recommendation: str
    samples_evaluated: int = 0
    combinations_tested: int = 0
    ranked: Tuple[BacktestResult, ...] = field(default_factory=tuple, repr=False)

    def as_dict(self) -> dict:
        return {
            "best_weights": self.best_weights.as_dict(),
            "success_rate": self.success_rate,
            "precision": self.precision,
            "total_alerts": self.total_alerts,
            "successful": self.successful,
            "false_positives": self.false_positives,
            "recommendation": self.recommendation,
            "samples_evaluated": self.samples_evaluated,
            "combinations_tested": self.combinations_tested,
        }


@dataclass(frozen=True)
class _PreparedSample:
    sample: BacktestSample
    cohorts: CohortSet


def recommendation_for(success_rate: float) -> str:
    for floor, text in RECOMMENDATIONS:
        if success_rate >= floor:
            return text
    return POOR_RECOMMENDATION


def is_significant_move(reference: float, future: float, move_threshold: float = SIGNIFICANT_MOVE_PCT) -> bool:
    return abs(future - reference) / reference >= move_threshold


def _is_evaluable(sample: BacktestSample) -> bool:
    return bool(sample.reference_price_at_alert_time) and bool(sample.future_reference_price)


def prepare_samples(samples: Sequence[BacktestSample]) -> List[_PreparedSample]:
    """
    Compute cohort statistics once per evaluable sample.

    Statistics do not depend on weights, so grid cells can share them.
    Backtests apply no expiry window: every parseable quote is eligible.
    """
    prepared = []
    skipped = 0
    for sample in samples:
        if not _is_evaluable(sample):
            skipped += 1
            continue
        prepared.append(_PreparedSample(sample=sample, cohorts=compute_cohorts(sample.snapshot, window=None)))

    if skipped:
        logger.warning("Skipped %d samples missing a reference or future price", skipped)
    return prepared


def _run_prepared(
    prepared: Sequence[_PreparedSample],
    weights: ThresholdWeights,
    constants: ScoringConstants,
    move_threshold: float,
) -> BacktestResult:
    total_alerts = 0
    successful = 0
    false_positives = 0

    for item in prepared:
        alerts = detect_anomalies(item.cohorts, weights, constants)
        if not alerts:
            continue

        total_alerts += 1
        if is_significant_move(
            item.sample.reference_price_at_alert_time,
            item.sample.future_reference_price,
            move_threshold,
        ):
            successful += 1
        else:
            false_positives += 1

    return BacktestResult(
        weights=weights,
        total_alerts=total_alerts,
        successful=successful,
        false_positives=false_positives,
    )


def run_backtest(
    samples: Sequence[BacktestSample],
    weights: ThresholdWeights,
    constants: Optional[ScoringConstants] = None,
    move_threshold: float = SIGNIFICANT_MOVE_PCT,
) -> BacktestResult:
    """
    Replay the scorer over a corpus with one weight vector.

    Args:
        samples: Historical snapshots paired with realized reference prices
        weights: Weights to evaluate
        constants: Scoring constants (defaults from config)
        move_threshold: Fractional reference move that counts as a success

    Returns:
        Alert/success counters for this weight vector
    """
    constants = constants or ScoringConstants()
    return _run_prepared(prepare_samples(samples), weights, constants, move_threshold)


def grid_search(
    samples: Sequence[BacktestSample],
    price_candidates: Sequence[float],
    volume_candidates: Sequence[float],
    oi_candidates: Sequence[float],
    constants: Optional[ScoringConstants] = None,
    move_threshold: float = SIGNIFICANT_MOVE_PCT,
) -> List[BacktestResult]:
    """Backtest every weight combination; best success rate first, ties in grid order."""
    if not price_candidates or not volume_candidates or not oi_candidates:
        raise ValueError("Each candidate list must contain at least one weight")

    constants = constants or ScoringConstants()
    prepared = prepare_samples(samples)

    results = [
        _run_prepared(
            prepared,
            ThresholdWeights(price_weight=p, volume_weight=v, oi_weight=o),
            constants,
            move_threshold,
        )
        for p, v, o in product(price_candidates, volume_candidates, oi_candidates)
    ]

    return sorted(results, key=lambda r: r.success_rate, reverse=True)


def optimize_thresholds(
    samples: Sequence[BacktestSample],
    price_candidates: Optional[Sequence[float]] = None,
    volume_candidates: Optional[Sequence[float]] = None,
    oi_candidates: Optional[Sequence[float]] = None,
    constants: Optional[ScoringConstants] = None,
    move_threshold: float = SIGNIFICANT_MOVE_PCT,
) -> OptimizationReport:
    """
    Find the weight combination with the highest historical success rate.

    Candidate lists default to the configured grids. An empty corpus yields
    a zero-valued report with the POOR recommendation.
    """
    price_candidates = PRICE_WEIGHT_CANDIDATES if price_candidates is None else price_candidates
    volume_candidates = VOLUME_WEIGHT_CANDIDATES if volume_candidates is None else volume_candidates
    oi_candidates = OI_WEIGHT_CANDIDATES if oi_candidates is None else oi_candidates

    if not samples:
        logger.warning("No historical samples supplied; optimizer has nothing to score")

    logger.info(
        "Running grid search: %d x %d x %d weights over %d samples",
        len(price_candidates),
        len(volume_candidates),
        len(oi_candidates),
        len(samples),
    )

    ranked = grid_search(
        samples,
        price_candidates,
        volume_candidates,
        oi_candidates,
        constants=constants,
        move_threshold=move_threshold,
    )
    best = ranked[0]

    report = OptimizationReport(
        best_weights=best.weights,
        success_rate=best.success_rate,
        precision=best.precision,
        total_alerts=best.total_alerts,
        successful=best.successful,
        false_positives=best.false_positives,
        recommendation=recommendation_for(best.success_rate),
        samples_evaluated=len(samples),
        combinations_tested=len(ranked),
        ranked=tuple(ranked),
    )

    logger.info(
        "Best weights price=%.2f volume=%.2f oi=%.2f success=%.1f%% alerts=%d",
        best.weights.price_weight,
        best.weights.volume_weight,
        best.weights.oi_weight,
        report.success_rate,
        report.total_alerts,
    )
    return report


def select_weights(
    report: OptimizationReport,
    current: ThresholdWeights,
    min_success_rate: float = MIN_APPLY_SUCCESS_RATE,
) -> ThresholdWeights:
    """Adopt the optimized weights only when they clear the success bar."""
    if report.total_alerts > 0 and report.success_rate >= min_success_rate:
        return report.best_weights

    logger.warning(
        "Success rate %.1f%% below %.1f%%; keeping current weights",
        report.success_rate,
        min_success_rate,
    )
    return current


def results_frame(results: Sequence[BacktestResult]) -> pd.DataFrame:
    """Ranked grid cells as a DataFrame, one row per weight combination."""
    columns = [
        "price_weight", "volume_weight", "oi_weight",
        "success_rate", "precision", "total_alerts", "successful", "false_positives",
    ]
    df = pd.DataFrame([r.as_dict() for r in results], columns=columns)
    df.index = pd.RangeIndex(start=1, stop=len(df) + 1, name="rank")
    return df
