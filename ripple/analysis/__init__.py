"""Expiry parsing, cohort statistics and anomaly scoring."""

from .expiry import ExpiryInfo, OptionSide, hours_to_expiry, parse_expiry
from .cohorts import CohortSet, CohortStatistics, DimensionStats, ExpiryWindow, compute_cohorts
from .scoring import (
    AnomalyRecord,
    AnomalyType,
    Direction,
    ScoringConstants,
    ThresholdWeights,
    detect_anomalies,
    evaluate_snapshot,
)
from .summary import AlertVolumeSummary, summarize_alerts

__all__ = [
    "ExpiryInfo",
    "OptionSide",
    "hours_to_expiry",
    "parse_expiry",
    "CohortSet",
    "CohortStatistics",
    "DimensionStats",
    "ExpiryWindow",
    "compute_cohorts",
    "AnomalyRecord",
    "AnomalyType",
    "Direction",
    "ScoringConstants",
    "ThresholdWeights",
    "detect_anomalies",
    "evaluate_snapshot",
    "AlertVolumeSummary",
    "summarize_alerts",
]
