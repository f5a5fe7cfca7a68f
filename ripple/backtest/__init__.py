"""Offline calibration of anomaly scoring weights."""

from .collector import SampleCollector
from .corpus import append_samples, dump_samples, load_samples
from .optimizer import (
    BacktestResult,
    OptimizationReport,
    grid_search,
    optimize_thresholds,
    recommendation_for,
    run_backtest,
    select_weights,
)

__all__ = [
    "SampleCollector",
    "append_samples",
    "dump_samples",
    "load_samples",
    "BacktestResult",
    "OptimizationReport",
    "grid_search",
    "optimize_thresholds",
    "recommendation_for",
    "run_backtest",
    "select_weights",
]
