"""
RIPPLE: Relative Instrument Pricing & Participation Leading-Edge detector

Scores option quotes against their expiry cohort (price, volume and open
interest z-scores plus a time-decay bonus near expiry), gates alerts per
cohort with a cooldown, and calibrates the scoring weights offline by grid
search over historical snapshots.
"""

__version__ = '0.1.0'

# Make key imports available at package level
from ripple.analysis.scoring import ThresholdWeights, ScoringConstants, evaluate_snapshot
from ripple.analysis.cohorts import ExpiryWindow
from ripple.backtest.optimizer import optimize_thresholds
from ripple.state.cooldown import CooldownTracker

__all__ = [
    '__version__',
    'ThresholdWeights',
    'ScoringConstants',
    'ExpiryWindow',
    'evaluate_snapshot',
    'optimize_thresholds',
    'CooldownTracker',
]
