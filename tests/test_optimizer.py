from datetime import datetime, timezone

import pytest

from ripple.analysis.scoring import ScoringConstants, ThresholdWeights
from ripple.backtest.optimizer import (
    POOR_RECOMMENDATION,
    grid_search,
    optimize_thresholds,
    recommendation_for,
    results_frame,
    run_backtest,
    select_weights,
)
from ripple.market.snapshot import BacktestSample, InstrumentQuote, MarketSnapshot

OBSERVED = datetime(2025, 11, 7, 7, 0, tzinfo=timezone.utc)
CONSTANTS = ScoringConstants(time_decay_weight=2.0, score_threshold=5.0, max_window_hours=48.0)


def make_quote(symbol, price, volume=0.0, oi=0.0):
    return InstrumentQuote(symbol=symbol, mark_price=price, volume=volume, open_interest=oi)


def anomalous_snapshot(reference=3000.0):
    return MarketSnapshot(
        observed_at=OBSERVED,
        reference_price=reference,
        quotes=[
            make_quote("ETH-7NOV25-3000-C", 10.0, volume=1.0),
            make_quote("ETH-7NOV25-3100-C", 10.0, volume=2.0),
            make_quote("ETH-7NOV25-3200-P", 10.0, volume=3.0),
            make_quote("ETH-7NOV25-3300-C", 100.0, volume=100.0),
        ],
    )


def quiet_snapshot(reference=3000.0):
    return MarketSnapshot(
        observed_at=OBSERVED,
        reference_price=reference,
        quotes=[make_quote(f"ETH-7NOV25-{k}-C", 10.0, volume=1.0) for k in (3000, 3100, 3200, 3300)],
    )


def make_corpus():
    return [
        BacktestSample.from_snapshot(anomalous_snapshot(), future_reference_price=3090.0),  # +3%
        BacktestSample.from_snapshot(quiet_snapshot(), future_reference_price=3300.0),      # no alert
        BacktestSample.from_snapshot(anomalous_snapshot(), future_reference_price=3030.0),  # +1%
    ]


def test_run_backtest_counts_alerting_samples_once():
    result = run_backtest(make_corpus(), ThresholdWeights(1.5, 1.0, 0.5), CONSTANTS)

    assert result.total_alerts == 2
    assert result.successful == 1
    assert result.false_positives == 1
    assert result.success_rate == pytest.approx(50.0)
    assert result.precision == pytest.approx(0.5)


def test_downward_moves_count_as_success():
    corpus = [BacktestSample.from_snapshot(anomalous_snapshot(), future_reference_price=2900.0)]

    result = run_backtest(corpus, ThresholdWeights(1.5, 1.0, 0.5), CONSTANTS)

    assert result.successful == 1
    assert result.success_rate == pytest.approx(100.0)


def test_samples_without_outcome_are_skipped():
    corpus = [
        BacktestSample.from_snapshot(anomalous_snapshot(), future_reference_price=None),
        BacktestSample(snapshot=anomalous_snapshot(), reference_price_at_alert_time=0.0, future_reference_price=3100.0),
    ]

    result = run_backtest(corpus, ThresholdWeights(1.5, 1.0, 0.5), CONSTANTS)

    assert result.total_alerts == 0
    assert result.success_rate == 0.0
    assert result.precision == 0.0


def test_grid_search_ranks_by_success_rate():
    results = grid_search(make_corpus(), [0.5, 1.5], [1.0], [0.5], constants=CONSTANTS)

    assert len(results) == 2
    assert results[0].weights == ThresholdWeights(1.5, 1.0, 0.5)
    assert results[0].success_rate == pytest.approx(50.0)
    assert results[1].weights == ThresholdWeights(0.5, 1.0, 0.5)
    assert results[1].total_alerts == 0


def test_ties_keep_grid_order():
    results = grid_search([], [2.0, 1.0], [0.5, 0.25], [0.1], constants=CONSTANTS)

    assert [(r.weights.price_weight, r.weights.volume_weight) for r in results] == [
        (2.0, 0.5), (2.0, 0.25), (1.0, 0.5), (1.0, 0.25),
    ]


def test_singleton_grid_matches_direct_backtest():
    corpus = make_corpus()
    weights = ThresholdWeights(1.5, 1.0, 0.5)

    report = optimize_thresholds(corpus, [1.5], [1.0], [0.5], constants=CONSTANTS)
    direct = run_backtest(corpus, weights, CONSTANTS)

    assert report.combinations_tested == 1
    assert report.best_weights == weights
    assert report.total_alerts == direct.total_alerts
    assert report.successful == direct.successful
    assert report.false_positives == direct.false_positives
    assert report.success_rate == direct.success_rate
    assert report.precision == direct.precision


def test_optimizer_is_idempotent():
    corpus = make_corpus()
    grids = ([0.5, 1.0, 1.5, 2.0], [0.5, 1.0], [0.3, 0.5])

    first = optimize_thresholds(corpus, *grids, constants=CONSTANTS)
    second = optimize_thresholds(corpus, *grids, constants=CONSTANTS)

    assert first.best_weights == second.best_weights
    assert first.success_rate == second.success_rate
    assert first.combinations_tested == 16


def test_empty_corpus_yields_zero_report():
    report = optimize_thresholds([], [1.0, 2.0], [1.0], [0.5], constants=CONSTANTS)

    assert report.total_alerts == 0
    assert report.success_rate == 0.0
    assert report.precision == 0.0
    assert report.samples_evaluated == 0
    assert report.recommendation.startswith("POOR")
    assert report.best_weights == ThresholdWeights(1.0, 1.0, 0.5)


def test_empty_candidate_list_is_rejected():
    with pytest.raises(ValueError):
        optimize_thresholds(make_corpus(), [], [1.0], [0.5])


@pytest.mark.parametrize(
    "rate, prefix",
    [
        (100.0, "EXCELLENT"),
        (70.0, "EXCELLENT"),
        (69.9, "GOOD"),
        (50.0, "GOOD"),
        (49.9, "FAIR"),
        (30.0, "FAIR"),
        (29.9, "POOR"),
        (0.0, "POOR"),
    ],
)
def test_recommendation_bands(rate, prefix):
    assert recommendation_for(rate).startswith(prefix)


def test_select_weights_requires_success_rate():
    current = ThresholdWeights(1.5, 1.0, 0.5)
    good = optimize_thresholds(make_corpus(), [2.0], [1.0], [0.5], constants=CONSTANTS)
    empty = optimize_thresholds([], [2.0], [1.0], [0.5], constants=CONSTANTS)

    assert good.success_rate == pytest.approx(50.0)
    assert select_weights(good, current, min_success_rate=30.0) == ThresholdWeights(2.0, 1.0, 0.5)
    assert select_weights(good, current, min_success_rate=60.0) == current
    assert select_weights(empty, current, min_success_rate=0.0) == current
    assert empty.recommendation == POOR_RECOMMENDATION


def test_results_frame_lists_ranked_cells():
    report = optimize_thresholds(make_corpus(), [0.5, 1.5], [1.0], [0.5], constants=CONSTANTS)

    df = results_frame(report.ranked)

    assert len(df) == 2
    assert list(df.index) == [1, 2]
    assert df.loc[1, "price_weight"] == 1.5
    assert df.loc[1, "success_rate"] == pytest.approx(50.0)
