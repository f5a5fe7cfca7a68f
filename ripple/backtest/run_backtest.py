"""CLI entrypoint to calibrate scoring weights against a stored sample corpus."""
import argparse
import json
import logging
from typing import List, Optional

from ripple.analysis.scoring import ThresholdWeights
from ripple.config import (
    MIN_APPLY_SUCCESS_RATE,
    OI_WEIGHT_CANDIDATES,
    PRICE_WEIGHT_CANDIDATES,
    VOLUME_WEIGHT_CANDIDATES,
)
from .corpus import load_samples
from .optimizer import optimize_thresholds, results_frame, select_weights

logger = logging.getLogger(__name__)


def _candidates(raw: str) -> List[float]:
    try:
        return [float(v) for v in raw.split(",") if v.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid weight list: {raw!r}") from exc


def _format_list(values: List[float]) -> str:
    return ",".join(str(v) for v in values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Grid-search anomaly scoring weights")
    parser.add_argument(
        "--samples",
        required=True,
        help="JSON-lines file of historical backtest samples",
    )
    parser.add_argument(
        "--price",
        type=_candidates,
        default=_format_list(PRICE_WEIGHT_CANDIDATES),
        help="Comma-separated price weight candidates",
    )
    parser.add_argument(
        "--volume",
        type=_candidates,
        default=_format_list(VOLUME_WEIGHT_CANDIDATES),
        help="Comma-separated volume weight candidates",
    )
    parser.add_argument(
        "--oi",
        type=_candidates,
        default=_format_list(OI_WEIGHT_CANDIDATES),
        help="Comma-separated open interest weight candidates",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Number of ranked combinations to log",
    )
    parser.add_argument(
        "--min-success-rate",
        type=float,
        default=MIN_APPLY_SUCCESS_RATE,
        help="Success rate (percent) required before recommending new weights",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> dict:
    args = build_parser().parse_args(argv)

    samples = load_samples(args.samples)
    report = optimize_thresholds(
        samples,
        price_candidates=args.price,
        volume_candidates=args.volume,
        oi_candidates=args.oi,
    )

    logger.info("Top %d threshold combinations:\n%s", args.top, results_frame(report.ranked).head(args.top).to_string())
    logger.info("Recommendation: %s", report.recommendation)

    chosen = select_weights(report, ThresholdWeights(), args.min_success_rate)

    summary = report.as_dict()
    summary["selected_weights"] = chosen.as_dict()
    print(json.dumps(summary, indent=2))
    return summary


if __name__ == "__main__":  # pragma: no cover
    main()
