"""JSON-lines persistence for historical backtest samples."""
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Union
import json
import logging

from ripple.market.snapshot import BacktestSample, InstrumentQuote, MarketSnapshot

logger = logging.getLogger(__name__)


def sample_to_dict(sample: BacktestSample) -> dict:
    snapshot = sample.snapshot
    return {
        "observed_at": snapshot.observed_at.isoformat(),
        "reference_price": snapshot.reference_price,
        "reference_price_at_alert_time": sample.reference_price_at_alert_time,
        "future_reference_price": sample.future_reference_price,
        "quotes": [
            {
                "symbol": q.symbol,
                "mark_price": q.mark_price,
                "volume": q.volume,
                "open_interest": q.open_interest,
            }
            for q in snapshot.quotes
        ],
    }


def sample_from_dict(data: dict) -> BacktestSample:
    """
    Build a BacktestSample from its serialized form.

    ``reference_price_at_alert_time`` falls back to the snapshot reference
    price when absent. A missing ``quotes`` key is a malformed record.
    """
    if "quotes" not in data:
        raise ValueError("Sample record is missing its quotes")

    quotes = tuple(
        InstrumentQuote(
            symbol=q["symbol"],
            mark_price=float(q.get("mark_price") or 0.0),
            volume=float(q.get("volume") or 0.0),
            open_interest=float(q.get("open_interest") or 0.0),
        )
        for q in data["quotes"]
    )
    snapshot = MarketSnapshot(
        observed_at=datetime.fromisoformat(data["observed_at"]),
        reference_price=float(data["reference_price"]),
        quotes=quotes,
    )

    reference = data.get("reference_price_at_alert_time")
    future = data.get("future_reference_price")
    return BacktestSample(
        snapshot=snapshot,
        reference_price_at_alert_time=float(reference) if reference is not None else snapshot.reference_price,
        future_reference_price=float(future) if future is not None else None,
    )


def load_samples(path: Union[str, Path]) -> List[BacktestSample]:
    """Read one sample per non-blank line."""
    path = Path(path)
    samples = []
    with path.open("r", encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                samples.append(sample_from_dict(json.loads(line)))
            except (KeyError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: invalid sample record: {e}") from e

    logger.info(f"Loaded {len(samples)} backtest samples from {path}")
    return samples


def _write_samples(samples: Iterable[BacktestSample], path: Path, mode: str) -> int:
    count = 0
    with path.open(mode, encoding="utf-8") as fh:
        for sample in samples:
            fh.write(json.dumps(sample_to_dict(sample)) + "\n")
            count += 1
    return count


def dump_samples(samples: Iterable[BacktestSample], path: Union[str, Path]) -> int:
    """Write samples as JSON lines, replacing the file; returns the number written."""
    path = Path(path)
    count = _write_samples(samples, path, "w")
    logger.info(f"Wrote {count} backtest samples to {path}")
    return count


def append_samples(samples: Iterable[BacktestSample], path: Union[str, Path]) -> int:
    """Append samples to a JSON-lines corpus, creating it if needed."""
    path = Path(path)
    count = _write_samples(samples, path, "a")
    logger.info(f"Appended {count} backtest samples to {path}")
    return count
