"""Live collection of backtest samples.

Each snapshot is held until ``horizon_hours`` have passed since it was
observed, then paired with the index price at that moment and appended to a
JSON-lines corpus that ``run_backtest`` can read.
"""
from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Event, Lock
from typing import List, Optional, Protocol, Union
import argparse
import logging

from ripple.config import (
    COLLECTION_HORIZON_HOURS,
    COLLECTION_INTERVAL_MINUTES,
    COLLECTION_MAX_PENDING,
    COLLECTION_SAMPLES_PATH,
)
from ripple.ingestion.deribit import DeribitMarketData
from ripple.market.snapshot import BacktestSample, MarketSnapshot
from .corpus import append_samples

logger = logging.getLogger(__name__)


class SampleFeed(Protocol):
    def collect_snapshot(self) -> MarketSnapshot:
        ...

    def fetch_index_price(self) -> float:
        ...


class SampleCollector:
    """
    Bounded queue of snapshots waiting for their outcome price.

    When the queue is full the oldest pending snapshot is dropped.
    """

    def __init__(
        self,
        feed: SampleFeed,
        path: Union[str, Path] = COLLECTION_SAMPLES_PATH,
        horizon_hours: float = COLLECTION_HORIZON_HOURS,
        max_pending: int = COLLECTION_MAX_PENDING,
    ):
        self.feed = feed
        self.path = Path(path)
        self.horizon = timedelta(hours=horizon_hours)
        self._pending: deque[MarketSnapshot] = deque(maxlen=max_pending)
        self._lock = Lock()

    def collect(self) -> MarketSnapshot:
        snapshot = self.feed.collect_snapshot()
        with self._lock:
            if len(self._pending) == self._pending.maxlen:
                logger.warning(
                    "Pending queue full (%d); dropping snapshot from %s",
                    self._pending.maxlen,
                    self._pending[0].observed_at,
                )
            self._pending.append(snapshot)
        logger.info(f"Collected snapshot with {len(snapshot)} quotes ({self.pending()} pending)")
        return snapshot

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def _pop_matured(self, now: datetime) -> List[MarketSnapshot]:
        matured = []
        with self._lock:
            while self._pending and self._pending[0].observed_at + self.horizon <= now:
                matured.append(self._pending.popleft())
        return matured

    def resolve(self, now: Optional[datetime] = None) -> List[BacktestSample]:
        """
        Pair every matured snapshot with the current index price and persist it.

        If the price fetch fails the snapshots go back on the queue and the
        error propagates.
        """
        now = now or datetime.now(timezone.utc)
        matured = self._pop_matured(now)
        if not matured:
            return []

        try:
            future_price = self.feed.fetch_index_price()
        except Exception:
            with self._lock:
                self._pending.extendleft(reversed(matured))
            raise

        samples = [BacktestSample.from_snapshot(s, future_reference_price=future_price) for s in matured]
        append_samples(samples, self.path)
        return samples

    def step(self, now: Optional[datetime] = None) -> List[BacktestSample]:
        """Collect one snapshot, then resolve whatever has matured."""
        self.collect()
        return self.resolve(now)

    def run(self, interval_minutes: float = COLLECTION_INTERVAL_MINUTES, stop: Optional[Event] = None) -> None:
        """Collect on a fixed interval until ``stop`` is set or interrupted."""
        stop = stop or Event()
        logger.info(
            "Starting sample collection every %.1f min (horizon=%s, output=%s)",
            interval_minutes,
            self.horizon,
            self.path,
        )
        try:
            while not stop.is_set():
                try:
                    self.step()
                except Exception as exc:  # pragma: no cover - resilience path
                    logger.error("Collection step failed: %s", exc, exc_info=True)
                stop.wait(interval_minutes * 60.0)
        except KeyboardInterrupt:
            logger.info("Sample collection stopped by user")


def main() -> None:
    parser = argparse.ArgumentParser(description="Collect live backtest samples")
    parser.add_argument(
        "--output",
        default=COLLECTION_SAMPLES_PATH,
        help="JSON-lines corpus to append samples to",
    )
    parser.add_argument(
        "--interval-minutes",
        type=float,
        default=COLLECTION_INTERVAL_MINUTES,
        help="Minutes between snapshots",
    )
    parser.add_argument(
        "--horizon-hours",
        type=float,
        default=COLLECTION_HORIZON_HOURS,
        help="Hours to wait before recording a snapshot's outcome price",
    )
    parser.add_argument(
        "--max-pending",
        type=int,
        default=COLLECTION_MAX_PENDING,
        help="Snapshots held while waiting for their outcome",
    )
    args = parser.parse_args()

    collector = SampleCollector(
        feed=DeribitMarketData(),
        path=args.output,
        horizon_hours=args.horizon_hours,
        max_pending=args.max_pending,
    )
    collector.run(args.interval_minutes)


if __name__ == "__main__":  # pragma: no cover
    main()
