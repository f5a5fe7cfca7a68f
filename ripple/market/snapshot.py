"""Immutable market snapshot types consumed by the scoring engine."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class InstrumentQuote:
    symbol: str
    mark_price: float
    volume: float
    open_interest: float


@dataclass(frozen=True)
class MarketSnapshot:
    """One observation of every listed instrument plus the underlying reference price."""

    observed_at: datetime
    reference_price: float
    quotes: Tuple[InstrumentQuote, ...]

    def __post_init__(self) -> None:
        if self.quotes is None:
            raise ValueError("MarketSnapshot requires a quotes sequence")
        if self.observed_at.tzinfo is None:
            # Naive timestamps are taken as UTC
            object.__setattr__(self, "observed_at", self.observed_at.replace(tzinfo=timezone.utc))
        object.__setattr__(self, "quotes", tuple(self.quotes))

    def __len__(self) -> int:
        return len(self.quotes)


@dataclass(frozen=True)
class BacktestSample:
    snapshot: MarketSnapshot
    reference_price_at_alert_time: float
    future_reference_price: Optional[float]

    @classmethod
    def from_snapshot(cls, snapshot: MarketSnapshot, future_reference_price: Optional[float]) -> "BacktestSample":
        """Pair a snapshot with the reference price later observed for it."""
        return cls(
            snapshot=snapshot,
            reference_price_at_alert_time=snapshot.reference_price,
            future_reference_price=future_reference_price,
        )


def make_snapshot(
    quotes: Sequence[InstrumentQuote],
    reference_price: float,
    observed_at: Optional[datetime] = None,
) -> MarketSnapshot:
    return MarketSnapshot(
        observed_at=observed_at or datetime.now(timezone.utc),
        reference_price=float(reference_price),
        quotes=tuple(quotes),
    )
