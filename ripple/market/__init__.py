"""Market data types shared by the scoring engine and its adapters."""

from .snapshot import BacktestSample, InstrumentQuote, MarketSnapshot, make_snapshot

__all__ = ["BacktestSample", "InstrumentQuote", "MarketSnapshot", "make_snapshot"]
