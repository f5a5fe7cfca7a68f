"""Market data feed adapters."""

from ripple.ingestion.deribit import DeribitMarketData

__all__ = ['DeribitMarketData']
