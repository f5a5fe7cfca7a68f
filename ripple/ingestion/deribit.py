"""Market snapshot ingestion from the Deribit public REST API."""
from typing import List, Optional
import logging

import requests

from ripple.config import DERIBIT_API_URL, DERIBIT_CURRENCY, HTTP_TIMEOUT_SECONDS
from ripple.market.snapshot import InstrumentQuote, MarketSnapshot, make_snapshot

logger = logging.getLogger(__name__)


def _number(value) -> float:
    return float(value) if value is not None else 0.0


class DeribitMarketData:
    """
    Fetch option book summaries and the index price for one currency.
    """

    def __init__(
        self,
        base_url: str = DERIBIT_API_URL,
        currency: str = DERIBIT_CURRENCY,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.currency = currency.upper()
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.info(f"Deribit market data using {self.base_url} ({self.currency})")

    def _get(self, path: str, params: dict) -> dict:
        try:
            resp = self.session.get(
                f"{self.base_url}/{path}",
                params=params,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            logger.error(f"Deribit request {path} failed: {e}")
            raise

    def fetch_quotes(self) -> List[InstrumentQuote]:
        """Current book summary for every listed option of the currency."""
        data = self._get(
            "public/get_book_summary_by_currency",
            {"currency": self.currency, "kind": "option"},
        )
        rows = data.get("result") or []

        quotes = []
        for row in rows:
            symbol = row.get("instrument_name")
            if not symbol:
                continue
            quotes.append(
                InstrumentQuote(
                    symbol=symbol,
                    mark_price=_number(row.get("mark_price")),
                    volume=_number(row.get("volume_usd")),
                    open_interest=_number(row.get("open_interest")),
                )
            )

        logger.info(f"Fetched {len(quotes)} {self.currency} options")
        return quotes

    def fetch_index_price(self) -> float:
        data = self._get(
            "public/get_index_price",
            {"index_name": f"{self.currency.lower()}_usd"},
        )
        try:
            return float(data["result"]["index_price"])
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected index price payload for {self.currency}: {data}")
            raise ValueError(f"Missing index price for {self.currency}") from e

    def collect_snapshot(self) -> MarketSnapshot:
        """Quotes plus index price stamped with the collection time."""
        quotes = self.fetch_quotes()
        price = self.fetch_index_price()
        return make_snapshot(quotes, price)
