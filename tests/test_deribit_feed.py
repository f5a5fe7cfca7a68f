import pytest
import requests

from ripple.ingestion.deribit import DeribitMarketData


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        path = url.rsplit("/", 2)[-2] + "/" + url.rsplit("/", 1)[-1]
        return self.responses[path]


BOOK = {
    "result": [
        {"instrument_name": "ETH-7NOV25-3000-C", "mark_price": 0.012, "volume_usd": 15000.0, "open_interest": 120.0},
        {"instrument_name": "ETH-7NOV25-3000-P", "mark_price": 0.008, "volume_usd": None, "open_interest": 80.0},
        {"instrument_name": "", "mark_price": 0.5},
    ]
}
INDEX = {"result": {"index_price": 3312.5}}


def make_feed(responses):
    session = FakeSession(responses)
    feed = DeribitMarketData(base_url="https://test.deribit.com/api/v2/", currency="eth", timeout=5, session=session)
    return feed, session


def test_book_summary_rows_map_to_quotes():
    feed, session = make_feed({"public/get_book_summary_by_currency": FakeResponse(BOOK)})

    quotes = feed.fetch_quotes()

    assert [q.symbol for q in quotes] == ["ETH-7NOV25-3000-C", "ETH-7NOV25-3000-P"]
    assert quotes[0].mark_price == pytest.approx(0.012)
    assert quotes[0].volume == pytest.approx(15000.0)
    assert quotes[0].open_interest == pytest.approx(120.0)
    assert quotes[1].volume == 0.0

    url, params, timeout = session.calls[0]
    assert url == "https://test.deribit.com/api/v2/public/get_book_summary_by_currency"
    assert params == {"currency": "ETH", "kind": "option"}
    assert timeout == 5


def test_index_price_is_read_from_result():
    feed, session = make_feed({"public/get_index_price": FakeResponse(INDEX)})

    assert feed.fetch_index_price() == pytest.approx(3312.5)
    assert session.calls[0][1] == {"index_name": "eth_usd"}


def test_missing_index_price_raises():
    feed, _ = make_feed({"public/get_index_price": FakeResponse({"result": {}})})

    with pytest.raises(ValueError):
        feed.fetch_index_price()


def test_http_errors_propagate():
    feed, _ = make_feed({"public/get_book_summary_by_currency": FakeResponse({}, status_code=503)})

    with pytest.raises(requests.HTTPError):
        feed.fetch_quotes()


def test_collect_snapshot_combines_quotes_and_index():
    feed, _ = make_feed({
        "public/get_book_summary_by_currency": FakeResponse(BOOK),
        "public/get_index_price": FakeResponse(INDEX),
    })

    snapshot = feed.collect_snapshot()

    assert len(snapshot) == 2
    assert snapshot.reference_price == pytest.approx(3312.5)
    assert snapshot.observed_at is not None
