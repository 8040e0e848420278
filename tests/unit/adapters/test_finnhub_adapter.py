"""Tests for the Finnhub client, payload decoding and async adapter."""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from src.domain.exceptions import ConfigurationError, MarketDataError
from src.infrastructure.adapters.finnhub import (
    FinnhubAdapter,
    FinnhubClient,
    load_finnhub_key,
    parse_news,
    parse_profile,
    parse_quote,
)

QUOTE_PAYLOAD = {"c": 178.52, "d": 2.34, "dp": 1.33, "h": 179.0, "l": 175.8, "o": 176.1, "pc": 176.18}


def _news(headline, source, epoch, url="https://example.com/x"):
    return {"headline": headline, "source": source, "datetime": epoch, "url": url, "category": "company"}


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return FinnhubClient(api_key="test-key", session=session)


class TestParseQuote:
    def test_decodes_fields(self):
        quote = parse_quote("AAPL", QUOTE_PAYLOAD)

        assert quote.price == 178.52
        assert quote.change_absolute == 2.34
        assert quote.change_percent == 1.33
        assert quote.previous_close == 176.18
        assert quote.is_up

    def test_all_zero_payload_is_not_found(self):
        payload = {"c": 0, "d": None, "dp": None, "h": 0, "l": 0, "o": 0, "pc": 0}

        assert parse_quote("ZZZZ", payload) is None

    def test_zero_price_with_range_is_kept(self):
        assert parse_quote("HALT", {"c": 0, "h": 12.0}) is not None

    def test_null_fields_default_to_zero(self):
        quote = parse_quote("AAPL", {"c": 10.0, "h": 11.0, "d": None, "dp": "x"})

        assert quote.change_absolute == 0.0
        assert quote.change_percent == 0.0


class TestParseProfile:
    def test_market_cap_converted_from_millions(self):
        profile = parse_profile(
            "AAPL",
            {"name": "Apple Inc", "marketCapitalization": 2800000, "finnhubIndustry": "Technology",
             "weburl": "https://www.apple.com/", "exchange": "NASDAQ", "country": "US"},
        )

        assert profile.company_name == "Apple Inc"
        assert profile.market_cap == pytest.approx(2.8e12)
        assert profile.sector == "Technology"

    @pytest.mark.parametrize("payload", [{}, {"ticker": "X"}, None])
    def test_empty_payload(self, payload):
        assert parse_profile("X", payload) is None


class TestParseNews:
    def test_sorted_newest_first_and_capped(self):
        payload = [_news(f"h{i}", "Reuters", 1_700_000_000 + i) for i in range(15)]

        items = parse_news(payload, max_items=10)

        assert len(items) == 10
        assert items[0].headline == "h14"
        assert items[0].published_at == datetime.fromtimestamp(1_700_000_014, timezone.utc)

    def test_excluded_sources(self):
        payload = [_news("a", "MarketWatch", 2), _news("b", "Reuters", 1)]

        items = parse_news(payload, excluded_sources=("MarketWatch",))

        assert [n.headline for n in items] == ["b"]

    def test_rows_without_headline_or_url_dropped(self):
        payload = [_news("", "Reuters", 1), _news("ok", "Reuters", 2, url=""), _news("keep", "CNBC", 3)]

        assert [n.headline for n in parse_news(payload)] == ["keep"]


class TestFinnhubClient:
    def test_requires_key(self, session, monkeypatch, tmp_path):
        monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
        monkeypatch.setattr(
            "src.infrastructure.adapters.finnhub.client._SECRETS_PATH", tmp_path / "missing.yaml"
        )

        with pytest.raises(ConfigurationError):
            FinnhubClient(session=session)

    def test_quote_request(self, client, session):
        session.get.return_value = _response(payload=QUOTE_PAYLOAD)

        assert client.quote("AAPL") == QUOTE_PAYLOAD

        url = session.get.call_args.args[0]
        kwargs = session.get.call_args.kwargs
        assert url == "https://finnhub.io/api/v1/quote"
        assert kwargs["params"] == {"symbol": "AAPL", "token": "test-key"}
        assert kwargs["timeout"] == 10.0

    def test_company_news_dates(self, client, session):
        session.get.return_value = _response(payload=[])

        client.company_news("AAPL", date(2024, 1, 3), date(2024, 1, 10))

        params = session.get.call_args.kwargs["params"]
        assert params["from"] == "2024-01-03"
        assert params["to"] == "2024-01-10"

    def test_unexpected_shape_is_empty(self, client, session):
        session.get.return_value = _response(payload={"error": "x"})

        assert client.market_news() == []

    def test_http_error(self, client, session):
        session.get.return_value = _response(status=429)

        with pytest.raises(MarketDataError, match="/quote"):
            client.quote("AAPL")

    def test_network_error(self, client, session):
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(MarketDataError):
            client.profile("AAPL")

    def test_invalid_json(self, client, session):
        resp = _response()
        resp.json.side_effect = ValueError("Expecting value")
        session.get.return_value = resp

        with pytest.raises(MarketDataError, match="not JSON"):
            client.quote("AAPL")


class TestLoadKey:
    def test_env_var_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINNHUB_API_KEY", "from-env")

        assert load_finnhub_key(tmp_path / "secrets.yaml") == "from-env"

    def test_secrets_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
        secrets = tmp_path / "secrets.yaml"
        secrets.write_text("finnhub:\n  api_key: from-file\n")

        assert load_finnhub_key(secrets) == "from-file"


class TestFinnhubAdapter:
    @pytest.fixture
    def finnhub(self):
        return MagicMock(spec=FinnhubClient)

    @pytest.mark.asyncio
    async def test_get_quote(self, finnhub):
        finnhub.quote.return_value = QUOTE_PAYLOAD
        adapter = FinnhubAdapter(finnhub)

        quote = await adapter.get_quote("AAPL")

        assert quote.symbol == "AAPL"
        finnhub.quote.assert_called_once_with("AAPL")

    @pytest.mark.asyncio
    async def test_unknown_symbol(self, finnhub):
        finnhub.quote.return_value = {"c": 0, "h": 0}

        assert await FinnhubAdapter(finnhub).get_quote("ZZZZ") is None

    @pytest.mark.asyncio
    async def test_recent_news_passes_dates(self, finnhub):
        finnhub.company_news.return_value = [_news("a", "MarketWatch", 1)]
        adapter = FinnhubAdapter(finnhub)
        since = datetime(2024, 1, 3, tzinfo=timezone.utc)
        until = datetime(2024, 1, 10, 23, 59, tzinfo=timezone.utc)

        items = await adapter.get_recent_news("AAPL", since, until)

        finnhub.company_news.assert_called_once_with("AAPL", date(2024, 1, 3), date(2024, 1, 10))
        # Source exclusion only applies to market news
        assert len(items) == 1

    @pytest.mark.asyncio
    async def test_market_news_excludes_sources(self, finnhub):
        finnhub.market_news.return_value = [_news("a", "MarketWatch", 2), _news("b", "CNBC", 1)]

        items = await FinnhubAdapter(finnhub).get_market_news()

        assert [n.source for n in items] == ["CNBC"]
        finnhub.market_news.assert_called_once_with("general")

    @pytest.mark.asyncio
    async def test_errors_propagate(self, finnhub):
        finnhub.profile.side_effect = MarketDataError("down")

        with pytest.raises(MarketDataError):
            await FinnhubAdapter(finnhub).get_extended_profile("AAPL")
