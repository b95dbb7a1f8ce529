from datetime import datetime, timezone

import aiohttp
import pytest

from catalyst_chart.config import Settings
from catalyst_chart.news import (
    GoogleNewsLookup,
    clean_headline,
    company_token,
    news_query,
    pick_headline,
)

MARCH = datetime(2024, 3, 12, tzinfo=timezone.utc)


def test_clean_headline_strips_source_suffix():
    assert clean_headline("Apple beats estimates - Reuters") == "Apple beats estimates"
    assert clean_headline("Coca-Cola rallies on guidance – CNBC") == "Coca-Cola rallies on guidance"
    assert clean_headline("No source here") == "No source here"


def test_clean_headline_truncates_long_titles():
    title = "A" * 120 + " - Bloomberg"
    cleaned = clean_headline(title)
    assert len(cleaned) == 80
    assert cleaned.endswith("...")


def test_company_token():
    assert company_token("Apple Inc.") == "APPLE"
    assert company_token("") is None
    assert company_token(None) is None


def test_news_query_scopes_to_month():
    assert news_query("AAPL", MARCH) == "AAPL stock March 2024"


def test_pick_headline_prefers_ticker_match():
    titles = ["Market wrap: stocks drift - CNBC", "Why AAPL soared today - Reuters"]
    assert pick_headline(titles, "aapl") == "Why AAPL soared today"


def test_pick_headline_matches_company_token():
    titles = ["Stocks mixed - AP", "apple unveils chip - The Verge"]
    assert pick_headline(titles, "AAPL", "Apple Inc.") == "apple unveils chip"


def test_pick_headline_unmatched_fallback():
    titles = ["Stocks mixed - AP", "Oil climbs - Reuters"]
    assert pick_headline(titles, "AAPL") == "Stocks mixed"
    assert pick_headline(titles, "AAPL", accept_unmatched=False) is None
    assert pick_headline([], "AAPL") is None


def test_feed_url_encodes_query():
    lookup = GoogleNewsLookup(settings=Settings())
    url = lookup.feed_url("AAPL", MARCH)
    assert "q=AAPL%20stock%20March%202024" in url
    assert url.startswith("https://news.google.com/rss/search")


@pytest.mark.asyncio
async def test_lookup_returns_cleaned_headline(monkeypatch):
    lookup = GoogleNewsLookup("Apple Inc.", settings=Settings())
    seen = []

    async def fake_fetch(url):
        seen.append(url)
        return ["Unrelated - AP", "Apple jumps after event - Reuters"]

    monkeypatch.setattr(lookup, "fetch_titles", fake_fetch)

    assert await lookup("AAPL", MARCH) == "Apple jumps after event"
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_lookup_swallows_client_errors(monkeypatch):
    lookup = GoogleNewsLookup(settings=Settings())

    async def broken(url):
        raise aiohttp.ClientConnectionError("refused")

    monkeypatch.setattr(lookup, "fetch_titles", broken)

    assert await lookup("AAPL", MARCH) is None


@pytest.mark.asyncio
async def test_fetch_outside_context_manager_raises():
    lookup = GoogleNewsLookup(settings=Settings())
    with pytest.raises(RuntimeError):
        await lookup.fetch_titles("https://example.invalid/rss")


@pytest.mark.asyncio
async def test_context_manager_closes_owned_session():
    async with GoogleNewsLookup(settings=Settings()) as lookup:
        session = lookup._session
        assert session is not None and not session.closed
    assert session.closed
    assert lookup._session is None
