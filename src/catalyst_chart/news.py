"""
Best-effort news headline lookup for unexplained catalysts.

The label synthesizer accepts any coroutine function with the signature
``(ticker, date) -> Optional[str]``.  This module provides the default one,
backed by the Google News RSS search feed:

- one search per catalyst, scoped to "<ticker> stock <Month YYYY>"
- the first item whose title mentions the ticker or the company's first
  word wins; optionally the first item is used when none do
- the trailing " - Source" attribution is stripped and the result capped
  at 80 characters

Usage:
    async with GoogleNewsLookup(company_name="Apple Inc.") as lookup:
        headline = await lookup("AAPL", catalyst.date)
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import quote

import aiohttp
import feedparser  # type: ignore

from .config import Settings, get_settings
from .formatting import format_month_year
from .logging_utils import get_logger

log = get_logger("news")

MAX_HEADLINE_LEN = 80

_SOURCE_SUFFIX_RE = re.compile(r"\s*[-–]\s*[^-–]+$")


def clean_headline(title: str) -> str:
    """Drop the " - Publisher" suffix and cap the length with an ellipsis."""
    cleaned = _SOURCE_SUFFIX_RE.sub("", title or "").strip()
    if len(cleaned) > MAX_HEADLINE_LEN:
        return cleaned[: MAX_HEADLINE_LEN - 3] + "..."
    return cleaned


def company_token(company_name: Optional[str]) -> Optional[str]:
    """First word of the company name, upper-cased (``"Apple Inc."`` -> ``APPLE``)."""
    if not company_name:
        return None
    parts = company_name.split()
    return parts[0].upper() if parts else None


def news_query(ticker: str, date: datetime) -> str:
    return f"{ticker} stock {format_month_year(date)}"


def pick_headline(
    titles: Iterable[str],
    ticker: str,
    company_name: Optional[str] = None,
    *,
    accept_unmatched: bool = True,
) -> Optional[str]:
    """Choose the headline for a catalyst from feed item titles."""
    titles = [t for t in titles if t]
    needle = (ticker or "").upper()
    company = company_token(company_name)
    for title in titles:
        upper = title.upper()
        if (needle and needle in upper) or (company and company in upper):
            return clean_headline(title) or None
    if accept_unmatched and titles:
        return clean_headline(titles[0]) or None
    return None


class GoogleNewsLookup:
    """Async headline lookup sharing one aiohttp session across catalysts."""

    def __init__(
        self,
        company_name: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.company_name = company_name
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "GoogleNewsLookup":
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.settings.news_user_agent},
                timeout=aiohttp.ClientTimeout(total=self.settings.news_timeout_secs),
            )
            self._owns_session = True
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def feed_url(self, ticker: str, date: datetime) -> str:
        return self.settings.news_feed_url.format(
            query=quote(news_query(ticker, date), safe="")
        )

    async def fetch_titles(self, url: str) -> list[str]:
        if self._session is None:
            raise RuntimeError("GoogleNewsLookup used outside 'async with'")
        async with self._session.get(url, allow_redirects=True) as resp:
            if resp.status != 200:
                log.debug("news_feed_http status=%s url=%s", resp.status, url[:80])
                return []
            text = await resp.text()
        parsed = feedparser.parse(text)
        entries = getattr(parsed, "entries", []) or []
        return [str(e.get("title") or "") for e in entries]

    async def __call__(self, ticker: str, date: datetime) -> Optional[str]:
        url = self.feed_url(ticker, date)
        try:
            titles = await self.fetch_titles(url)
        except aiohttp.ClientError as exc:
            log.debug(
                "news_lookup_failed ticker=%s err=%s", ticker, exc.__class__.__name__
            )
            return None
        headline = pick_headline(
            titles,
            ticker,
            self.company_name,
            accept_unmatched=self.settings.news_accept_unmatched,
        )
        log.debug(
            "news_lookup ticker=%s month=%s items=%d found=%s",
            ticker,
            format_month_year(date),
            len(titles),
            headline is not None,
        )
        return headline
