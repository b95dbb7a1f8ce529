"""Display formatting shared by labels, metrics and the CLI."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from urllib.parse import quote

SEARCH_URL = "https://www.google.com/search?q="

# Characters encodeURIComponent leaves alone, beyond the ones quote() always keeps.
_URI_COMPONENT_SAFE = "!*'()"


def format_price(price: Optional[float]) -> str:
    if price is None:
        return "--"
    if price >= 1000:
        return f"${price:,.2f}"
    if price >= 1:
        return f"${price:.2f}"
    return f"${price:.4f}"


def format_percent(pct: Optional[float]) -> str:
    if pct is None:
        return "--"
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.2f}%"


def format_large_number(num: Optional[float]) -> str:
    if num is None:
        return "--"
    if num >= 1e12:
        return f"${num / 1e12:.2f}T"
    if num >= 1e9:
        return f"${num / 1e9:.2f}B"
    if num >= 1e6:
        return f"${num / 1e6:.2f}M"
    return f"${num:,.0f}"


def format_volume(num: Optional[float]) -> str:
    if num is None:
        return "--"
    if num >= 1e9:
        return f"{num / 1e9:.2f}B"
    if num >= 1e6:
        return f"{num / 1e6:.2f}M"
    if num >= 1e3:
        return f"{num / 1e3:.1f}K"
    return f"{num:g}"


def format_date_short(date: datetime) -> str:
    """``Jan 5, 2024``"""
    return f"{date:%b} {date.day}, {date.year}"


def format_month_year(date: datetime) -> str:
    """``January 2024``"""
    return f"{date:%B %Y}"


def quarter_of(date: datetime) -> int:
    return (date.month - 1) // 3 + 1


def fiscal_quarter_label(date: datetime) -> str:
    return f"Q{quarter_of(date)} FY{date.year}"


def search_link(query: str) -> str:
    return SEARCH_URL + quote(query, safe=_URI_COMPONENT_SAFE)
