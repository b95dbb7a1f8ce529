"""Label synthesis for detected catalysts.

Each catalyst is explained by the first source that has something to say:

1. an earnings, split or dividend event inside the tolerance window;
2. a news headline from the month of the move;
3. a heuristic label derived from the move itself and the series range.

News lookups for all unexplained catalysts run concurrently.  Every lookup is
its own task with its own timeout and returns ``(slot, headline)``; the
results are written back after all tasks settle, so a slow or failing
lookup only costs its own catalyst the headline.  Synthesis never raises.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from .config import Settings, get_settings
from .formatting import (
    fiscal_quarter_label,
    format_date_short,
    format_percent,
    format_price,
    search_link,
)
from .logging_utils import get_logger
from .matcher import match_event, tolerance_days
from .models import (
    Catalyst,
    DividendEvent,
    EarningsEvent,
    EventMaps,
    MatchedEvent,
    PricePoint,
    SplitEvent,
)

log = get_logger("labels")

NewsLookup = Callable[[str, datetime], Awaitable[Optional[str]]]
Label = Dict[str, str]

# Distance from the series extremes that still counts as "at the high/low".
EXTREME_BAND = 0.03
MAJOR_MOVE_PCT = 15.0
STRONG_MOVE_PCT = 8.0


def event_label(catalyst: Catalyst, matched: MatchedEvent, ticker: str) -> Label:
    """Title/description/link for a catalyst explained by an external event."""
    rec = matched.record
    year = catalyst.date.year
    if isinstance(rec, EarningsEvent):
        quarter = fiscal_quarter_label(catalyst.date)
        description = ""
        if rec.has_eps:
            description = (
                f"EPS: ${rec.eps_actual:.2f} vs ${rec.eps_estimate:.2f} est."
            )
        return {
            "title": f"{quarter} Earnings {'Beat' if rec.beat else 'Miss'}",
            "description": description,
            "link": search_link(f"{ticker} earnings {quarter}"),
        }
    if isinstance(rec, SplitEvent):
        return {
            "title": f"{rec.ratio} Stock Split",
            "description": format_date_short(catalyst.date),
            "link": search_link(f"{ticker} stock split {year}"),
        }
    if isinstance(rec, DividendEvent):
        return {
            "title": f"Dividend: ${rec.amount:.2f}/share",
            "description": (
                "Ex-dividend rally"
                if catalyst.pct_change > 0
                else "Ex-dividend adjustment"
            ),
            "link": search_link(f"{ticker} dividend {year}"),
        }
    raise TypeError(f"unknown event record: {rec!r}")


def news_label(catalyst: Catalyst, headline: str, ticker: str) -> Label:
    return {
        "title": headline,
        "description": format_date_short(catalyst.date),
        "link": search_link(f"{headline} {ticker}"),
    }


def smart_label(
    catalyst: Catalyst, min_close: float, max_close: float, ticker: str
) -> Label:
    """Heuristic label from where the move happened and how large it was."""
    pct = catalyst.pct_change
    link = search_link(f"{ticker} stock news {format_date_short(catalyst.date)}")
    up = pct > 0

    if catalyst.close >= max_close * (1 - EXTREME_BAND) and up:
        title, description = "All-Time High Breakout", format_price(catalyst.close)
    elif catalyst.close <= min_close * (1 + EXTREME_BAND):
        title, description = "Multi-Year Low", format_price(catalyst.close)
    elif abs(pct) > MAJOR_MOVE_PCT:
        title = "Major Rally" if up else "Sharp Sell-Off"
        description = f"{format_percent(pct)} move"
    elif abs(pct) > STRONG_MOVE_PCT:
        title = "Strong Breakout" if up else "Significant Drop"
        description = f"{format_percent(pct)} move"
    else:
        title = "Notable Rally" if up else "Notable Decline"
        description = format_date_short(catalyst.date)
    return {"title": title, "description": description, "link": link}


def apply_label(catalyst: Catalyst, label: Label) -> Catalyst:
    return replace(
        catalyst,
        title=label["title"],
        description=label["description"],
        link=label["link"],
    )


async def _lookup_headline(
    slot: int,
    catalyst: Catalyst,
    ticker: str,
    news_lookup: NewsLookup,
    timeout: float,
) -> Tuple[int, Optional[str]]:
    try:
        headline = await asyncio.wait_for(news_lookup(ticker, catalyst.date), timeout)
    except asyncio.TimeoutError:
        log.info("news_lookup_timeout ticker=%s index=%d", ticker, catalyst.index)
        return slot, None
    except Exception as exc:
        log.warning(
            "news_lookup_error ticker=%s index=%d err=%s",
            ticker,
            catalyst.index,
            exc.__class__.__name__,
        )
        return slot, None
    if not isinstance(headline, str) or not headline.strip():
        return slot, None
    return slot, headline.strip()


async def synthesize_labels(
    catalysts: Sequence[Catalyst],
    events: Optional[EventMaps],
    series: Sequence[PricePoint],
    *,
    ticker: str,
    range_label: str,
    news_lookup: Optional[NewsLookup] = None,
    settings: Optional[Settings] = None,
) -> List[Catalyst]:
    """Return labelled copies of ``catalysts``, in the same order."""
    s = settings or get_settings()
    max_days = tolerance_days(range_label)
    labelled = list(catalysts)

    pending: List[int] = []
    for slot, catalyst in enumerate(labelled):
        try:
            matched = match_event(events, catalyst.date, max_days)
            if matched is not None:
                labelled[slot] = apply_label(
                    catalyst, event_label(catalyst, matched, ticker)
                )
                log.debug(
                    "catalyst_event_match ticker=%s index=%d kind=%s",
                    ticker,
                    catalyst.index,
                    matched.kind,
                )
                continue
        except Exception as exc:
            log.warning(
                "catalyst_event_label_error index=%d err=%s",
                catalyst.index,
                exc.__class__.__name__,
            )
        pending.append(slot)

    if pending and news_lookup is not None and s.feature_news_lookup:
        tasks = [
            asyncio.create_task(
                _lookup_headline(
                    slot, labelled[slot], ticker, news_lookup, s.news_timeout_secs
                )
            )
            for slot in pending
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                continue
            slot, headline = result
            if headline:
                labelled[slot] = apply_label(
                    labelled[slot], news_label(labelled[slot], headline, ticker)
                )

    closes = [p.close for p in series]
    for slot, catalyst in enumerate(labelled):
        if catalyst.title:
            continue
        lo = min(closes, default=catalyst.close)
        hi = max(closes, default=catalyst.close)
        labelled[slot] = apply_label(catalyst, smart_label(catalyst, lo, hi, ticker))

    log.info(
        "catalysts_labelled ticker=%s total=%d news_candidates=%d",
        ticker,
        len(labelled),
        len(pending),
    )
    return labelled
