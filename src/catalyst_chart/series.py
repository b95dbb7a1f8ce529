"""Price series decoding.

Two inputs are understood:

* the Yahoo Finance v8 ``chart`` JSON document (``parse_chart_payload``), which
  carries parallel timestamp/quote arrays plus optional ``events`` maps keyed
  by epoch seconds for dividends, splits and earnings;
* a pandas OHLCV frame in the layout returned by ``yfinance.Ticker.history``
  (``series_from_frame`` / ``events_from_frame``), where dividends and splits
  arrive as ``Dividends`` and ``Stock Splits`` columns.

Sessions without a close are dropped.  Fetching either document is the
caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .logging_utils import get_logger
from .models import (
    DividendEvent,
    EarningsEvent,
    EventMaps,
    PricePoint,
    SplitEvent,
    _opt_float,
)

log = get_logger("series")

_FRAME_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]


class ChartDataError(ValueError):
    """Raised when a payload or frame holds no usable price history."""


@dataclass
class ChartData:
    series: List[PricePoint]
    meta: Dict[str, Any] = field(default_factory=dict)
    events: EventMaps = field(default_factory=EventMaps)


def _quote_value(values: Optional[Sequence[Any]], i: int) -> Optional[float]:
    if not values or i >= len(values):
        return None
    return _opt_float(values[i])


def _event_key(raw_key: Any) -> Optional[int]:
    try:
        return int(float(raw_key))
    except (TypeError, ValueError):
        return None


def _parse_events(raw: Mapping[str, Any]) -> EventMaps:
    """Decode the ``events`` block.  Malformed entries are skipped."""
    events = EventMaps()
    if not isinstance(raw, Mapping):
        return events

    for key, rec in (raw.get("earnings") or {}).items():
        ts = _event_key(key)
        if ts is None or not isinstance(rec, Mapping):
            continue
        events.earnings[ts] = EarningsEvent(
            eps_actual=_opt_float(rec.get("epsActual")),
            eps_estimate=_opt_float(rec.get("epsEstimate")),
        )

    for key, rec in (raw.get("splits") or {}).items():
        ts = _event_key(key)
        if ts is None or not isinstance(rec, Mapping):
            continue
        num = _opt_float(rec.get("numerator"))
        den = _opt_float(rec.get("denominator"))
        if num is None or den is None:
            ratio = str(rec.get("splitRatio") or "")
            if ":" in ratio:
                num, den = (_opt_float(p) for p in ratio.split(":", 1))
        if num is None or den is None:
            continue
        events.splits[ts] = SplitEvent(numerator=num, denominator=den)

    for key, rec in (raw.get("dividends") or {}).items():
        ts = _event_key(key)
        if ts is None or not isinstance(rec, Mapping):
            continue
        amount = _opt_float(rec.get("amount"))
        if amount is None:
            continue
        events.dividends[ts] = DividendEvent(amount=amount)

    return events


def parse_chart_payload(payload: Mapping[str, Any], ticker: str = "") -> ChartData:
    """Decode a Yahoo v8 chart document into series, meta and events.

    Raises
    ------
    ChartDataError
        When the document has no result or no timestamps.
    """
    results = ((payload or {}).get("chart") or {}).get("result") or []
    if not results:
        raise ChartDataError(
            f'No data found for "{ticker}". Check the symbol and try again.'
        )

    result = results[0] or {}
    timestamps = result.get("timestamp") or []
    if not timestamps:
        raise ChartDataError(f'No price history for "{ticker}".')

    quotes = ((result.get("indicators") or {}).get("quote") or [{}])[0] or {}
    closes = quotes.get("close") or []

    series: List[PricePoint] = []
    for i, ts in enumerate(timestamps):
        close = _quote_value(closes, i)
        if close is None:
            continue
        series.append(
            PricePoint.from_timestamp(
                ts,
                close,
                open=_quote_value(quotes.get("open"), i),
                high=_quote_value(quotes.get("high"), i),
                low=_quote_value(quotes.get("low"), i),
                volume=_quote_value(quotes.get("volume"), i),
            )
        )

    events = _parse_events(result.get("events") or {})
    log.debug(
        "chart_payload_parsed ticker=%s points=%d dropped=%d events=%d",
        ticker,
        len(series),
        len(timestamps) - len(series),
        len(events),
    )
    return ChartData(series=series, meta=dict(result.get("meta") or {}), events=events)


def _normalize_column_names(columns: Iterable[Any]) -> Dict[Any, str]:
    """Map case-variant column names to canonical OHLCV names."""
    lookup = {str(col).strip().lower(): col for col in columns}
    mapping: Dict[Any, str] = {}
    for required in _FRAME_COLUMNS + ["Date", "Dividends", "Stock Splits"]:
        source = lookup.get(required.lower())
        if source is not None:
            mapping[source] = required
    return mapping


def _indexed_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Return ``frame`` with canonical columns and a UTC DatetimeIndex."""
    normalized = frame.rename(columns=_normalize_column_names(frame.columns))
    if "Close" not in normalized.columns:
        raise ChartDataError("Missing required column: Close")
    if "Date" in normalized.columns:
        normalized = normalized.set_index("Date")
    index = pd.to_datetime(normalized.index, errors="coerce", utc=True)
    normalized = normalized.set_axis(index, axis=0)
    normalized = normalized[normalized.index.notna()]
    return normalized.sort_index()


def series_from_frame(frame: pd.DataFrame) -> List[PricePoint]:
    """Convert an OHLCV frame into price points, skipping rows without a close."""
    normalized = _indexed_frame(frame)
    closes = pd.to_numeric(normalized["Close"], errors="coerce")
    normalized = normalized[closes.notna()]

    series: List[PricePoint] = []
    for ts, row in normalized.iterrows():
        values = {
            col: _opt_float(row.get(col)) if col in normalized.columns else None
            for col in _FRAME_COLUMNS
        }
        # NaN survives float(); treat it as missing.
        values = {k: (None if v is not None and v != v else v) for k, v in values.items()}
        series.append(
            PricePoint.from_timestamp(
                int(ts.timestamp()),
                values["Close"],
                open=values["Open"],
                high=values["High"],
                low=values["Low"],
                volume=values["Volume"],
            )
        )
    return series


def events_from_frame(frame: pd.DataFrame) -> EventMaps:
    """Collect dividends and splits from the ``Dividends``/``Stock Splits`` columns."""
    normalized = _indexed_frame(frame)
    events = EventMaps()

    if "Dividends" in normalized.columns:
        divs = pd.to_numeric(normalized["Dividends"], errors="coerce").fillna(0.0)
        for ts, amount in divs[divs > 0].items():
            events.dividends[int(ts.timestamp())] = DividendEvent(amount=float(amount))

    if "Stock Splits" in normalized.columns:
        splits = pd.to_numeric(normalized["Stock Splits"], errors="coerce").fillna(0.0)
        for ts, factor in splits[splits > 0].items():
            ratio = Fraction(float(factor)).limit_denominator(1000)
            events.splits[int(ts.timestamp())] = SplitEvent(
                numerator=float(ratio.numerator), denominator=float(ratio.denominator)
            )

    return events


def moving_average(series: Sequence[PricePoint], period: int) -> List[float]:
    """Simple moving average of closes.

    Until the window fills, each slot echoes that session's close so the
    overlay starts on the price line.
    """
    if not series:
        return []
    closes = pd.Series([p.close for p in series], dtype="float64")
    ma = closes.rolling(window=max(1, period), min_periods=max(1, period)).mean()
    return ma.fillna(closes).tolist()
