"""Catalyst detection.

A catalyst is a session whose combined two-session move (close before it to
close after it) exceeds the threshold.  Candidates are ranked by magnitude,
thinned greedily so no two sit closer than ``min_spacing`` sessions, capped,
and returned in chronological order.  Ranking before spacing means the
largest moves win the scarce label slots.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .config import Settings, get_settings
from .logging_utils import get_logger
from .models import Catalyst, PricePoint

log = get_logger("detector")


def min_spacing(length: int, settings: Optional[Settings] = None) -> int:
    s = settings or get_settings()
    return max(s.spacing_floor, length // max(1, s.spacing_divisor))


def two_session_returns(series: Sequence[PricePoint]) -> List[float]:
    """Percent change from ``close[i-1]`` to ``close[i+1]`` for every session.

    The first session has no predecessor and gets 0; the last session uses
    its own close in place of the missing successor.
    """
    out: List[float] = []
    last = len(series) - 1
    for i, point in enumerate(series):
        if i == 0:
            out.append(0.0)
            continue
        prev = series[i - 1].close
        nxt = series[i + 1].close if i < last else point.close
        if not prev:
            out.append(0.0)
            continue
        out.append((nxt - prev) / prev * 100.0)
    return out


def detect_catalysts(
    series: Sequence[PricePoint], settings: Optional[Settings] = None
) -> List[Catalyst]:
    """Return up to ``max_catalysts`` spaced-out catalysts, ordered by index."""
    s = settings or get_settings()
    if len(series) < s.min_series_points:
        return []

    returns = two_session_returns(series)
    candidates = [
        (i, pct) for i, pct in enumerate(returns) if abs(pct) > s.move_threshold_pct
    ]
    # sorted() is stable: equal magnitudes keep chronological order.
    candidates = sorted(candidates, key=lambda c: abs(c[1]), reverse=True)

    spacing = min_spacing(len(series), s)
    selected: List[int] = []
    for idx, _pct in candidates:
        if len(selected) >= s.max_catalysts:
            break
        if any(abs(idx - taken) < spacing for taken in selected):
            continue
        selected.append(idx)

    selected.sort()
    log.debug(
        "catalysts_detected points=%d candidates=%d selected=%d spacing=%d",
        len(series),
        len(candidates),
        len(selected),
        spacing,
    )
    return [
        Catalyst(
            index=i,
            date=series[i].date,
            close=series[i].close,
            pct_change=returns[i],
        )
        for i in selected
    ]
