"""Match catalysts to external earnings, split and dividend events."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional, TypeVar

from .config import range_spec
from .logging_utils import get_logger
from .models import EventMaps, MatchedEvent

log = get_logger("matcher")

R = TypeVar("R")

SECONDS_PER_DAY = 86400.0

# Checked in this order; the first kind with a match wins.
EVENT_PRIORITY = ("earnings", "splits", "dividends")


def tolerance_days(range_label: str) -> int:
    """5 days for the daily 1Y/2Y ranges, 10 for the weekly ones."""
    return range_spec(range_label).tolerance_days


def find_nearest_event(
    event_map: Optional[Mapping[int, R]], target_date: datetime, max_days: float
) -> Optional[tuple[datetime, R]]:
    """Return ``(event_date, record)`` for the first event within ``max_days``.

    Events are visited in ascending timestamp order and the first one inside
    the window is returned, which is the earliest qualifying event rather
    than the closest one.  Returns None when nothing qualifies.
    """
    if not event_map:
        return None
    keyed = []
    for key in event_map:
        try:
            keyed.append((float(key), key))
        except (TypeError, ValueError):
            continue

    target = target_date.timestamp()
    for ts, key in sorted(keyed, key=lambda pair: pair[0]):
        if abs(target - ts) / SECONDS_PER_DAY <= max_days:
            return datetime.fromtimestamp(ts, tz=timezone.utc), event_map[key]
    return None


def match_event(
    events: Optional[EventMaps], target_date: datetime, max_days: float
) -> Optional[MatchedEvent]:
    """Find the highest-priority event kind with an entry near ``target_date``."""
    if events is None:
        return None
    for kind in EVENT_PRIORITY:
        try:
            found = find_nearest_event(getattr(events, kind), target_date, max_days)
        except Exception as exc:
            log.warning("event_lookup_failed kind=%s err=%s", kind, exc.__class__.__name__)
            continue
        if found is not None:
            date, record = found
            return MatchedEvent(kind=kind, date=date, record=record)
    return None
