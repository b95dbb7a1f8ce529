"""Upcoming earnings window estimate.

Most US companies report quarterly results in four windows: late January or
February (Q4), late April or May (Q1), late July or August (Q2) and late
October or November (Q3).  Without a calendar feed the next report is
estimated as the 20th of the next of February, May, August or November, and
shown as a 15-day window ending on that date.

Example usage::

    from catalyst_chart.earnings import upcoming_earnings
    window = upcoming_earnings()
    if window:
        print(window.detail, window.countdown)

"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

__all__ = ["UpcomingEarnings", "estimate_next_earnings", "upcoming_earnings"]

REPORT_MONTHS = (2, 5, 8, 11)
REPORT_DAY = 20
WINDOW_DAYS = 15
# Windows further out than this are not shown.
MAX_LEAD_DAYS = 120

_QUARTER_BY_MONTH = {2: "Q4", 5: "Q1", 8: "Q2", 11: "Q3"}


@dataclass(frozen=True)
class UpcomingEarnings:
    quarter: str
    window_start: datetime
    report_date: datetime
    days_until: int

    @property
    def detail(self) -> str:
        start = f"{self.window_start:%b} {self.window_start.day}"
        end = f"{self.report_date:%b} {self.report_date.day}"
        return f"{self.quarter} Earnings Window: {start} - {end}"

    @property
    def countdown(self) -> str:
        if self.days_until <= 0:
            return "Now"
        if self.days_until == 1:
            return "Tomorrow"
        return f"~{self.days_until} days"


def estimate_next_earnings(now: Optional[datetime] = None) -> datetime:
    """Return the next estimated report date strictly after ``now``."""
    now = now or datetime.now(timezone.utc)
    for month in REPORT_MONTHS:
        candidate = datetime(now.year, month, REPORT_DAY, tzinfo=now.tzinfo)
        if candidate > now:
            return candidate
    return datetime(now.year + 1, REPORT_MONTHS[0], REPORT_DAY, tzinfo=now.tzinfo)


def upcoming_earnings(now: Optional[datetime] = None) -> Optional[UpcomingEarnings]:
    """Describe the next earnings window, or None when it is too far out."""
    now = now or datetime.now(timezone.utc)
    report = estimate_next_earnings(now)
    days = math.ceil((report - now).total_seconds() / 86400.0)
    if days > MAX_LEAD_DAYS:
        return None
    return UpcomingEarnings(
        quarter=_QUARTER_BY_MONTH[report.month],
        window_start=report - timedelta(days=WINDOW_DAYS),
        report_date=report,
        days_until=days,
    )
