from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from dateutil import parser as _dtparse


def _to_utc(value: Union[datetime, str, int, float]) -> datetime:
    """Coerce a datetime, ISO string or epoch seconds to an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    elif isinstance(value, str):
        dt = _dtparse.isoparse(value)
    else:
        raise TypeError(f"unsupported date value: {value!r}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _opt_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PricePoint:
    """One trading session.  ``close`` is always present; the rest may be None."""

    date: datetime
    timestamp: int
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: float
    volume: Optional[float] = None

    @classmethod
    def from_timestamp(
        cls,
        timestamp: int,
        close: float,
        *,
        open: Optional[float] = None,
        high: Optional[float] = None,
        low: Optional[float] = None,
        volume: Optional[float] = None,
    ) -> "PricePoint":
        ts = int(timestamp)
        return cls(
            date=datetime.fromtimestamp(ts, tz=timezone.utc),
            timestamp=ts,
            open=open,
            high=high,
            low=low,
            close=float(close),
            volume=volume,
        )

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any]) -> "PricePoint":
        """
        Build a point from a loose record.  Recognizes ``timestamp`` (epoch
        seconds) or ``date`` (datetime or ISO string) and case-insensitive
        OHLCV keys.
        """
        low_keys = {str(k).lower(): v for k, v in d.items()}
        ts_val = low_keys.get("timestamp")
        if ts_val is not None:
            dt = _to_utc(float(ts_val))
        else:
            date_val = low_keys.get("date")
            if date_val is None:
                raise TypeError("PricePoint requires 'timestamp' or 'date'")
            dt = _to_utc(date_val)
        close = _opt_float(low_keys.get("close"))
        if close is None:
            raise ValueError("PricePoint requires a numeric close")
        return cls(
            date=dt,
            timestamp=int(dt.timestamp()),
            open=_opt_float(low_keys.get("open")),
            high=_opt_float(low_keys.get("high")),
            low=_opt_float(low_keys.get("low")),
            close=close,
            volume=_opt_float(low_keys.get("volume")),
        )


@dataclass(frozen=True)
class EarningsEvent:
    eps_actual: Optional[float] = None
    eps_estimate: Optional[float] = None

    @property
    def has_eps(self) -> bool:
        return self.eps_actual is not None and self.eps_estimate is not None

    @property
    def beat(self) -> bool:
        # Missing figures count as a miss.
        if not self.has_eps:
            return False
        return self.eps_actual > self.eps_estimate  # type: ignore[operator]


@dataclass(frozen=True)
class SplitEvent:
    numerator: float
    denominator: float

    @property
    def ratio(self) -> str:
        return f"{_fmt_num(self.numerator)}:{_fmt_num(self.denominator)}"


@dataclass(frozen=True)
class DividendEvent:
    amount: float


EventRecord = Union[EarningsEvent, SplitEvent, DividendEvent]


def _fmt_num(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


@dataclass
class EventMaps:
    """External events keyed by epoch seconds, one mapping per kind."""

    earnings: Dict[int, EarningsEvent] = field(default_factory=dict)
    splits: Dict[int, SplitEvent] = field(default_factory=dict)
    dividends: Dict[int, DividendEvent] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.earnings) + len(self.splits) + len(self.dividends)

    def read_only(self) -> "EventMaps":
        """Copy whose mappings cannot be modified."""
        return EventMaps(
            earnings=MappingProxyType(dict(self.earnings)),  # type: ignore[arg-type]
            splits=MappingProxyType(dict(self.splits)),  # type: ignore[arg-type]
            dividends=MappingProxyType(dict(self.dividends)),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class MatchedEvent:
    """An event record paired with the kind and date it was keyed under."""

    kind: str
    date: datetime
    record: EventRecord


@dataclass(frozen=True)
class Catalyst:
    """
    A detected price-move session.  The detector fills index/date/close/
    pct_change; the label synthesizer returns copies with title/description/
    link filled in.
    """

    index: int
    date: datetime
    close: float
    pct_change: float
    title: str = ""
    description: str = ""
    link: str = ""

    @property
    def labelled(self) -> bool:
        return bool(self.title)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "date": self.date.isoformat(),
            "close": self.close,
            "pct_change": round(self.pct_change, 4),
            "title": self.title,
            "description": self.description,
            "link": self.link,
        }


@dataclass(frozen=True)
class ChartArea:
    """Pixel rectangle of the plotting area (y grows downward)."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class LabelPlacement:
    x: float
    y: float
    width: float
    height: float
    catalyst: Catalyst
    anchor_x: float
    anchor_y: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "width": self.width,
            "height": self.height,
            "bottom": round(self.bottom, 2),
            "anchor_x": round(self.anchor_x, 2),
            "anchor_y": round(self.anchor_y, 2),
            "index": self.catalyst.index,
        }
