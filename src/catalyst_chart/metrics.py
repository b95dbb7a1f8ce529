from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence

from .config import range_spec
from .formatting import format_large_number, format_percent, format_price, format_volume
from .models import PricePoint

# Sessions counted as "52-week" (one year of weekly bars).
TRAILING_WINDOW = 52


@dataclass(frozen=True)
class ChartMetrics:
    """Header numbers shown above the chart."""

    current_price: float
    period_return: float
    period_label: str
    ytd_return: Optional[float]
    ath: Optional[float]
    from_ath: Optional[float]
    high_52: Optional[float]
    low_52: Optional[float]
    avg_volume: Optional[float]
    market_cap: Optional[float]
    company_name: str
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def display(self) -> Dict[str, str]:
        """Formatted rows for the metrics panel; market cap only when known."""
        rows = {
            "Current Price": format_price(self.current_price),
            "Change": f"{format_percent(self.period_return)} ({self.period_label})",
            "YTD Return": format_percent(self.ytd_return),
            "All-Time High": format_price(self.ath),
            "From ATH": format_percent(self.from_ath),
            "52-Wk High": format_price(self.high_52),
            "52-Wk Low": format_price(self.low_52),
            "Avg Volume": format_volume(self.avg_volume),
        }
        if self.market_cap:
            rows["Market Cap"] = format_large_number(self.market_cap)
        return rows


def _pct(current: float, base: float) -> Optional[float]:
    if not base:
        return None
    return (current - base) / base * 100.0


def calculate_metrics(
    series: Sequence[PricePoint],
    meta: Optional[Mapping[str, Any]],
    range_label: str,
    ticker: str = "",
    *,
    now: Optional[datetime] = None,
) -> ChartMetrics:
    if not series:
        raise ValueError("calculate_metrics requires a non-empty series")
    meta = meta or {}
    now = now or datetime.now(timezone.utc)

    current = series[-1].close
    ytd_start = next((p for p in series if p.date.year == now.year), None)

    highs = [p.high for p in series if p.high]
    ath = max(highs) if highs else None
    trailing = series[-min(TRAILING_WINDOW, len(series)) :]
    t_highs = [p.high for p in trailing if p.high]
    t_lows = [p.low for p in trailing if p.low]
    volumes = [p.volume for p in series if p.volume]

    return ChartMetrics(
        current_price=current,
        period_return=_pct(current, series[0].close) or 0.0,
        period_label=range_spec(range_label).period_label,
        ytd_return=_pct(current, ytd_start.close) if ytd_start else None,
        ath=ath,
        from_ath=_pct(current, ath) if ath else None,
        high_52=max(t_highs) if t_highs else None,
        low_52=min(t_lows) if t_lows else None,
        avg_volume=sum(volumes) / len(volumes) if volumes else None,
        market_cap=meta.get("marketCap") or None,
        company_name=(
            meta.get("shortName") or meta.get("longName") or meta.get("symbol") or ticker
        ),
        currency=meta.get("currency") or "USD",
    )
