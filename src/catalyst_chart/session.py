"""Chart generation session.

A :class:`ChartSession` runs the generate pipeline (detect -> label ->
snapshot) and keeps the latest immutable :class:`ChartSnapshot`.  Starting a
new generation cancels one still in flight, so a slow request never
overwrites a newer chart.  Layout is recomputed from the snapshot on every
resize/zoom/pan; :class:`RelayoutScheduler` coalesces bursts of those
triggers into one deferred call on the event loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import Settings, get_settings
from .detector import detect_catalysts
from .labels import NewsLookup, synthesize_labels
from .layout import LabelGeometry, layout_labels
from .logging_utils import get_logger
from .metrics import ChartMetrics, calculate_metrics
from .models import Catalyst, ChartArea, EventMaps, LabelPlacement, PricePoint
from .news import GoogleNewsLookup
from .series import ChartData, ChartDataError, moving_average
from .viewport import (
    Viewport,
    autoscale_price_range,
    index_scale,
    price_scale,
    visible_placements,
)

log = get_logger("session")

# Below this many sessions a chart is not drawn at all.
MIN_CHART_POINTS = 5


def timeline_order(catalysts: Sequence[Catalyst]) -> List[Catalyst]:
    """Catalysts newest first, as listed beside the chart."""
    return sorted(catalysts, key=lambda c: c.index, reverse=True)


@dataclass(frozen=True)
class ChartSnapshot:
    """Result of one generate call.

    Points and catalysts are frozen dataclasses; ``events`` and ``meta`` are
    read-only mapping views.
    """

    ticker: str
    range_label: str
    series: Tuple[PricePoint, ...]
    events: EventMaps
    metrics: ChartMetrics
    catalysts: Tuple[Catalyst, ...]
    moving_average: Tuple[float, ...]
    meta: Mapping[str, Any] = field(default_factory=dict)

    def layout(
        self,
        area: ChartArea,
        viewport: Optional[Viewport] = None,
        geometry: Optional[LabelGeometry] = None,
    ) -> List[LabelPlacement]:
        """Place every catalyst for ``viewport`` and keep the visible ones."""
        full = Viewport.full(len(self.series))
        vp = viewport or full
        zoomed = vp.is_zoomed(len(self.series))
        low, high = autoscale_price_range(self.series, vp if zoomed else None)
        placements = layout_labels(
            self.catalysts,
            index_scale(vp, area),
            price_scale(low, high, area),
            area,
            geometry,
        )
        return visible_placements(placements, vp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "range": self.range_label,
            "points": len(self.series),
            "metrics": self.metrics.to_dict(),
            "catalysts": [c.to_dict() for c in self.catalysts],
        }


class ChartSession:
    """Owns the current chart for one viewer."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.snapshot: Optional[ChartSnapshot] = None
        self.catalysts_visible = True
        self._task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    async def generate(
        self,
        ticker: str,
        range_label: str,
        data: ChartData,
        *,
        news_lookup: Optional[NewsLookup] = None,
    ) -> ChartSnapshot:
        """Build a snapshot for ``data``, superseding any generation in flight.

        Raises
        ------
        ChartDataError
            When the series is too short to chart.
        asyncio.CancelledError
            When a newer ``generate`` call superseded this one.
        """
        if self.busy:
            log.info("chart_generation_superseded ticker=%s", ticker)
            self._task.cancel()  # type: ignore[union-attr]

        task = asyncio.create_task(
            self._build(ticker.strip().upper(), range_label, data, news_lookup)
        )
        self._task = task
        snapshot = await task
        if self._task is task:
            self.snapshot = snapshot
            self.catalysts_visible = True
        return snapshot

    async def _build(
        self,
        ticker: str,
        range_label: str,
        data: ChartData,
        news_lookup: Optional[NewsLookup],
    ) -> ChartSnapshot:
        s = self.settings
        series = list(data.series)
        if len(series) < MIN_CHART_POINTS:
            raise ChartDataError(f'Insufficient data for "{ticker}".')

        metrics = calculate_metrics(series, data.meta, range_label, ticker)
        catalysts = detect_catalysts(series, s)

        if news_lookup is None and s.feature_news_lookup and catalysts:
            async with GoogleNewsLookup(metrics.company_name, settings=s) as lookup:
                catalysts = await synthesize_labels(
                    catalysts,
                    data.events,
                    series,
                    ticker=ticker,
                    range_label=range_label,
                    news_lookup=lookup,
                    settings=s,
                )
        else:
            catalysts = await synthesize_labels(
                catalysts,
                data.events,
                series,
                ticker=ticker,
                range_label=range_label,
                news_lookup=news_lookup,
                settings=s,
            )

        log.info(
            "chart_generated ticker=%s range=%s points=%d catalysts=%d",
            ticker,
            range_label,
            len(series),
            len(catalysts),
        )
        return ChartSnapshot(
            ticker=ticker,
            range_label=range_label,
            series=tuple(series),
            events=data.events.read_only(),
            metrics=metrics,
            catalysts=tuple(catalysts),
            moving_average=tuple(moving_average(series, s.ma_period)),
            meta=MappingProxyType(dict(data.meta)),
        )

    def toggle_catalysts(self) -> bool:
        self.catalysts_visible = not self.catalysts_visible
        return self.catalysts_visible

    def relayout(
        self,
        area: ChartArea,
        viewport: Optional[Viewport] = None,
        geometry: Optional[LabelGeometry] = None,
    ) -> List[LabelPlacement]:
        """Placements to draw right now (empty when hidden or nothing generated)."""
        if self.snapshot is None or not self.catalysts_visible:
            return []
        return self.snapshot.layout(area, viewport, geometry)


class RelayoutScheduler:
    """Run ``callback`` once after a burst of resize/zoom/pan triggers.

    Each trigger replaces the pending call, so only the last one in a burst
    runs, on a later turn of the event loop than the event that caused it.
    """

    def __init__(self, callback: Callable[[], Any]) -> None:
        self._callback = callback
        self._handle: Optional[asyncio.Handle] = None
        self.runs = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self._handle = asyncio.get_running_loop().call_soon(self._run)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _run(self) -> None:
        self._handle = None
        self.runs += 1
        try:
            self._callback()
        except Exception:
            log.exception("relayout_failed")
