"""Visible-window handling for zoomed or panned charts.

Layout always runs over the full dataset; the viewport only decides which
placements are shown.  The scale helpers turn a viewport and a chart area
into the ``x_for_index`` / ``y_for_value`` callables the layout engine uses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .models import ChartArea, LabelPlacement, PricePoint

# Headroom around the visible closes when the price axis is rescaled.
LOWER_PAD = 0.05
UPPER_PAD = 0.08


@dataclass(frozen=True)
class Viewport:
    """Visible data-index window; bounds may be fractional while panning."""

    min_index: float
    max_index: float

    @classmethod
    def full(cls, length: int) -> "Viewport":
        return cls(0.0, float(max(0, length - 1)))

    def contains(self, index: int) -> bool:
        # One session of slack on either side keeps edge labels from flickering.
        return self.min_index - 1 <= index <= self.max_index + 1

    def is_zoomed(self, length: int) -> bool:
        return self.min_index > 0.5 or self.max_index < length - 1.5

    def index_bounds(self, length: int) -> Tuple[int, int]:
        """Integer slice bounds of the visible sessions, clamped to the series."""
        lo = max(0, math.floor(self.min_index))
        hi = min(length - 1, math.ceil(self.max_index))
        return lo, hi


def visible_placements(
    placements: Sequence[LabelPlacement], viewport: Optional[Viewport]
) -> List[LabelPlacement]:
    if viewport is None:
        return list(placements)
    return [p for p in placements if viewport.contains(p.catalyst.index)]


def autoscale_price_range(
    series: Sequence[PricePoint], viewport: Optional[Viewport] = None
) -> Tuple[float, float]:
    """Price-axis bounds fitted to the visible closes, padded 5% below and 8% above."""
    if not series:
        return 0.0, 1.0
    if viewport is None:
        visible = series
    else:
        lo, hi = viewport.index_bounds(len(series))
        visible = series[lo : hi + 1] or series
    prices = [p.close for p in visible]
    low, high = min(prices), max(prices)
    span = (high - low) or 1.0
    return low - span * LOWER_PAD, high + span * UPPER_PAD


def index_scale(viewport: Viewport, area: ChartArea) -> Callable[[int], float]:
    """Linear index -> pixel-x mapping for ``viewport`` drawn inside ``area``."""
    span = (viewport.max_index - viewport.min_index) or 1.0

    def x_for_index(index: int) -> float:
        return area.left + (index - viewport.min_index) / span * area.width

    return x_for_index


def price_scale(low: float, high: float, area: ChartArea) -> Callable[[float], float]:
    """Linear price -> pixel-y mapping; higher prices sit nearer the top."""
    span = (high - low) or 1.0

    def y_for_value(value: float) -> float:
        return area.bottom - (value - low) / span * area.height

    return y_for_value
