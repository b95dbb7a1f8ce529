"""Collision-avoiding placement of catalyst labels.

Labels are fixed-size boxes stacked in horizontal rows ("tiers") under the
top edge of the chart.  Catalysts are placed in input order, so earlier ones
get the higher tiers.  Each label is centred on its anchor's x, clamped into
the chart, and takes the first tier that neither overlaps a placed label nor
covers its own data point.  When no tier qualifies the label goes to the top
tier anyway; labels are never dropped.

This is a greedy pass, O(n * tiers), not an optimal packing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .logging_utils import get_logger
from .models import Catalyst, ChartArea, LabelPlacement

log = get_logger("layout")

PixelForIndex = Callable[[int], float]
PixelForValue = Callable[[float], float]


@dataclass(frozen=True)
class LabelGeometry:
    width: float = 240.0
    height: float = 46.0
    v_gap: float = 6.0
    h_gap: float = 8.0
    # offset of tier 0 below the chart top
    margin: float = 6.0
    tiers: int = 6
    # minimum distance between a label's bottom and its anchor
    anchor_clearance: float = 15.0

    def tier_y(self, area: ChartArea, tier: int) -> float:
        return area.top + self.margin + tier * (self.height + self.v_gap)


DEFAULT_GEOMETRY = LabelGeometry()


def collides(
    x: float, y: float, geometry: LabelGeometry, placed: LabelPlacement
) -> bool:
    """Overlap test against a placed label, padded horizontally by ``h_gap``.

    Vertically the boxes are compared as-is; adjacent tiers are already
    ``v_gap`` apart.
    """
    return not (
        x + geometry.width + geometry.h_gap < placed.x
        or x > placed.x + placed.width + geometry.h_gap
        or y + geometry.height < placed.y
        or y > placed.y + placed.height
    )


def rects_overlap(a: LabelPlacement, b: LabelPlacement) -> bool:
    """Strict rectangle intersection (touching edges do not count)."""
    return (
        a.x < b.right and b.x < a.right and a.y < b.bottom and b.y < a.bottom
    )


def layout_labels(
    catalysts: Sequence[Catalyst],
    x_for_index: PixelForIndex,
    y_for_value: PixelForValue,
    area: ChartArea,
    geometry: Optional[LabelGeometry] = None,
) -> List[LabelPlacement]:
    """Return one placement per catalyst, in input order."""
    g = geometry or DEFAULT_GEOMETRY
    placed: List[LabelPlacement] = []
    forced = 0

    for c in catalysts:
        anchor_x = float(x_for_index(c.index))
        anchor_y = float(y_for_value(c.close))
        label_x = max(area.left, min(anchor_x - g.width / 2, area.right - g.width))

        label_y: Optional[float] = None
        for tier in range(g.tiers):
            try_y = g.tier_y(area, tier)
            if any(collides(label_x, try_y, g, p) for p in placed):
                continue
            if try_y + g.height < anchor_y - g.anchor_clearance:
                label_y = try_y
                break

        if label_y is None:
            label_y = g.tier_y(area, 0)
            forced += 1

        placed.append(
            LabelPlacement(
                x=label_x,
                y=label_y,
                width=g.width,
                height=g.height,
                catalyst=c,
                anchor_x=anchor_x,
                anchor_y=anchor_y,
            )
        )

    if forced:
        log.debug("layout_forced_top_tier count=%d total=%d", forced, len(placed))
    return placed
