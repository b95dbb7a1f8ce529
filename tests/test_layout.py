from datetime import datetime, timezone
from itertools import combinations

from catalyst_chart.layout import DEFAULT_GEOMETRY, LabelGeometry, layout_labels, rects_overlap
from catalyst_chart.models import Catalyst, ChartArea

AREA = ChartArea(left=0.0, top=0.0, right=1000.0, bottom=600.0)
DATE = datetime(2024, 1, 2, tzinfo=timezone.utc)


def _catalysts(indices):
    return [Catalyst(index=i, date=DATE, close=100.0, pct_change=5.0) for i in indices]


def test_close_anchors_get_non_overlapping_labels():
    catalysts = _catalysts([10, 11])

    placements = layout_labels(
        catalysts,
        lambda i: 400.0 + (i - 10) * 5.0,
        lambda v: 450.0,
        AREA,
    )

    assert len(placements) == 2
    for a, b in combinations(placements, 2):
        assert not rects_overlap(a, b)
    assert placements[0].y == 6.0
    assert placements[1].y == 6.0 + 46.0 + 6.0
    assert placements[0].anchor_x == 400.0
    assert placements[1].anchor_x == 405.0


def test_every_catalyst_is_placed_even_past_the_tier_limit():
    catalysts = _catalysts(range(8))

    placements = layout_labels(catalysts, lambda i: 500.0, lambda v: 550.0, AREA)

    assert len(placements) == 8
    assert [p.catalyst.index for p in placements] == list(range(8))
    tiers = [DEFAULT_GEOMETRY.tier_y(AREA, k) for k in range(6)]
    assert [p.y for p in placements[:6]] == tiers
    # out of tiers: forced onto the top row
    assert placements[6].y == tiers[0]
    assert placements[7].y == tiers[0]


def test_labels_are_clamped_inside_the_chart():
    catalysts = _catalysts([0, 99])
    x = {0: 5.0, 99: 995.0}

    placements = layout_labels(catalysts, x.get, lambda v: 500.0, AREA)

    assert placements[0].x == AREA.left
    assert placements[1].x == AREA.right - DEFAULT_GEOMETRY.width
    # far apart horizontally: both fit on the top tier
    assert placements[0].y == placements[1].y == 6.0


def test_overlap_accepted_when_lower_tiers_would_cover_the_anchor():
    catalysts = [
        Catalyst(index=5, date=DATE, close=10.0, pct_change=5.0),
        Catalyst(index=6, date=DATE, close=90.0, pct_change=5.0),
    ]
    y = {10.0: 500.0, 90.0: 100.0}

    # tier 1 would end at 104, inside the 15px clearance above y=100
    placements = layout_labels(catalysts, lambda i: 500.0, y.get, AREA)

    assert placements[0].y == 6.0
    assert placements[1].y == 6.0
    assert rects_overlap(placements[0], placements[1])


def test_anchor_too_close_to_top_is_forced_to_tier_zero():
    catalysts = _catalysts([5])
    placements = layout_labels(catalysts, lambda i: 500.0, lambda v: 40.0, AREA)
    assert placements[0].y == 6.0


def test_earlier_catalysts_take_higher_tiers():
    # the right-hand catalyst comes first in the input and keeps tier 0
    catalysts = _catalysts([30, 10])
    x = {30: 510.0, 10: 500.0}

    placements = layout_labels(catalysts, x.get, lambda v: 500.0, AREA)

    assert placements[0].catalyst.index == 30
    assert placements[0].y == 6.0
    assert placements[1].y > placements[0].y


def test_custom_geometry():
    geometry = LabelGeometry(width=100.0, height=20.0, v_gap=4.0, margin=0.0, tiers=2)
    catalysts = _catalysts([1, 2, 3])

    placements = layout_labels(
        catalysts, lambda i: 300.0, lambda v: 500.0, AREA, geometry
    )

    assert [p.y for p in placements] == [0.0, 24.0, 0.0]
    assert all(p.width == 100.0 and p.height == 20.0 for p in placements)
