import math
from itertools import combinations

from catalyst_chart.config import Settings
from catalyst_chart.detector import detect_catalysts, min_spacing, two_session_returns
from tests.fixtures.price_series import make_series, spiked_closes


def test_short_series_has_no_catalysts():
    series = make_series([100, 100, 150, 100, 100, 60, 100, 100, 100])
    assert len(series) == 9
    assert detect_catalysts(series) == []


def test_three_spikes_selected_in_chronological_order():
    # Spikes of decreasing magnitude; each shows up first on the session
    # before it (close before -> spike close).
    series = make_series(spiked_closes(30, {5: 120.0, 15: 115.0, 25: 110.0}))

    catalysts = detect_catalysts(series)

    assert [c.index for c in catalysts] == [4, 14, 24]
    assert [round(c.pct_change, 6) for c in catalysts] == [20.0, 15.0, 10.0]
    assert all(c.title == "" for c in catalysts)
    assert catalysts[0].date == series[4].date
    assert catalysts[0].close == series[4].close


def test_two_session_return_boundaries():
    series = make_series([100, 110, 121])
    returns = two_session_returns(series)
    assert returns[0] == 0.0
    assert math.isclose(returns[1], 21.0)
    # last session compares its own close with the one before it
    assert math.isclose(returns[2], 10.0)


def test_moves_at_or_below_threshold_are_ignored():
    series = make_series(spiked_closes(20, {5: 101.5, 12: 102.5}))
    catalysts = detect_catalysts(series)
    assert [c.index for c in catalysts] == [11]


def test_largest_moves_win_the_capped_slots():
    spikes = {5 + 7 * k: 100.0 * (1 + 0.03 * (k + 1)) for k in range(8)}
    series = make_series(spiked_closes(60, spikes))

    catalysts = detect_catalysts(series)

    assert len(catalysts) == 5
    assert [c.index for c in catalysts] == [25, 32, 39, 46, 53]


def test_selection_respects_min_spacing():
    closes = [100 + 12 * math.sin(i * 0.9) + 6 * math.cos(i * 2.3) for i in range(120)]
    series = make_series(closes)
    spacing = min_spacing(len(series))

    catalysts = detect_catalysts(series)

    assert 0 < len(catalysts) <= 5
    assert [c.index for c in catalysts] == sorted(c.index for c in catalysts)
    for a, b in combinations(catalysts, 2):
        assert abs(a.index - b.index) >= spacing


def test_min_spacing_scales_with_length():
    assert min_spacing(30) == 4
    assert min_spacing(100) == 4
    assert min_spacing(260) == 10
    assert min_spacing(1300) == 52


def test_settings_override_cap_and_threshold():
    series = make_series(spiked_closes(30, {5: 120.0, 15: 115.0, 25: 110.0}))
    settings = Settings(max_catalysts=2, move_threshold_pct=12.0)

    catalysts = detect_catalysts(series, settings)

    assert [c.index for c in catalysts] == [4, 14]
