import json

import pytest

import catalyst_chart.cli as cli
from tests.fixtures.price_series import chart_payload, spiked_closes


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **k: None)


def _write_payload(tmp_path, payload):
    path = tmp_path / "chart.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_cli_writes_labelled_chart(tmp_path):
    closes = spiked_closes(60, {10: 130.0, 25: 80.0, 40: 112.0})
    src = _write_payload(tmp_path, chart_payload(closes))
    out = tmp_path / "out.json"

    rc = cli.main([src, "--ticker", "test", "--range", "1Y", "--no-news", "--out", str(out)])

    assert rc == 0
    result = json.loads(out.read_text(encoding="utf-8"))
    assert result["ticker"] == "TEST"
    assert result["points"] == 60
    assert [c["index"] for c in result["catalysts"]] == [9, 26, 39]
    assert all(c["title"] for c in result["catalysts"])
    assert result["timeline"] == [39, 26, 9]
    assert len(result["placements"]) == 3
    assert "upcoming_earnings" in result
    assert result["metrics_display"]["Current Price"] == "$100.00"
    assert result["metrics_display"]["Avg Volume"] == "1.0K"


def test_cli_visible_window(tmp_path):
    closes = spiked_closes(60, {10: 130.0, 25: 80.0, 40: 112.0})
    src = _write_payload(tmp_path, chart_payload(closes))
    out = tmp_path / "out.json"

    rc = cli.main(
        [src, "--ticker", "TEST", "--no-news", "--visible", "20:45", "--out", str(out)]
    )

    assert rc == 0
    result = json.loads(out.read_text(encoding="utf-8"))
    assert [p["index"] for p in result["placements"]] == [26, 39]


def test_cli_missing_payload(tmp_path):
    assert cli.main([str(tmp_path / "nope.json"), "--ticker", "TEST", "--no-news"]) == 1


def test_cli_unknown_symbol(tmp_path):
    src = _write_payload(tmp_path, {"chart": {"result": None, "error": None}})
    assert cli.main([src, "--ticker", "ZZZZ", "--no-news"]) == 1


def test_cli_rejects_bad_visible_window(tmp_path):
    with pytest.raises(SystemExit):
        cli.main([str(tmp_path / "x.json"), "--ticker", "TEST", "--visible", "abc"])
