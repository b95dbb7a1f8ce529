"""Synthetic price series and chart payloads for tests."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from catalyst_chart.models import PricePoint

DAY = 86400
# 2024-01-02 00:00:00 UTC
START_TS = int(datetime(2024, 1, 2, tzinfo=timezone.utc).timestamp())


def make_series(
    closes: Sequence[float], start_ts: int = START_TS, step: int = DAY
) -> List[PricePoint]:
    """One point per close, ``step`` seconds apart, with a 1% high/low band."""
    return [
        PricePoint.from_timestamp(
            start_ts + i * step,
            c,
            open=c,
            high=c * 1.01,
            low=c * 0.99,
            volume=1_000_000 + i,
        )
        for i, c in enumerate(closes)
    ]


def spiked_closes(
    length: int, spikes: Dict[int, float], base: float = 100.0
) -> List[float]:
    """Flat series at ``base`` with one-session spikes to ``spikes[index]``."""
    closes = [base] * length
    for idx, value in spikes.items():
        closes[idx] = value
    return closes


def chart_payload(
    closes: Sequence[Optional[float]],
    start_ts: int = START_TS,
    step: int = DAY,
    events: Optional[dict] = None,
    meta: Optional[dict] = None,
) -> dict:
    """A minimal Yahoo v8 chart document."""
    timestamps = [start_ts + i * step for i in range(len(closes))]
    return {
        "chart": {
            "result": [
                {
                    "meta": meta or {"symbol": "TEST", "currency": "USD"},
                    "timestamp": timestamps,
                    "events": events or {},
                    "indicators": {
                        "quote": [
                            {
                                "open": list(closes),
                                "high": [c * 1.01 if c else None for c in closes],
                                "low": [c * 0.99 if c else None for c in closes],
                                "close": list(closes),
                                "volume": [1000] * len(closes),
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }
