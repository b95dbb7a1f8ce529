# -*- coding: utf-8 -*-
"""Command line entry point: run the catalyst pipeline over a saved chart payload."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Load .env early so config is available to subsequent imports.
from dotenv import load_dotenv

_env_file = os.getenv("DOTENV_FILE")
if _env_file:
    load_dotenv(_env_file)
else:
    load_dotenv()

from catalyst_chart.config import RANGES, DEFAULT_RANGE, get_settings  # noqa: E402
from catalyst_chart.earnings import upcoming_earnings  # noqa: E402
from catalyst_chart.labels import NewsLookup  # noqa: E402
from catalyst_chart.logging_utils import get_logger, setup_logging  # noqa: E402
from catalyst_chart.models import ChartArea  # noqa: E402
from catalyst_chart.series import ChartDataError, parse_chart_payload  # noqa: E402
from catalyst_chart.session import ChartSession, timeline_order  # noqa: E402
from catalyst_chart.viewport import Viewport  # noqa: E402

log = get_logger("cli")


async def _no_news(_ticker: str, _date: Any) -> None:
    return None


def _parse_visible(raw: str) -> Optional[Viewport]:
    if not raw:
        return None
    try:
        lo, hi = raw.split(":", 1)
        return Viewport(float(lo), float(hi))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected MIN:MAX, got {raw!r}")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Detect and label price catalysts")
    p.add_argument("payload", help="Path to a Yahoo v8 chart JSON document")
    p.add_argument("--ticker", required=True, help="Ticker symbol, e.g. AAPL")
    p.add_argument(
        "--range",
        dest="range_label",
        default=DEFAULT_RANGE,
        choices=sorted(RANGES),
        help="Chart range (sets the event tolerance window)",
    )
    p.add_argument("--no-news", action="store_true", help="Skip headline lookups")
    p.add_argument("--width", type=float, default=1200.0, help="Chart width in px")
    p.add_argument("--height", type=float, default=600.0, help="Chart height in px")
    p.add_argument(
        "--visible",
        type=_parse_visible,
        default=None,
        help="Visible index window MIN:MAX (zoom/pan state)",
    )
    p.add_argument("--out", default="", help="Write JSON here instead of stdout")
    return p.parse_args(argv)


async def _run(args: argparse.Namespace) -> Dict[str, Any]:
    payload = json.loads(Path(args.payload).read_text(encoding="utf-8"))
    data = parse_chart_payload(payload, args.ticker)

    news: Optional[NewsLookup] = _no_news if args.no_news else None
    session = ChartSession(get_settings())
    snapshot = await session.generate(args.ticker, args.range_label, data, news_lookup=news)

    area = ChartArea(left=0.0, top=0.0, right=args.width, bottom=args.height)
    placements = session.relayout(area, args.visible)

    out = snapshot.to_dict()
    out["metrics_display"] = snapshot.metrics.display()
    out["placements"] = [p.to_dict() for p in placements]
    out["timeline"] = [c.index for c in timeline_order(snapshot.catalysts)]
    window = upcoming_earnings()
    out["upcoming_earnings"] = (
        {"detail": window.detail, "countdown": window.countdown} if window else None
    )
    return out


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging()
    try:
        result = asyncio.run(_run(args))
    except (OSError, json.JSONDecodeError) as exc:
        log.error("payload_read_failed path=%s err=%s", args.payload, exc)
        return 1
    except ChartDataError as exc:
        log.error("chart_data_error ticker=%s err=%s", args.ticker, exc)
        return 1

    text = json.dumps(result, indent=2, default=str)
    if args.out:
        Path(args.out).write_text(text + "\n", encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
