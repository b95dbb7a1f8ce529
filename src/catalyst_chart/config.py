import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


def _env_float_opt(name: str) -> Optional[float]:
    """
    Read an optional float from env. Returns None if unset, blank, or non-numeric.
    """
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if raw == "" or raw.lower() in {"none", "null"} or raw.startswith("#"):
        return None
    try:
        return float(raw)
    except Exception:
        return None


def _env_float(name: str, default: float) -> float:
    val = _env_float_opt(name)
    return default if val is None else val


def _env_int(name: str, default: int) -> int:
    val = _env_float_opt(name)
    if val is None:
        return default
    return int(val)


def _b(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in {
        "1",
        "true",
        "yes",
        "y",
        "on",
    }


@dataclass(frozen=True)
class RangeSpec:
    """Per-range settings for a chart request (``1Y``, ``2Y``, ``5Y``, ``MAX``)."""

    period_label: str
    tolerance_days: int


# The 1Y/2Y charts use daily bars and 5Y/MAX weekly ones, so the event
# tolerance widens with the sparser sampling.
RANGES: Dict[str, RangeSpec] = {
    "1Y": RangeSpec("1Y", 5),
    "2Y": RangeSpec("2Y", 5),
    "5Y": RangeSpec("5Y", 10),
    "MAX": RangeSpec("All-Time", 10),
}

DEFAULT_RANGE = "5Y"


def range_spec(range_label: str) -> RangeSpec:
    """Return the :class:`RangeSpec` for ``range_label``, falling back to 5Y."""
    return RANGES.get((range_label or "").upper(), RANGES[DEFAULT_RANGE])


@dataclass
class Settings:
    # --- Catalyst detection ---
    # Maximum number of labelled catalysts per chart.
    max_catalysts: int = _env_int("CATALYST_MAX", 5)
    # Series shorter than this yield no catalysts at all.
    min_series_points: int = _env_int("CATALYST_MIN_POINTS", 10)
    # Absolute two-session move (in percent) a session must exceed.
    move_threshold_pct: float = _env_float("CATALYST_MOVE_PCT", 2.0)
    # min_spacing = max(floor, len(series) // divisor)
    spacing_floor: int = _env_int("CATALYST_SPACING_FLOOR", 4)
    spacing_divisor: int = _env_int("CATALYST_SPACING_DIVISOR", 25)

    # Moving average overlay period (sessions).
    ma_period: int = _env_int("MA_PERIOD", 10)

    # --- News headline lookup ---
    # Disable to skip the network lookup entirely and go straight to the
    # heuristic labels.
    feature_news_lookup: bool = _b("FEATURE_NEWS_LOOKUP", True)
    # Per-lookup timeout.  Each catalyst gets its own budget.
    news_timeout_secs: float = _env_float("NEWS_TIMEOUT_SECS", 10.0)
    # RSS search endpoint; ``{query}`` is replaced by the encoded search text.
    news_feed_url: str = os.getenv(
        "NEWS_FEED_URL",
        "https://news.google.com/rss/search?q={query}&hl=en-US&gl=US&ceid=US:en",
    )
    # When no item mentions the ticker or company, use the first item anyway.
    news_accept_unmatched: bool = _b("NEWS_ACCEPT_UNMATCHED", True)
    news_user_agent: str = os.getenv(
        "NEWS_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    )

    # Misc
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_plain: bool = _b("LOG_PLAIN", False)

    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("DATA_DIR", "data")).resolve()
    )


SETTINGS = Settings()


def get_settings() -> Settings:
    return SETTINGS
