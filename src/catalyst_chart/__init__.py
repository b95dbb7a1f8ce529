"""Catalyst chart engine.

This package detects large price moves in a historical series, explains
them with earnings, split, dividend or news events (falling back to
heuristic labels), and lays out non-overlapping chart labels for them.
Fetching data and drawing the chart are left to the caller.
"""

__all__: list[str] = []
