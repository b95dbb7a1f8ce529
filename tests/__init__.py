"""Tests for the catalyst chart engine.

``src`` is put on ``sys.path`` so the suite runs from a plain checkout
without installing the package first.
"""

import sys
from pathlib import Path

src_path = Path(__file__).resolve().parents[1] / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))
