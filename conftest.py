"""Pytest configuration.

Adds src/ to sys.path so trade_journal is importable without installing.
"""

import sys
from pathlib import Path

_src = str(Path(__file__).resolve().parent / "src")
if _src not in sys.path:
    sys.path.insert(0, _src)
