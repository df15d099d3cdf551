"""
Pytest configuration.

Puts src/ on the import path so the tests run from a plain checkout
without ``pip install -e .``.
"""

import sys
from pathlib import Path

src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))
