"""Pytest configuration shared by the whole tree."""
import os
import sys

# Ensure project root (for `tests.helpers`) and src/ on sys.path for absolute imports
ROOT = os.path.dirname(os.path.abspath(__file__))
for p in (os.path.join(ROOT, "src"), ROOT):
    if p not in sys.path:
        sys.path.insert(0, p)
