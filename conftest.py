"""
Root conftest.py: isolates tests from WEFT_* environment overrides.
"""
from __future__ import annotations

import os

import pytest


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_weft_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop WEFT_* variables so defaults apply unless a test sets them."""
    for key in list(os.environ):
        if key.startswith("WEFT_"):
            monkeypatch.delenv(key, raising=False)
