"""Test configuration for module import paths."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    src_value = str(src_path)
    if src_value not in sys.path:
        sys.path.insert(0, src_value)


_ensure_src_on_path()

from market import CAT, DOG, LONE, RUNES, USDC, make_pool  # noqa: E402


@pytest.fixture
def coins():
    return [RUNES, USDC, DOG, CAT, LONE]


@pytest.fixture
def pools():
    """
    RUNES = $0.01 (100k RUNES / 1k USDC)
    DOG   = 0.01 RUNES (10k RUNES / 1M DOG)
    CAT   = 20 RUNES (20k RUNES / 1k CAT)
    """
    return [
        make_pool("runes-usdc", RUNES, USDC, 100_000 * 10**8, 1_000 * 10**6),
        make_pool("runes-dog", RUNES, DOG, 10_000 * 10**8, 1_000_000 * 10**5),
        make_pool("runes-cat", RUNES, CAT, 20_000 * 10**8, 1_000 * 10**8),
    ]
