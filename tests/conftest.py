"""Shared palette fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from config import NUM_FULLBRIGHT, PALETTE_COLORS
from pngn_palette import Palette


def make_grayscale_palette() -> Palette:
    """(i, i, i) below the fullbrights, distinct non-gray colors above."""
    lit = PALETTE_COLORS - NUM_FULLBRIGHT
    colors = [(i, i, i) for i in range(lit)]
    colors += [(255, k, 0) for k in range(NUM_FULLBRIGHT)]
    return Palette(colors)


def make_random_palette(seed: int = 1234) -> Palette:
    """256 distinct random colors."""
    rng = np.random.default_rng(seed)
    packed = rng.choice(1 << 24, size=PALETTE_COLORS, replace=False)
    return Palette(np.stack([(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF], axis=1))


@pytest.fixture
def grayscale_palette() -> Palette:
    return make_grayscale_palette()


@pytest.fixture
def random_palette() -> Palette:
    return make_random_palette()
