#!/usr/bin/env python3
"""
🐧 PNGN Colormap Generator - Colormap Module
============================================
Copyright (c) 2025 PNGN-Tec LLC

Lighting Colormap Generation
============================
Builds the 64 x 256 lighting table used by palette-based renderers in place
of per-pixel color blending. Each cell holds the palette index of the
closest match to a dimmed copy of the original color.

Darkening Formula
=================
For light level y (0 = brightest, 63 = darkest) and channel value v:

    dimmed = (v * (63 - y) + 16) >> 5

clamped to 0-255. This is v * (63 - y) / 32 rounded to nearest, so level 0
scales by 63/32 before clamping. The boost at full light is intentional
and kept as is.

Fullbright Colors
=================
The top NUM_FULLBRIGHT palette entries (224-255 by default) are never
dimmed: their cell is their own index at every light level, and no match
is performed for them.

Technical Implementation
========================
- One light level row at a time, vectorized with numpy
- Repeated dimmed colors within a row are matched once (np.unique)
- Optional ThreadPoolExecutor over rows; each row is built into its own
  array and written exactly once, so output is identical to the serial path

Module Interface
================
- dim_channel() / dim_color(): the darkening formula
- ColormapGenerator: configurable generator with statistics
- generate(): build a colormap from a palette
"""

import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Sequence, Union

import numpy as np

from config import (
    RGBColor,
    PALETTE_COLORS, NUM_LEVELS, NUM_FULLBRIGHT,
    DIM_SHIFT, DIM_BIAS, CHANNEL_MAX,
)
from pngn_match import ColorMatcher
from pngn_palette import Palette, Colormap, as_palette

# Configure logging
logger = logging.getLogger('pngn_colormap')

PaletteLike = Union[Palette, bytes, Sequence[RGBColor]]


def _check_level(level: int) -> int:
    if not 0 <= level < NUM_LEVELS:
        raise ValueError(f"Light level must be between 0 and {NUM_LEVELS - 1}, got {level}")
    return level


def dim_channel(value: int, level: int) -> int:
    """
    Darken one channel value for a light level.

    Examples:
        >>> dim_channel(200, 0)
        255
        >>> dim_channel(200, 32)
        194
        >>> dim_channel(200, 63)
        0
    """
    scaled = (int(value) * (NUM_LEVELS - 1 - _check_level(level)) + DIM_BIAS) >> DIM_SHIFT
    return max(0, min(scaled, CHANNEL_MAX))


def dim_color(rgb: Sequence[int], level: int) -> RGBColor:
    """Darken an RGB triple for a light level."""
    r, g, b = (dim_channel(channel, level) for channel in rgb)
    return (r, g, b)


def dim_colors(colors: np.ndarray, level: int) -> np.ndarray:
    """Vectorized dim_color over an (N, 3) array. Returns int32."""
    scale = NUM_LEVELS - 1 - _check_level(level)
    scaled = (np.asarray(colors, dtype=np.int32) * scale + DIM_BIAS) >> DIM_SHIFT
    return np.clip(scaled, 0, CHANNEL_MAX)


class ColormapGenerator:
    """
    Lighting colormap generator.

    Stateless apart from statistics: generate() is a pure function of the
    palette, the fullbright count being fixed at construction.
    """

    def __init__(self,
                 num_fullbright: int = NUM_FULLBRIGHT,
                 max_workers: Optional[int] = None):
        """
        Initialize the generator.

        Args:
            num_fullbright: Top palette entries left undimmed (0-256)
            max_workers: Worker threads for rows (None or 1 = serial)
        """
        if not 0 <= num_fullbright <= PALETTE_COLORS:
            raise ValueError(f"Fullbright count must be between 0 and {PALETTE_COLORS}")
        if max_workers is not None and max_workers <= 0:
            raise ValueError("Max workers must be positive")

        self.num_fullbright = num_fullbright
        self.max_workers = max_workers or 1

        self._stats_lock = threading.Lock()

        # Statistics
        self.stats = {
            'colormaps_generated': 0,
            'rows_generated': 0,
            'unique_targets': 0,
            'total_generate_time_ms': 0.0,
        }

        logger.info(f"ColormapGenerator initialized: fullbrights={num_fullbright}, "
                    f"workers={self.max_workers}")

    @property
    def first_fullbright(self) -> int:
        """Lowest palette index exempt from lighting"""
        return PALETTE_COLORS - self.num_fullbright

    def generate(self, palette: PaletteLike) -> Colormap:
        """
        Build the full 64 x 256 colormap.

        Args:
            palette: Palette, 768-byte lump or 256 RGB triples

        Returns:
            Fully populated Colormap
        """
        start = time.perf_counter()
        palette = as_palette(palette)
        matcher = ColorMatcher(palette, cache_size=1, enable_cache=False)

        table = np.empty((NUM_LEVELS, PALETTE_COLORS), dtype=np.uint8)
        levels = range(NUM_LEVELS)

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix="ColormapGenerator") as executor:
                rows = list(executor.map(lambda level: self._build_row(matcher, level), levels))
        else:
            rows = [self._build_row(matcher, level) for level in levels]

        for level, row in enumerate(rows):
            table[level] = row

        colormap = Colormap(table)

        elapsed_ms = (time.perf_counter() - start) * 1000
        with self._stats_lock:
            self.stats['colormaps_generated'] += 1
            self.stats['total_generate_time_ms'] += elapsed_ms

        logger.info(f"Generated {NUM_LEVELS}x{PALETTE_COLORS} colormap in {elapsed_ms:.1f}ms")
        return colormap

    def generate_row(self, palette: PaletteLike, level: int) -> np.ndarray:
        """
        Build the row of one light level.

        Returns:
            (256,) uint8 array of palette indices
        """
        matcher = ColorMatcher(palette, cache_size=1, enable_cache=False)
        return self._build_row(matcher, _check_level(level))

    def _build_row(self, matcher: ColorMatcher, level: int) -> np.ndarray:
        row = np.arange(PALETTE_COLORS, dtype=np.uint8)

        lit = self.first_fullbright
        if lit:
            dimmed = dim_colors(matcher.palette.colors[:lit], level)
            unique, inverse = np.unique(dimmed, axis=0, return_inverse=True)
            row[:lit] = matcher.match_many(unique)[inverse.reshape(-1)]

            with self._stats_lock:
                self.stats['unique_targets'] += len(unique)
            logger.debug(f"Level {level}: {len(unique)} distinct dimmed colors")

        with self._stats_lock:
            self.stats['rows_generated'] += 1
        return row

    def get_stats(self) -> Dict[str, Union[int, float]]:
        """
        Get generator statistics.

        Returns:
            Dictionary of counters plus average generation time
        """
        with self._stats_lock:
            stats = self.stats.copy()
        if stats['colormaps_generated'] > 0:
            stats['avg_generate_time_ms'] = (
                stats['total_generate_time_ms'] / stats['colormaps_generated']
            )
        else:
            stats['avg_generate_time_ms'] = 0.0
        return stats


def generate(palette: PaletteLike,
             num_fullbright: int = NUM_FULLBRIGHT,
             max_workers: Optional[int] = None) -> Colormap:
    """
    Build a lighting colormap from a palette.

    Args:
        palette: Palette, 768-byte lump or 256 RGB triples
        num_fullbright: Top palette entries left undimmed
        max_workers: Worker threads for rows (None or 1 = serial)

    Returns:
        Fully populated 64 x 256 Colormap
    """
    return ColormapGenerator(num_fullbright=num_fullbright, max_workers=max_workers).generate(palette)


# For compatibility with existing code
generate_colormap = generate
