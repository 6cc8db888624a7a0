#!/usr/bin/env python3
"""
🐧 PNGN Colormap Generator - Color Matching Module
==================================================
Copyright (c) 2025 PNGN-Tec LLC

Nearest Palette Color Search
============================
Quantizes a 24-bit RGB target to the index of the closest entry of a fixed
256-color palette, measured by squared Euclidean distance in RGB space.

Matching Rules
==============
- Candidates are scanned in ascending index order
- Distances use signed arithmetic, the largest being 3 * 255^2 = 195075
- On equal distance the lowest index wins; np.argmin returns the first
  minimum, which is exactly this rule
- No luminosity weighting is applied

Technical Implementation
========================
- Palette held as a signed int32 (256, 3) array
- Scalar searches go through a thread-safe LRU cache keyed by the target
- Batch searches build an (N, 256) distance table one channel at a time

Module Interface
================
- ColorMatcher: matcher bound to one palette with result caching
- match(): single search without a persistent matcher

Example Usage
=============
```python
from pngn_match import ColorMatcher

matcher = ColorMatcher(palette)
index = matcher.match((200, 100, 50))
indices = matcher.match_many([(0, 0, 0), (255, 255, 255)])
```
"""

import threading
import logging
import numbers
from collections import OrderedDict
from typing import Dict, Optional, Sequence, Union

import numpy as np

from config import RGBColor, PALETTE_CHANNELS, CHANNEL_MAX, get_cache_config
from pngn_palette import Palette, as_palette

# Configure logging
logger = logging.getLogger('pngn_match')


def _check_target(target: Sequence[int]) -> RGBColor:
    """Normalize a target color to a tuple of ints within 0-255."""
    if len(target) != PALETTE_CHANNELS:
        raise ValueError(f"Target color must have {PALETTE_CHANNELS} channels, got {len(target)}")

    if not all(isinstance(channel, numbers.Integral) and not isinstance(channel, bool) for channel in target):
        raise ValueError(f"Target color channels must be integers, got {tuple(target)}")

    r, g, b = (int(channel) for channel in target)
    if not (0 <= r <= CHANNEL_MAX and 0 <= g <= CHANNEL_MAX and 0 <= b <= CHANNEL_MAX):
        raise ValueError(f"Target color {(r, g, b)} has channels outside 0-{CHANNEL_MAX}")
    return (r, g, b)


class ColorMatcher:
    """
    Nearest-color matcher bound to a single palette.

    The palette is read-only for the matcher's lifetime, so cached results
    never go stale. Safe to share between threads.

    Attributes:
        stats: Dictionary containing search statistics
    """

    def __init__(self,
                 palette: Union[Palette, bytes, Sequence[RGBColor]],
                 cache_size: Optional[int] = None,
                 enable_cache: Optional[bool] = None):
        """
        Initialize the matcher.

        Args:
            palette: Palette to search (Palette, 768-byte lump or triples)
            cache_size: Maximum cached targets (uses config if None)
            enable_cache: Whether to cache scalar searches (uses config if None)
        """
        if cache_size is None or enable_cache is None:
            cache_config = get_cache_config()
            if cache_size is None:
                cache_size = cache_config.match_cache_size
            if enable_cache is None:
                enable_cache = cache_config.enable_caching

        if cache_size <= 0:
            raise ValueError("Match cache size must be positive")

        self._palette = as_palette(palette)
        self._colors = self._palette.colors.astype(np.int32)

        # Target cache with LRU eviction
        self._cache: 'OrderedDict[RGBColor, int]' = OrderedDict()
        self._cache_size = cache_size
        self._cache_enabled = enable_cache
        self._lock = threading.Lock()

        # Statistics
        self.stats = {
            'cache_hits': 0,
            'cache_misses': 0,
            'cache_evictions': 0,
            'searches': 0,
            'batch_searches': 0,
            'batch_targets': 0,
        }

        logger.debug(f"ColorMatcher initialized with cache_size={cache_size}, "
                     f"cache_enabled={enable_cache}")

    @property
    def palette(self) -> Palette:
        return self._palette

    def distances(self, target: Sequence[int]) -> np.ndarray:
        """
        Squared distances from target to every palette entry.

        Args:
            target: RGB triple with channels in 0-255

        Returns:
            (256,) int32 array indexed by palette index
        """
        diff = self._colors - np.asarray(_check_target(target), dtype=np.int32)
        return (diff * diff).sum(axis=1)

    def match(self, target: Sequence[int]) -> int:
        """
        Index of the palette entry closest to target.

        Args:
            target: RGB triple with channels in 0-255

        Returns:
            Palette index 0-255, lowest index on ties
        """
        key = _check_target(target)

        cached = self._get_cached(key)
        if cached is not None:
            return cached

        index = int(np.argmin(self.distances(key)))
        with self._lock:
            self.stats['searches'] += 1

        self._cache_result(key, index)
        return index

    def match_many(self, targets) -> np.ndarray:
        """
        Vectorized match over many targets.

        Args:
            targets: (N, 3) array-like of RGB triples with channels in 0-255

        Returns:
            (N,) uint8 array of palette indices, identical to calling
            match() on each target
        """
        targets = np.asarray(targets)
        if targets.size == 0:
            return np.empty(0, dtype=np.uint8)
        if not np.issubdtype(targets.dtype, np.integer):
            raise ValueError(f"Target colors must be integers, got {targets.dtype}")
        targets = targets.astype(np.int32).reshape(-1, PALETTE_CHANNELS)
        if targets.min() < 0 or targets.max() > CHANNEL_MAX:
            raise ValueError(f"Target colors have channels outside 0-{CHANNEL_MAX}")

        dist = np.zeros((len(targets), len(self._colors)), dtype=np.int32)
        for channel in range(PALETTE_CHANNELS):
            diff = targets[:, channel, np.newaxis] - self._colors[np.newaxis, :, channel]
            dist += diff * diff

        with self._lock:
            self.stats['batch_searches'] += 1
            self.stats['batch_targets'] += len(targets)

        return np.argmin(dist, axis=1).astype(np.uint8)

    def _get_cached(self, key: RGBColor) -> Optional[int]:
        """Get cached index if available."""
        if not self._cache_enabled:
            return None

        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self.stats['cache_hits'] += 1
                return self._cache[key]
            self.stats['cache_misses'] += 1
        return None

    def _cache_result(self, key: RGBColor, index: int):
        if not self._cache_enabled:
            return

        with self._lock:
            while len(self._cache) >= self._cache_size:
                self._cache.popitem(last=False)
                self.stats['cache_evictions'] += 1
            self._cache[key] = index

    def clear_cache(self):
        """Clear all cached matches."""
        with self._lock:
            self._cache.clear()

    def get_stats(self) -> Dict[str, Union[int, float]]:
        """
        Get matcher statistics.

        Returns:
            Dictionary of counters plus cache size and hit rate
        """
        with self._lock:
            stats = self.stats.copy()
            stats['cache_entries'] = len(self._cache)

        total_requests = stats['cache_hits'] + stats['cache_misses']
        stats['cache_hit_rate'] = stats['cache_hits'] / total_requests if total_requests else 0.0
        return stats


def match(palette: Union[Palette, bytes, Sequence[RGBColor]], target: Sequence[int]) -> int:
    """
    Index of the palette entry closest to target.

    Example:
        >>> pal = [(10, 0, 0), (0, 10, 0)] + [(255, 255, 255)] * 254
        >>> match(pal, (5, 5, 0))
        0
    """
    return ColorMatcher(palette, cache_size=1, enable_cache=False).match(target)
