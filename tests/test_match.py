"""Tests for nearest palette color matching."""

from __future__ import annotations

import numpy as np
import pytest

from pngn_match import ColorMatcher, match
from pngn_palette import Palette


def padded_palette(*entries: tuple[int, int, int], fill=(255, 255, 255)) -> Palette:
    colors = list(entries) + [fill] * (256 - len(entries))
    return Palette(colors)


def reference_match(palette: Palette, target) -> int:
    best_index = -1
    best_dist = 0
    for i, color in enumerate(palette):
        dist = sum((target[c] - color[c]) ** 2 for c in range(3))
        if best_index == -1 or dist < best_dist:
            best_index = i
            best_dist = dist
    return best_index


def test_equal_distance_prefers_lower_index() -> None:
    palette = padded_palette((10, 0, 0), (0, 10, 0))

    assert match(palette, (5, 5, 0)) == 0


def test_equal_distance_tie_later_in_palette() -> None:
    palette = padded_palette((200, 200, 200), (0, 10, 0), (10, 0, 0))

    assert match(palette, (5, 5, 0)) == 1


def test_self_match_with_distinct_entries(random_palette) -> None:
    colors = [tuple(c) for c in random_palette.colors.tolist()]
    assert len(set(colors)) == 256, "fixture palette expected to be distinct"

    matcher = ColorMatcher(random_palette)
    for i in range(256):
        assert matcher.match(random_palette[i]) == i


def test_self_match_with_duplicates_returns_first_occurrence() -> None:
    colors = [(i, 0, 0) for i in range(256)]
    colors[200] = (7, 0, 0)
    colors[250] = (7, 0, 0)
    palette = Palette(colors)

    assert match(palette, palette[200]) == 7
    assert match(palette, palette[250]) == 7


def test_extreme_distance_does_not_overflow() -> None:
    palette = padded_palette((255, 255, 255), fill=(255, 255, 255))
    matcher = ColorMatcher(palette)

    distances = matcher.distances((0, 0, 0))

    assert distances[0] == 3 * 255 ** 2 == 195075
    assert matcher.match((0, 0, 0)) == 0


def test_opposite_corner_is_matched() -> None:
    palette = padded_palette((255, 255, 255), (0, 0, 0), fill=(128, 128, 128))

    assert match(palette, (0, 0, 0)) == 1
    assert match(palette, (255, 255, 255)) == 0
    assert match(palette, (250, 10, 10)) == 2


def test_match_agrees_with_reference_scan(random_palette) -> None:
    rng = np.random.default_rng(99)
    targets = rng.integers(0, 256, size=(200, 3))
    matcher = ColorMatcher(random_palette)

    for target in targets.tolist():
        assert matcher.match(target) == reference_match(random_palette, target)


def test_match_many_agrees_with_match(random_palette) -> None:
    rng = np.random.default_rng(7)
    targets = rng.integers(0, 256, size=(500, 3))
    matcher = ColorMatcher(random_palette, enable_cache=False)

    indices = matcher.match_many(targets)

    assert indices.dtype == np.uint8
    assert indices.shape == (500,)
    assert indices.tolist() == [matcher.match(t) for t in targets.tolist()]


def test_match_many_keeps_tie_break() -> None:
    palette = padded_palette((10, 0, 0), (0, 10, 0))

    assert ColorMatcher(palette).match_many([(5, 5, 0), (0, 10, 0)]).tolist() == [0, 1]


def test_match_many_empty_input() -> None:
    matcher = ColorMatcher(padded_palette())

    assert matcher.match_many([]).shape == (0,)


def test_targets_outside_channel_range_are_rejected() -> None:
    matcher = ColorMatcher(padded_palette())

    with pytest.raises(ValueError):
        matcher.match((256, 0, 0))
    with pytest.raises(ValueError):
        matcher.match((0, -1, 0))
    with pytest.raises(ValueError):
        matcher.match((0, 0))
    with pytest.raises(ValueError):
        matcher.match_many([(0, 0, 300)])


def test_match_leaves_palette_untouched(random_palette) -> None:
    before = random_palette.to_bytes()

    ColorMatcher(random_palette).match((12, 34, 56))

    assert random_palette.to_bytes() == before


def test_cache_counts_hits_and_evicts_oldest(random_palette) -> None:
    matcher = ColorMatcher(random_palette, cache_size=2, enable_cache=True)

    first = matcher.match((1, 2, 3))
    assert matcher.match((1, 2, 3)) == first
    matcher.match((4, 5, 6))
    matcher.match((7, 8, 9))

    stats = matcher.get_stats()
    assert stats['cache_hits'] == 1
    assert stats['cache_misses'] == 3
    assert stats['cache_evictions'] == 1
    assert stats['cache_entries'] == 2
    assert stats['cache_hit_rate'] == pytest.approx(0.25)

    matcher.clear_cache()
    assert matcher.get_stats()['cache_entries'] == 0


def test_disabled_cache_still_matches(random_palette) -> None:
    matcher = ColorMatcher(random_palette, enable_cache=False)

    assert matcher.match(random_palette[10]) == matcher.match(random_palette[10])
    assert matcher.get_stats()['cache_entries'] == 0
    assert matcher.get_stats()['searches'] == 2


def test_matcher_accepts_raw_lump() -> None:
    lump = bytes([10, 0, 0, 0, 10, 0]) + b"\xff" * (768 - 6)

    assert ColorMatcher(lump).match((5, 5, 0)) == 0


def test_non_integer_targets_are_rejected() -> None:
    matcher = ColorMatcher(padded_palette((10, 0, 0), (0, 10, 0)))

    with pytest.raises(ValueError):
        matcher.match((5.7, 5, 0))
    with pytest.raises(ValueError):
        match(padded_palette(), (0, 0, 0.5))
    with pytest.raises(ValueError):
        matcher.match((True, 0, 0))
    with pytest.raises(ValueError):
        matcher.match_many(np.array([(5.7, 5.0, 0.0)]))


def test_numpy_integer_targets_are_accepted() -> None:
    matcher = ColorMatcher(padded_palette((10, 0, 0), (0, 10, 0)))

    assert matcher.match(tuple(np.array([5, 5, 0], dtype=np.uint8))) == 0
