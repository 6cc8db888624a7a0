#!/usr/bin/env python3
"""
🐧 PNGN Colormap Generator - Palette Module
===========================================
Copyright (c) 2025 PNGN-Tec LLC

Palette and Colormap Data Types
===============================
Fixed-size value types shared by the matcher, the generator and the
file collaborators:

- Palette: 256 RGB triples backed by a read-only (256, 3) uint8 array
- Colormap: 64 light levels x 256 palette indices backed by a read-only
  (64, 256) uint8 array

Raw File Formats
================
- Palette lump: exactly 768 bytes, 256 consecutive R, G, B triples
- Colormap lump: exactly 16384 bytes, 64 rows of 256 indices, row = light
  level, byte offset within a row = original palette index

Any other size is a hard failure. Colormaps are written through a temporary
file in the destination directory and moved into place, so a failed write
never leaves a truncated colormap behind.

Module Interface
================
- Palette, Colormap: data types
- PaletteFormatError, ColormapFormatError: size/shape violations
- as_palette(): coerce bytes, arrays or Palette instances
- load_palette() / load_palette_from_path(): read a 768-byte lump
- save_palette(): write a 768-byte lump
- load_colormap_from_path(): read a 16384-byte lump
- write_colormap(): atomic 16384-byte write
"""

import os
import logging
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, Union

import numpy as np

from config import (
    RGBColor,
    PALETTE_COLORS, PALETTE_CHANNELS, PALETTE_BYTES,
    NUM_LEVELS, COLORMAP_BYTES, CHANNEL_MAX,
)

# Configure logging
logger = logging.getLogger('pngn_palette')

PathLike = Union[str, os.PathLike]


class PaletteFormatError(ValueError):
    """Raised when palette data is not exactly 256 RGB entries."""


class ColormapFormatError(ValueError):
    """Raised when colormap data is not exactly 64 x 256 entries."""


def _read_only(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.uint8, copy=True)
    array.flags.writeable = False
    return array


# ============================================================================
# PALETTE
# ============================================================================

class Palette:
    """
    Immutable 256-color RGB palette.

    Indices 224-255 are the fullbright entries under the default
    configuration; the palette itself does not treat them differently.

    Examples:
        >>> pal = Palette.from_bytes(bytes(range(256)) * 3)
        >>> pal[1]
        (3, 4, 5)
    """

    __slots__ = ('_colors',)

    def __init__(self, colors):
        array = np.asarray(colors)

        if array.shape != (PALETTE_COLORS, PALETTE_CHANNELS):
            raise PaletteFormatError(
                f"Palette must be {PALETTE_COLORS} RGB entries, got shape {array.shape}"
            )

        if array.dtype != np.uint8:
            if not np.issubdtype(array.dtype, np.integer):
                raise PaletteFormatError(f"Palette channels must be integers, got {array.dtype}")
            if array.min() < 0 or array.max() > CHANNEL_MAX:
                raise PaletteFormatError(f"Palette channels must be within 0-{CHANNEL_MAX}")

        self._colors = _read_only(array)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Palette':
        """Build a palette from a raw 768-byte lump."""
        if len(data) != PALETTE_BYTES:
            raise PaletteFormatError(
                f"Input palette is not {PALETTE_BYTES} bytes long. Read {len(data)} bytes."
            )
        return cls(np.frombuffer(bytes(data), dtype=np.uint8).reshape(PALETTE_COLORS, PALETTE_CHANNELS))

    @property
    def colors(self) -> np.ndarray:
        """Read-only (256, 3) uint8 array of the palette entries"""
        return self._colors

    def to_bytes(self) -> bytes:
        return self._colors.tobytes()

    def __len__(self) -> int:
        return PALETTE_COLORS

    def __getitem__(self, index: int) -> RGBColor:
        r, g, b = self._colors[index]
        return (int(r), int(g), int(b))

    def __iter__(self) -> Iterator[RGBColor]:
        for index in range(PALETTE_COLORS):
            yield self[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return np.array_equal(self._colors, other._colors)

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"Palette(first={self[0]}, last={self[PALETTE_COLORS - 1]})"


def as_palette(source) -> Palette:
    """
    Coerce a palette-like value into a Palette.

    Args:
        source: Palette, raw bytes-like lump, or (256, 3) array/sequence

    Returns:
        Palette instance (the same object when already a Palette)
    """
    if isinstance(source, Palette):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return Palette.from_bytes(bytes(source))
    return Palette(source)


# ============================================================================
# COLORMAP
# ============================================================================

class Colormap:
    """
    Immutable lighting table of 64 light levels by 256 palette indices.

    colormap[y] returns the row for light level y, so colormap[y][x] and
    colormap[y, x] both address the cell for palette index x.
    """

    __slots__ = ('_table',)

    def __init__(self, table):
        array = np.asarray(table)

        if array.shape != (NUM_LEVELS, PALETTE_COLORS):
            raise ColormapFormatError(
                f"Colormap must be {NUM_LEVELS}x{PALETTE_COLORS}, got shape {array.shape}"
            )
        if array.dtype != np.uint8:
            if not np.issubdtype(array.dtype, np.integer):
                raise ColormapFormatError(f"Colormap cells must be integers, got {array.dtype}")
            if array.min() < 0 or array.max() >= PALETTE_COLORS:
                raise ColormapFormatError(f"Colormap cells must be within 0-{PALETTE_COLORS - 1}")

        self._table = _read_only(array)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Colormap':
        """Build a colormap from a raw 16384-byte lump."""
        if len(data) != COLORMAP_BYTES:
            raise ColormapFormatError(
                f"Colormap is not {COLORMAP_BYTES} bytes long. Read {len(data)} bytes."
            )
        return cls(np.frombuffer(bytes(data), dtype=np.uint8).reshape(NUM_LEVELS, PALETTE_COLORS))

    @property
    def table(self) -> np.ndarray:
        """Read-only (64, 256) uint8 array"""
        return self._table

    def row(self, level: int) -> np.ndarray:
        return self._table[level]

    def to_bytes(self) -> bytes:
        return self._table.tobytes()

    def __len__(self) -> int:
        return NUM_LEVELS

    def __getitem__(self, key):
        if isinstance(key, tuple):
            return int(self._table[key])
        return self._table[key]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Colormap):
            return NotImplemented
        return np.array_equal(self._table, other._table)

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"Colormap(levels={NUM_LEVELS}, colors={PALETTE_COLORS})"


# ============================================================================
# PALETTE SOURCE
# ============================================================================

def load_palette(stream: BinaryIO) -> Palette:
    """
    Read a raw palette lump from a binary stream.

    One byte past the expected size is requested so oversized input is
    rejected as well as truncated input.

    Raises:
        PaletteFormatError: Stream does not hold exactly 768 bytes
    """
    data = stream.read(PALETTE_BYTES + 1)
    return Palette.from_bytes(data)


def load_palette_from_path(path: PathLike) -> Palette:
    """
    Read a raw palette lump from disk.

    Raises:
        OSError: File cannot be opened or read
        PaletteFormatError: File is not exactly 768 bytes
    """
    path = Path(path)
    with path.open('rb') as f:
        palette = load_palette(f)
    logger.info(f"Loaded palette from {path} ({PALETTE_BYTES} bytes)")
    return palette


def save_palette(palette: Palette, path: PathLike) -> int:
    """Write a palette as a raw 768-byte lump. Returns bytes written."""
    return _write_atomic(Path(path), as_palette(palette).to_bytes())


# ============================================================================
# COLORMAP SINK
# ============================================================================

def load_colormap_from_path(path: PathLike) -> Colormap:
    """
    Read a raw colormap lump from disk.

    Raises:
        OSError: File cannot be opened or read
        ColormapFormatError: File is not exactly 16384 bytes
    """
    path = Path(path)
    with path.open('rb') as f:
        data = f.read(COLORMAP_BYTES + 1)
    return Colormap.from_bytes(data)


def write_colormap(colormap: Colormap, path: PathLike) -> int:
    """
    Write a colormap as a raw 16384-byte lump, in full or not at all.

    Args:
        colormap: Generated colormap
        path: Destination file

    Returns:
        Number of bytes written (always 16384)

    Raises:
        OSError: Destination cannot be written; any existing file is untouched
    """
    data = colormap.to_bytes()
    if len(data) != COLORMAP_BYTES:
        raise ColormapFormatError(f"Refusing to write {len(data)} colormap bytes")

    written = _write_atomic(Path(path), data)
    logger.info(f"Wrote colormap to {path} ({written} bytes)")
    return written


def _write_atomic(path: Path, data: bytes) -> int:
    """Write data to a sibling temporary file and move it over path."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=path.parent)

    try:
        with os.fdopen(fd, 'wb') as f:
            written = f.write(data)
            f.flush()
            os.fsync(f.fileno())

        if written != len(data):
            raise OSError(f"Short write to {path}: {written} of {len(data)} bytes")

        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    return written
