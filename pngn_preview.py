#!/usr/bin/env python3
"""
🐧 PNGN Colormap Generator - Preview Module
===========================================
Copyright (c) 2025 PNGN-Tec LLC

Palette and Colormap Images
===========================
Pillow helpers around the raw lumps:

- Palette images: a 16x16 swatch, one pixel per entry, read row by row.
  Lets artists author palettes in any image editor.
- Colormap previews: a 256x64 image where column = palette index and
  row = light level (0 = brightest at the top), each pixel painted with
  the palette color its cell points at.

Module Interface
================
- palette_from_image(): Palette from a 16x16 image (or its path)
- palette_to_image(): 16x16 swatch image of a palette
- colormap_to_image(): RGB preview of a colormap
- save_colormap_preview(): write a preview PNG
"""

import os
import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from config import PALETTE_COLORS, PALETTE_IMAGE_MAX_SIDE
from pngn_palette import Palette, Colormap, PaletteFormatError, as_palette

# Configure logging
logger = logging.getLogger('pngn_preview')

ImageSource = Union[Image.Image, str, os.PathLike]


def _scaled(image: Image.Image, scale: int) -> Image.Image:
    if scale <= 0:
        raise ValueError("Preview scale must be positive")
    if scale == 1:
        return image
    return image.resize((image.width * scale, image.height * scale), Image.NEAREST)


def palette_from_image(source: ImageSource) -> Palette:
    """
    Read a palette from a 16x16 swatch image.

    Args:
        source: PIL image or path to one

    Returns:
        Palette with entry i taken from pixel (i % width, i // width)

    Raises:
        PaletteFormatError: Image larger than 16x16 or not exactly 256 pixels
        OSError: Image file cannot be opened
    """
    if isinstance(source, Image.Image):
        image = source
    else:
        image = Image.open(source)

    width, height = image.size
    if width > PALETTE_IMAGE_MAX_SIDE or height > PALETTE_IMAGE_MAX_SIDE:
        raise PaletteFormatError(
            f"Palette image invalid size: {width}x{height} - must be at most "
            f"{PALETTE_IMAGE_MAX_SIDE}x{PALETTE_IMAGE_MAX_SIDE}px"
        )
    if width * height != PALETTE_COLORS:
        raise PaletteFormatError(
            f"Palette image has {width * height} pixels, expected {PALETTE_COLORS}"
        )

    palette = Palette.from_bytes(image.convert('RGB').tobytes())
    logger.info(f"Loaded palette from {width}x{height} image")
    return palette


def palette_to_image(palette: Palette, scale: int = 1) -> Image.Image:
    """16x16 swatch image, one pixel per palette entry."""
    side = PALETTE_IMAGE_MAX_SIDE
    image = Image.frombytes('RGB', (side, side), as_palette(palette).to_bytes())
    return _scaled(image, scale)


def colormap_to_image(colormap: Colormap, palette: Palette, scale: int = 1) -> Image.Image:
    """
    Render a colormap through its palette.

    Args:
        colormap: Generated colormap
        palette: Palette the colormap indexes into
        scale: Integer pixel scale (nearest neighbour)

    Returns:
        RGB image of 256 x 64 pixels times scale
    """
    rgb = as_palette(palette).colors[colormap.table]
    image = Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8))
    return _scaled(image, scale)


def save_colormap_preview(colormap: Colormap, palette: Palette,
                          path: Union[str, os.PathLike], scale: int = 1) -> Path:
    """Write a PNG preview of a colormap. Returns the written path."""
    path = Path(path)
    colormap_to_image(colormap, palette, scale).save(path, format='PNG')
    logger.info(f"Saved colormap preview to {path}")
    return path
