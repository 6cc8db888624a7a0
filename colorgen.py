#!/usr/bin/env python3
"""
🎨 PNGN Colormap Generator - Command Line Tool
==============================================
Copyright (c) 2025 PNGN-Tec LLC

Reads a 256-color palette and writes the 64-level lighting colormap.

Usage:
    pngn-colorgen palette.lmp
    pngn-colorgen palette.lmp -o maps/colormap.lmp --preview colormap.png
    pngn-colorgen --from-image palette.png --fullbrights 0

Any read, size or write failure is fatal: a message goes to stderr, the
exit status is 1 and no colormap file is produced.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from config import PALETTE_COLORS, get_config, get_generator_config, get_output_config
from pngn_colormap import ColormapGenerator
from pngn_palette import load_palette_from_path, write_colormap
from pngn_preview import palette_from_image, save_colormap_preview

logger = logging.getLogger('colorgen')


def build_arg_parser() -> argparse.ArgumentParser:
    generator_config = get_generator_config()
    output_config = get_output_config()

    parser = argparse.ArgumentParser(
        prog="pngn-colorgen",
        description="Generate a 64-level lighting colormap from a 256-color palette",
    )
    parser.add_argument(
        "palette",
        type=Path,
        help="Input palette (raw 768-byte lump, or a 16x16 image with --from-image)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path(output_config.colormap_filename),
        help=f"Output colormap lump (default: {output_config.colormap_filename})",
    )
    parser.add_argument(
        "--from-image",
        action="store_true",
        help="Read the palette from a 16x16 image instead of a raw lump",
    )
    parser.add_argument(
        "--fullbrights",
        type=int,
        default=generator_config.num_fullbright,
        help=f"Number of fullbright colors (default: {generator_config.num_fullbright}). Use 0 to disable",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=generator_config.max_worker_threads,
        help=f"Worker threads for light levels (default: {generator_config.max_worker_threads})",
    )
    parser.add_argument(
        "--preview",
        type=Path,
        help="Optional PNG preview of the generated colormap",
    )
    parser.add_argument(
        "--preview-scale",
        type=int,
        default=output_config.preview_scale,
        help=f"Pixel scale of the preview image (default: {output_config.preview_scale})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def configure_logging(verbose: bool):
    config = get_config()
    level = logging.DEBUG if verbose or config.debug_mode else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not 0 <= args.fullbrights <= PALETTE_COLORS:
        parser.error(f"--fullbrights must be between 0 and {PALETTE_COLORS}")
    if args.workers <= 0:
        parser.error("--workers must be positive")
    if args.preview_scale <= 0:
        parser.error("--preview-scale must be positive")

    configure_logging(args.verbose)

    # --- Read input palette ---
    try:
        if args.from_image:
            palette = palette_from_image(args.palette)
        else:
            palette = load_palette_from_path(args.palette)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read palette {args.palette}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"✅ Successfully read {args.palette}.")

    # --- Generate the colormap ---
    print("🎨 Generating colormap...")
    generator = ColormapGenerator(num_fullbright=args.fullbrights, max_workers=args.workers)
    colormap = generator.generate(palette)

    # --- Write preview (before the colormap) ---
    if args.preview:
        try:
            save_colormap_preview(colormap, palette, args.preview, scale=args.preview_scale)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write preview {args.preview}: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"🖼️  Saved preview {args.preview}")

    # --- Write output colormap ---
    try:
        written = write_colormap(colormap, args.output)
    except OSError as e:
        logger.error(f"Failed to write colormap {args.output}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        if args.preview:
            args.preview.unlink(missing_ok=True)
        return 1

    print(f"✅ Successfully wrote {args.output} ({written} bytes).")
    print("✨ Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
