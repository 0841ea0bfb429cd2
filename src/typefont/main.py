#!/usr/bin/env python3
# src/typefont/main.py

"""
Main entry point for Typefont.

Recognizes the font of the text in an image file against a font corpus and
prints the ranked fonts. Options are read from a JSON config file.

Usage:
    typefont IMAGE [--config PATH] [--top N]
"""

import argparse
import asyncio
import logging
import sys

from tqdm import tqdm

from typefont.app_logic.pipeline import identify_font
from typefont.errors import TypefontError
from typefont.processing.ocr_handler import shutdown_recognition
from typefont.utils.config import load_options

LOG_LEVEL = logging.INFO


def setup_logging(level: int = LOG_LEVEL):
    """Configures basic logging for the application."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    # Reduce verbosity from libraries that use logging
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("easyocr").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="typefont", description="Recognize the font of the text in an image.")
    parser.add_argument("image", help="Path of the image to recognize.")
    parser.add_argument("--config", help="JSON file with recognition options.")
    parser.add_argument("--top", type=int, default=0, help="Only print the N best fonts.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main execution function for Typefont."""
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else LOG_LEVEL)

    with tqdm(total=100, desc="Comparing fonts", unit="%") as bar:
        def on_progress(name, scores, fraction):
            bar.set_postfix_str(name)
            bar.update(round(fraction * 100) - bar.n)

        try:
            options = load_options(args.config, progress=on_progress)
            ranking = asyncio.run(identify_font(args.image, options))
        except (TypefontError, ValueError) as e:
            logging.error(f"Font recognition failed: {e}")
            return 1
        finally:
            shutdown_recognition()

    for position, font in enumerate(ranking[:args.top or None], start=1):
        print(f"{position:>3}. {font.name:<40} {font.similarity:6.2f}%  ({font.symbol_count} symbols)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
