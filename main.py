#!/usr/bin/env python3
"""
ndsldr -- Nintendo DS ROM loader

Main entry point.  Parses command-line arguments, validates the ROM header,
resolves the layout of the chosen ARM image and maps it into an address
space.

Usage examples::

    # Load the ARM9 image and print the load plan
    python main.py roms/game.nds

    # Load the ARM7 image instead
    python main.py roms/game.nds --core arm7

    # Print header metadata only
    python main.py roms/game.nds --info
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so that ``ndsldr`` can be imported
# regardless of how the script is invoked.
# ---------------------------------------------------------------------------
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from ndsldr.core.errors import FormatError, LayoutError, LoadAbortedError
from ndsldr.core.types import Variant
from ndsldr.shell.services.rom_loader_service import (
    FORMAT_NAME,
    RomLoaderService,
    fixed_selector,
)

_CORES = {"arm9": Variant.ARM9, "arm7": Variant.ARM7}


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ndsldr",
        description=(
            "Validate a Nintendo DS ROM header and map its ARM9 or ARM7 "
            "executable into the DS address space."
        ),
    )

    parser.add_argument(
        "rom",
        help="Path to the ROM file (.nds)",
    )

    parser.add_argument(
        "--core", "-c",
        choices=sorted(_CORES),
        default="arm9",
        help="Which embedded executable to load.  Default: arm9.",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print header metadata and exit without mapping an image.",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_info(info: dict[str, str]) -> None:
    print(FORMAT_NAME)
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("ndsldr.main")

    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: ROM file not found: {rom_path}", file=sys.stderr)
        return 1

    try:
        if args.info:
            with open(rom_path, "rb") as fh:
                header = RomLoaderService.read_header(fh)
            _print_info(RomLoaderService.describe(header))
            return 0

        result = RomLoaderService.load_path(
            rom_path, fixed_selector(_CORES[args.core])
        )
    except FormatError as exc:
        print(f"Error: not a {FORMAT_NAME}: {exc}", file=sys.stderr)
        return 1
    except (LayoutError, LoadAbortedError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.exception("Failed to read ROM")
        print(f"Error reading ROM: {exc}", file=sys.stderr)
        return 1

    _print_info(RomLoaderService.describe(result.header, result.plan))
    for seg in result.address_space.segments:
        print(f"  {seg!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
