#!/usr/bin/env python3
"""
Command line front end for flexbatt.

Usage:
    python -m flexbatt TYPE [-n COMPARTMENTS] [-m CELLS] [-o FILE] [options]
    python -m flexbatt --list

Examples:
    # Two AA cells in series, one compartment
    python -m flexbatt AA -m 2

    # Four side by side 18650 compartments, labels mirrored on every
    # other one, merged into one shell
    python -m flexbatt 18650 -n 4 --alternate-labels --merge -o pack.stl
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .catalog import load_catalog
from .errors import BooleanError, CatalogError, DegenerateGeometryError, InvalidRequestError
from .holder import generate
from .params import MAX_CELLS, MAX_COMPARTMENTS, PrintSettings

logger = logging.getLogger("flexbatt")


def setup_logging(level: int = logging.WARNING) -> None:
    """Configure the ``flexbatt`` logger with a single stderr handler."""
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(handler)


def cmd_list(args) -> int:
    """Print the available cell presets."""
    catalog = load_catalog(args.catalog)
    for name, preset in catalog.items():
        print(f"{name:8s} {preset.diameter:5.2f} x {preset.length:5.1f} mm  {preset.description}")
    return 0


def cmd_build(args) -> int:
    settings = PrintSettings(sections=args.sections)
    holder = generate(args.type, args.compartments, args.cells, args.alternate_labels,
                      settings=settings, workers=args.workers, catalog_path=args.catalog)
    output = Path(args.output or f"flexbatt_{args.type}_{args.compartments}x{args.cells}.stl")
    holder.export(output, merge=args.merge)

    p = holder.params
    print(f"{p.name}: {holder.count} x {p.cells} cells, "
          f"{p.body_size[0]:.1f} x {holder.width:.1f} x {p.body_height:.1f} mm -> {output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m flexbatt',
        description='Parametric battery holder with printed flexure springs',
    )
    parser.add_argument('type', nargs='?', help='Cell type, e.g. AA or 18650 (see --list)')
    parser.add_argument('-n', '--compartments', type=int, default=1,
                        help=f'Compartments side by side (1-{MAX_COMPARTMENTS})')
    parser.add_argument('-m', '--cells', type=int, default=1,
                        help=f'Cells in series per compartment (1-{MAX_CELLS})')
    parser.add_argument('--alternate-labels', action='store_true',
                        help='Mirror polarity labels on every other compartment')
    parser.add_argument('-o', '--output', metavar='FILE',
                        help='Output mesh (STL unless another suffix is given)')
    parser.add_argument('--merge', action='store_true',
                        help='Union compartments into one shell instead of concatenating')
    parser.add_argument('--workers', type=int, default=1,
                        help='Build compartments on this many threads')
    parser.add_argument('--sections', type=int, default=PrintSettings().sections,
                        help='Polygon sides for round features')
    parser.add_argument('--catalog', type=Path, metavar='FILE',
                        help='Use this presets.yaml instead of the bundled one')
    parser.add_argument('--list', action='store_true', help='List cell presets and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.list:
            return cmd_list(args)
        if not args.type:
            parser.print_usage(sys.stderr)
            print("Error: a cell type is required (see --list)", file=sys.stderr)
            return 2
        return cmd_build(args)
    except (InvalidRequestError, CatalogError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (DegenerateGeometryError, BooleanError) as e:
        print(f"Error: geometry failed: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
