#!/usr/bin/env python3
"""
XRK/DRK Session Decoder - Main Entry Point

Reads an AiM .xrk or .drk file and writes one CSV per lap with all channels
synchronized onto a common timeline.
Usage: python decode_xdrk.py <file> [--lap N] [--reference CHANNEL] [--output DIR]
"""

import argparse
import logging
import sys
from pathlib import Path

from decoder import LIBRARY_ENV, XdrkLibrary
from errors import XdrkError
from export import export_lap_to_csv
from lap import Run
from registry import HandleRegistry
from xdrk_file import XdrkFile

logger = logging.getLogger(__name__)


def print_session_info(run: Run):
    """Print session metadata and a line per lap"""
    print("=" * 70)
    print("SESSION INFORMATION")
    print("=" * 70)
    print(run)
    print()
    for lap in run.laps:
        print(f"{lap}, up to {lap.max_frequency():.0f} Hz, {lap.distance():.1f} m")
    print()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Export AiM .xrk/.drk sessions as synchronized CSV, one file per lap"
    )
    parser.add_argument("file", type=str, help="Path to .xrk or .drk file")
    parser.add_argument("--lap", type=int, help="Only export this lap (0-based)")
    parser.add_argument("--reference", type=str,
                        help="Channel whose timestamps are used for all others (default: fastest)")
    parser.add_argument("--output", type=str, help="Output directory (default: next to the file)")
    parser.add_argument("--library", type=str,
                        help=f"Path to the AiM decoder library (default: ${LIBRARY_ENV})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    path = Path(args.file)
    output_dir = Path(args.output) if args.output else path.parent

    try:
        registry = HandleRegistry(XdrkLibrary(args.library))
        with XdrkFile.load(registry, path) as xdrk:
            run = Run.load(xdrk)
    except OSError as e:
        print(f"Error: could not load decoder library: {e}")
        return 1
    except XdrkError as e:
        print(f"Error: {e}")
        return 1

    print_session_info(run)

    laps = run.laps
    if args.lap is not None:
        lap = run.lap(args.lap)
        if lap is None:
            print(f"Error: lap {args.lap} not found, file has {run.number_of_laps()} laps")
            return 1
        laps = [lap]

    output_dir.mkdir(parents=True, exist_ok=True)
    for lap in laps:
        csv_file = output_dir / f"{path.stem}_lap{lap.info.index}.csv"
        try:
            rows = export_lap_to_csv(lap, csv_file, args.reference)
        except XdrkError as e:
            print(f"[SKIP] lap {lap.info.index}: {e}")
            continue
        print(f"[OK] {csv_file.name}: {rows} rows")

    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
