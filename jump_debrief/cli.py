"""
Batch command line tool.

How to run:
jump-debrief data/jumps/ --chart
jump-debrief "data/jumps/2024-*.csv" -o out/ -p "freefall_descent_rate=20,acceleration_clip=15"
jump-debrief data/jumps/ --dry-run -l 5
"""

from __future__ import annotations

import argparse
import glob
import logging
from pathlib import Path
from typing import Optional, Sequence

import matplotlib

matplotlib.use("Agg")  # files only, never a window
import matplotlib.pyplot as plt  # noqa: E402

from .domain import DetectionConfig, DetectedEvents, parse_params
from .analyze import analyze
from .cutter import DEFAULT_BUFFER_POINTS, DEFAULT_MIN_RETAINED
from .formats import FORMATS
from .render import make_plot_figure
from .report import format_events, write_summary

logger = logging.getLogger(__name__)

SUMMARY_FILENAME = "summary.csv"


# -----------------------------
# File discovery
# -----------------------------
def discover_csv_files(input_path: str) -> tuple[Path, list[Path]]:
    """
    Resolve INPUT into (base directory, sorted CSV files).

    INPUT may be a file, a directory (searched recursively) or a glob.
    Output paths mirror each file's position relative to the base directory.
    """
    path = Path(input_path).expanduser()

    if path.is_file():
        resolved = path.resolve()
        return resolved.parent, [resolved]

    if path.is_dir():
        base = path.resolve()
        files = [p for p in base.rglob("*") if p.is_file() and p.suffix.lower() == ".csv"]
        return base, sorted(files)

    if any(ch in input_path for ch in "*?["):
        # base is the longest leading part of the pattern without wildcards
        parts = Path(input_path).parts
        fixed = []
        for part in parts:
            if any(ch in part for ch in "*?["):
                break
            fixed.append(part)
        base = Path(*fixed).resolve() if fixed else Path(".").resolve()
        files = [Path(p).resolve() for p in glob.glob(input_path, recursive=True) if Path(p).is_file()]
        return base, sorted(files)

    raise FileNotFoundError(f"Input not found: {input_path}")


def default_output_root(base: Path) -> Path:
    return base.parent / "processed" / base.name


def output_path_for(csv_file: Path, base: Path, output_root: Path) -> Path:
    return output_root / csv_file.relative_to(base)


def chart_path_for(output_file: Path) -> Path:
    return output_file.with_suffix(".png")


# -----------------------------
# Arguments
# -----------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jump-debrief",
        description="Detect takeoff, freefall, canopy and landing in skydive GPS logs.",
    )
    parser.add_argument("input", help="CSV file, directory (recursive) or glob pattern")
    parser.add_argument("-o", "--output", default=None,
                        help="Output directory (default: <input parent>/processed/<input dir name>)")
    parser.add_argument("-l", "--limit", type=int, default=None, help="Process at most this many files")
    parser.add_argument("-n", "--dry-run", action="store_true", help="List files without processing them")
    parser.add_argument("-b", "--buffer", type=int, default=DEFAULT_BUFFER_POINTS,
                        help="Rows kept before takeoff and after landing")
    parser.add_argument("-k", "--min-retain", type=float, default=DEFAULT_MIN_RETAINED,
                        help="Keep the whole file if the cut would retain less than this fraction (0..1)")
    parser.add_argument("-f", "--format", default="auto", choices=["auto", *sorted(FORMATS)],
                        help="Input CSV format")
    parser.add_argument("-p", "--params", default="",
                        help='Detection overrides, e.g. "takeoff_max_altitude=800,acceleration_clip=15"')
    parser.add_argument("--chart", action="store_true", help="Also write a PNG chart next to each output CSV")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _validate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> DetectionConfig:
    if args.limit is not None and args.limit < 1:
        parser.error("--limit must be >= 1")
    if args.buffer < 0:
        parser.error("--buffer must be >= 0")
    if not 0.0 <= args.min_retain <= 1.0:
        parser.error("--min-retain must be within [0, 1]")
    try:
        return DetectionConfig().with_overrides(parse_params(args.params))
    except ValueError as e:
        parser.error(f"--params: {e}")


# -----------------------------
# Main
# -----------------------------
def process_file(
    csv_file: Path,
    out_file: Path,
    config: DetectionConfig,
    args: argparse.Namespace,
) -> Optional[DetectedEvents]:
    result, err = analyze(
        csv_file,
        config,
        fmt=args.format,
        buffer_points=args.buffer,
        min_retained=args.min_retain,
    )
    if err or result is None:
        logger.error("%s: %s", csv_file, err or "analysis failed")
        return None

    out_file.parent.mkdir(parents=True, exist_ok=True)
    result.cut.to_csv(out_file, index=False)
    logger.info("Wrote %s (%d of %d rows)", out_file, len(result.cut), len(result.annotated))

    if args.chart:
        fig = make_plot_figure(result.signals, result.events, config)
        fig.savefig(chart_path_for(out_file), dpi=120)
        plt.close(fig)

    print(f"{csv_file.name}")
    print(format_events(result.events))
    return result.events


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _validate(parser, args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        base, files = discover_csv_files(args.input)
    except FileNotFoundError as e:
        parser.error(str(e))

    output_root = Path(args.output).resolve() if args.output else default_output_root(base)
    if output_root == base:
        parser.error("Output directory must differ from the input directory")

    if args.limit is not None:
        files = files[:args.limit]
    if not files:
        logger.warning("No CSV files found for %s", args.input)
        return 0

    if args.dry_run:
        for f in files:
            print(f"{f} -> {output_path_for(f, base, output_root)}")
        return 0

    results = []
    for i, csv_file in enumerate(files, start=1):
        logger.info("[%d/%d] %s", i, len(files), csv_file)
        events = process_file(csv_file, output_path_for(csv_file, base, output_root), config, args)
        if events is not None:
            results.append((str(csv_file.relative_to(base)), events))

    summary = write_summary(output_root / SUMMARY_FILENAME, results)
    logger.info("Summary: %s (%d of %d files)", summary, len(results), len(files))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
