"""
cli.py
======

Command-line entry point.

    density-raster [options] SOURCE [SOURCE ...]
    python -m density_raster [options] SOURCE [SOURCE ...]

Each SOURCE is an `.svg` file or a directory; directories contribute every `.svg`
file below them, in nested folders too (the extension is matched without regard
to case). Duplicates are removed. For every source one image
per enabled density is written to

    <destination>/drawable-<qualifier>/<source name>.<format>

where <destination> defaults to the directory of the source.

Examples
--------
    # mdpi..xxxhdpi WebP next to the sources
    density-raster icons/

    # 24dp wide launcher assets, only hdpi and xhdpi, into res/
    density-raster --width 24 --no-mdpi --no-xxhdpi --no-xxxhdpi -d res icon.svg

Exit status: 0 on success, 1 if any source failed, 2 on usage errors
(reported before anything is rendered). Render and write failures are not told
apart by the exit status; the `[ERROR]` line names the cause.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from . import get_version
from .density import Density, DensitySet
from .document import SVG_EXTENSION
from .encode import DEFAULT_FORMAT, OUTPUT_FORMATS
from .errors import ConfigurationError
from .pipeline import Rasterizer, RasterizerConfig, rasterize_files
from .scale import DEFAULT_RESAMPLE, RESAMPLE_FILTERS

__all__ = ["collect_sources", "densities_from_args", "config_from_args", "main"]

# Generated unless disabled with --no-<qualifier>
_DENSITY_DEFAULTS: Dict[Density, bool] = {
    Density.LOW: False,
    Density.MEDIUM: True,
    Density.HIGH: True,
    Density.X_HIGH: True,
    Density.XX_HIGH: True,
    Density.XXX_HIGH: True,
}


def _positive_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'") from None
    if not f > 0 or f == float("inf"):
        raise argparse.ArgumentTypeError(f"must be a positive number (got {value})")
    return f


def _build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="density-raster",
        description="Rasterize SVG files into per-density (ldpi..xxxhdpi) bitmaps.",
    )
    ap.add_argument(
        "source",
        nargs="+",
        metavar="SOURCE",
        help="SVG file(s), or directories containing SVG files",
    )
    ap.add_argument(
        "-d",
        "--destination",
        type=str,
        default=None,
        metavar="DIR",
        help="Location of the generated files (must be a directory; created if absent). "
        "Defaults to the directory of each source.",
    )
    ap.add_argument(
        "--force-transparent-white",
        action="store_true",
        help="Convert transparent black (#00000000) pixels to transparent white (#00FFFFFF).",
    )
    ap.add_argument(
        "--format",
        choices=tuple(OUTPUT_FORMATS),
        default=DEFAULT_FORMAT,
        help="Output image format (default: %(default)s)",
    )
    ap.add_argument(
        "--quality",
        type=int,
        default=75,
        help="Lossy WebP quality 0..100 (default: %(default)s)",
    )
    ap.add_argument("--lossless", action="store_true", help="Lossless WebP")
    ap.add_argument(
        "--resample",
        choices=tuple(RESAMPLE_FILTERS),
        default=DEFAULT_RESAMPLE,
        help="Filter used to derive lower densities (default: %(default)s)",
    )
    ap.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of source files processed in parallel (default: %(default)s)",
    )
    ap.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first source that fails instead of continuing",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Per-density progress")
    ap.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    ap.add_argument("--dry-run", action="store_true", help=argparse.SUPPRESS)

    dens = ap.add_argument_group(
        "Density options",
        "Enable or disable generation of a version for a specific pixel density.",
    )
    for density, default in _DENSITY_DEFAULTS.items():
        dens.add_argument(
            f"--{density.qualifier}",
            dest=density.qualifier,
            action=argparse.BooleanOptionalAction,
            default=default,
            help=f"Generate the {density.qualifier} (x{density.scale_factor:g}) version",
        )

    dims = ap.add_argument_group(
        "Dimension options",
        "Desired width and height of the generated images, in density-independent "
        "pixels. If not set, the size is taken from the 'width' and 'height' "
        "attributes of the root 'svg' element, or from its 'viewBox'. If only one "
        "is set, the other follows the original aspect ratio.",
    )
    dims.add_argument("--width", type=_positive_float, default=None, metavar="DP", help="Width in dp")
    dims.add_argument("--height", type=_positive_float, default=None, metavar="DP", help="Height in dp")
    return ap


def densities_from_args(args: argparse.Namespace) -> List[Density]:
    return [d for d in Density if getattr(args, d.qualifier)]


def config_from_args(args: argparse.Namespace) -> RasterizerConfig:
    cfg = RasterizerConfig(
        densities=DensitySet.from_iterable(densities_from_args(args)),
        width_dp=args.width,
        height_dp=args.height,
        output_format=args.format,
        quality=args.quality,
        lossless=args.lossless,
        resample=args.resample,
        force_transparent_white=args.force_transparent_white,
        verbose=args.verbose,
    )
    cfg.validate()
    return cfg


def collect_sources(ap: argparse.ArgumentParser, raw: Sequence[str]) -> List[Path]:
    """
    Expand directories (recursively) to the SVG files they hold, drop duplicates and
    reject anything without the .svg extension. Errors go through `ap.error`.
    """
    found: Dict[Path, None] = {}
    for s in raw:
        p = Path(s).absolute()
        if not p.exists():
            ap.error(f"path '{p}' does not exist.")
        if not os.access(p, os.R_OK):
            ap.error(f"path '{p}' is not readable.")
        if p.is_dir():
            for child in sorted(p.rglob("*")):
                if child.is_file() and child.suffix.lower() == f".{SVG_EXTENSION}":
                    found[child] = None
        else:
            found[p] = None

    sources = list(found)
    wrong = [p for p in sources if p.suffix.lower() != f".{SVG_EXTENSION}"]
    if wrong:
        many = len(wrong) > 1
        listing = "\n".join(str(p) for p in wrong)
        ap.error(
            f"the following {'files were' if many else 'file was'} not recognized as "
            f"having the expected extension (.{SVG_EXTENSION}):\n{listing}"
        )
    return sources


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = _build_argparser()
    args = ap.parse_args(argv)

    if not densities_from_args(args):
        ap.error("at least one density must be specified.")
    try:
        cfg = config_from_args(args)
    except ConfigurationError as e:
        ap.error(str(e))
    if args.jobs < 1:
        ap.error(f"--jobs must be >= 1 (got {args.jobs}).")
    if args.destination is not None:
        dest = Path(args.destination)
        if dest.exists() and not dest.is_dir():
            ap.error(f"destination '{dest}' is not a directory.")

    sources = collect_sources(ap, args.source)
    if not sources:
        print("[WARN] No SVG files found.")
        return 0

    if args.dry_run:
        if cfg.verbose:
            print(f"[INFO] Dry run: {len(sources)} source(s), densities={cfg.densities}")
        return 0

    rasterizer = Rasterizer(cfg)
    results = rasterize_files(
        sources,
        rasterizer,
        destination=args.destination,
        jobs=args.jobs,
        fail_fast=args.fail_fast,
    )
    ok = sum(1 for r in results if r.ok)
    written = sum(len(r.outputs) for r in results)
    print(f"[INFO] Rasterized {ok}/{len(sources)} source(s) -> {written} file(s)")
    return 0 if ok == len(sources) else 1


if __name__ == "__main__":
    raise SystemExit(main())
