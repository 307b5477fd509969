"""
Density Raster Package

Rasterizes one SVG document into a family of bitmaps, one per Android-style
display density (ldpi, mdpi, hdpi, xhdpi, xxhdpi, xxxhdpi):

- density.py    : Density tiers (scale factor, drawable-* directory) + DensitySet
- dimensions.py : dp size resolution (aspect ratio) + half-away-from-zero rounding
- document.py   : SVG loading and intrinsic size (width/height, else viewBox)
- render.py     : VectorRenderer protocol, CairoSVG renderer, base render at the
                  highest requested density
- scale.py      : Per-density downscaling (smooth filters only) and the
                  transparent-black -> transparent-white rewrite
- encode.py     : ImageEncoder protocol, Pillow encoder, output formats (webp/png)
- writer.py     : Per-density writer with directory rollback on failure
- pipeline.py   : RasterizerConfig, Rasterizer, batch runner
- cli.py        : argparse front end (`density-raster`, `python -m density_raster`)

Convenience Re-exports
----------------------
    from density_raster import Rasterizer, RasterizerConfig, Density, DensitySet

No heavy imports at package import time: CairoSVG (and with it the native
cairo library) is only loaded when something is actually rendered.
"""

from __future__ import annotations

_PROJECT_VERSION = "0.3.0"


def get_version() -> str:
    return _PROJECT_VERSION


from .density import Density, DensitySet  # noqa: E402
from .errors import (  # noqa: E402
    ConfigurationError,
    DirectoryCreationError,
    DocumentDimensionError,
    DocumentParseError,
    EncodeOrWriteError,
    RasterizationError,
    RenderError,
    WriteError,
)
from .pipeline import JobResult, RasterJob, Rasterizer, RasterizerConfig, rasterize_files  # noqa: E402

__all__ = [
    "get_version",
    "Density",
    "DensitySet",
    "Rasterizer",
    "RasterizerConfig",
    "RasterJob",
    "JobResult",
    "rasterize_files",
    "RasterizationError",
    "ConfigurationError",
    "DocumentDimensionError",
    "RenderError",
    "DocumentParseError",
    "WriteError",
    "DirectoryCreationError",
    "EncodeOrWriteError",
]
