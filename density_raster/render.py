"""
render.py
=========

Rasterization adapter: turns an `SvgDocument` into the single base pixel buffer
every density is later derived from.

Design
------
- The vector renderer is a narrow capability (`VectorRenderer` protocol) so the
  pipeline never depends on a specific SVG library; tests substitute a fake.
- The default implementation uses CairoSVG. It is imported lazily inside
  `CairoSvgRenderer.render` so importing this package does not require the
  native cairo library (only rendering does).
- The base buffer is rendered at the *initial* density, the highest tier
  requested. All other tiers are obtained by downscaling, never upscaling.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from typing import Protocol, Tuple

from PIL import Image

from .density import Density, DensitySet
from .dimensions import to_device_pixels
from .document import SvgDocument
from .errors import DocumentParseError, RenderError

__all__ = [
    "VectorRenderer",
    "CairoSvgRenderer",
    "render_base",
]


class VectorRenderer(Protocol):
    """Render a vector document to an RGBA image of exactly width x height pixels."""

    def render(self, document: SvgDocument, width_px: int, height_px: int) -> Image.Image:
        ...


class CairoSvgRenderer:
    def __init__(self, dpi: float = 96.0, background_color=None):
        self.dpi = dpi
        self.background_color = background_color

    def render(self, document: SvgDocument, width_px: int, height_px: int) -> Image.Image:
        try:
            import cairosvg
        except (ImportError, OSError) as e:  # OSError: libcairo not found
            raise RenderError(f"CairoSVG is not usable: {e}") from e

        try:
            png = cairosvg.svg2png(
                bytestring=document.data,
                output_width=width_px,
                output_height=height_px,
                dpi=self.dpi,
                background_color=self.background_color,
            )
        except ET.ParseError as e:
            raise DocumentParseError(
                f"'{document.name}' could not be interpreted as an SVG document: {e}"
            ) from e
        except Exception as e:  # cairosvg raises a wide range of types
            raise RenderError(f"'{document.name}' could not be rendered: {e}") from e

        try:
            img = Image.open(io.BytesIO(png))
            img.load()
        except (OSError, Image.DecompressionBombError) as e:
            raise RenderError(
                f"Rendered image of '{document.name}' could not be decoded: {e}"
            ) from e
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        if img.size != (width_px, height_px):
            raise RenderError(
                f"Renderer produced {img.size[0]}x{img.size[1]} for '{document.name}',"
                f" expected {width_px}x{height_px}."
            )
        return img


def render_base(
    renderer: VectorRenderer,
    document: SvgDocument,
    width: float,
    height: float,
    densities: DensitySet,
) -> Tuple[Image.Image, Density]:
    """
    Render the base buffer at the highest requested density.

    Parameters
    ----------
    renderer : VectorRenderer
    document : SvgDocument
    width, height : float
        Resolved size in density-independent units (see `resolve_dimensions`).
    densities : DensitySet

    Returns
    -------
    (image, initial_density)
        `image` is RGBA, `round(width * s) x round(height * s)` pixels where
        `s` is the initial density's scale factor.
    """
    initial = densities.initial
    width_px, height_px = to_device_pixels(width, height, initial.scale_factor)
    img = renderer.render(document, width_px, height_px)
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return img, initial
