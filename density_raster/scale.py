"""
scale.py
========

Multi-density scaler.

From the single base buffer (rendered at the initial density) derive one
buffer per requested density:

    ratio      = target.scale_factor / base.scale_factor
    new_width  = round_half_away(base_width  * ratio)
    new_height = round_half_away(base_height * ratio)

Resampling always uses a smooth filter. Pillow resizes RGBA images in
premultiplied space, so alpha is preserved without colour fringes around
transparent edges.

The base buffer is never modified: when no rescaling is needed it is returned
as-is, and `force_transparent_white` always builds a new image.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

import numpy as np
from PIL import Image

from .density import Density
from .dimensions import round_half_away
from .errors import ConfigurationError

__all__ = [
    "DEFAULT_RESAMPLE",
    "RESAMPLE_FILTERS",
    "resample_filter",
    "scaled_size",
    "scale_to_density",
    "force_transparent_white",
]

# Nearest-neighbour is deliberately absent.
RESAMPLE_FILTERS: Mapping[str, Image.Resampling] = MappingProxyType(
    {
        "box": Image.Resampling.BOX,
        "bilinear": Image.Resampling.BILINEAR,
        "bicubic": Image.Resampling.BICUBIC,
        "lanczos": Image.Resampling.LANCZOS,
    }
)

# Area averaging; closest to the classic "smooth" image scaling.
DEFAULT_RESAMPLE = "box"


def resample_filter(name: str) -> Image.Resampling:
    try:
        return RESAMPLE_FILTERS[name.lower()]
    except KeyError:
        known = ", ".join(RESAMPLE_FILTERS)
        raise ConfigurationError(
            f"Unsupported resampling filter '{name}' (expected one of: {known})."
        ) from None


def scaled_size(
    size: Tuple[int, int], base_density: Density, target_density: Density
) -> Tuple[int, int]:
    if target_density == base_density:
        return size
    ratio = target_density.scale_factor / base_density.scale_factor
    width, height = size
    return (
        max(1, round_half_away(width * ratio)),
        max(1, round_half_away(height * ratio)),
    )


def scale_to_density(
    base: Image.Image,
    base_density: Density,
    target_density: Density,
    resample: str = DEFAULT_RESAMPLE,
) -> Image.Image:
    """
    Scale `base` (rendered at `base_density`) for `target_density`.

    Returns `base` itself when the densities are equal; callers must treat the
    result as read-only.
    """
    if target_density == base_density:
        return base
    new_size = scaled_size(base.size, base_density, target_density)
    if base.mode != "RGBA":
        base = base.convert("RGBA")
    return base.resize(new_size, resample=resample_filter(resample))


def force_transparent_white(image: Image.Image) -> Image.Image:
    """
    Rewrite transparent black (#00000000) pixels to transparent white (#00FFFFFF).

    Exact match only: partially transparent or non-black transparent pixels are
    left untouched. Returns a new RGBA image.
    """
    arr = np.array(image.convert("RGBA"), dtype=np.uint8)
    mask = np.all(arr == 0, axis=-1)
    arr[mask] = (255, 255, 255, 0)
    return Image.fromarray(arr)
