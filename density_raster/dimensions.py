"""
dimensions.py
=============

Dimension resolution (density-independent units) and the single rounding rule
used for every pixel-dimension computation in the pipeline.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from .errors import ConfigurationError, DocumentDimensionError

__all__ = [
    "round_half_away",
    "validate_explicit_dimension",
    "resolve_dimensions",
    "to_device_pixels",
]


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, ties away from zero.

    Python's built-in `round` uses banker's rounding (round(2.5) == 2), which
    would make output sizes disagree with reference images for exact halves.
    """
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Cannot round non-finite value {value!r}")
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def validate_explicit_dimension(name: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(
            f"Explicit {name} must be a positive number of dp (got {value:g})."
        )
    return value


def resolve_dimensions(
    width_dp: Optional[float],
    height_dp: Optional[float],
    intrinsic_width: float,
    intrinsic_height: float,
) -> Tuple[float, float]:
    """
    Compute the base (density-independent) size to render at.

    Parameters
    ----------
    width_dp, height_dp : float or None
        Explicitly requested size. When only one is given, the other is derived
        from the intrinsic aspect ratio. When both are given they are used as-is
        (the aspect ratio may change).
    intrinsic_width, intrinsic_height : float
        Natural size of the source document.

    Returns
    -------
    (width, height) : Tuple[float, float]

    Raises
    ------
    DocumentDimensionError
        If the intrinsic size is zero (or negative) in either direction.
    ConfigurationError
        If an explicit dimension is not strictly positive.
    """
    if not (intrinsic_width > 0 and intrinsic_height > 0):
        raise DocumentDimensionError(intrinsic_width, intrinsic_height)

    width_dp = validate_explicit_dimension("width", width_dp)
    height_dp = validate_explicit_dimension("height", height_dp)

    if width_dp is not None and height_dp is not None:
        return width_dp, height_dp
    if width_dp is not None:
        return width_dp, width_dp * intrinsic_height / intrinsic_width
    if height_dp is not None:
        return height_dp * intrinsic_width / intrinsic_height, height_dp
    return float(intrinsic_width), float(intrinsic_height)


def to_device_pixels(width: float, height: float, scale_factor: float) -> Tuple[int, int]:
    """dp size * scale factor -> integer device pixels (at least 1x1)."""
    return (
        max(1, round_half_away(width * scale_factor)),
        max(1, round_half_away(height * scale_factor)),
    )
