"""
document.py
===========

Source document loading.

An `SvgDocument` bundles the raw bytes handed to the vector renderer with the
document's intrinsic size, which the dimension resolver needs before anything
is rendered. The intrinsic size is read from the root element's `width` and
`height` attributes, falling back to the corresponding `viewBox` component when
an attribute is missing or relative (percentages, font-relative units).

Only the root element is inspected; drawing the document is left entirely to
the renderer (see `render.py`).
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from .errors import DocumentDimensionError, DocumentParseError, RenderError

__all__ = [
    "SVG_EXTENSION",
    "SvgDocument",
    "parse_length",
    "parse_view_box",
    "intrinsic_size",
    "load_document",
]

SVG_EXTENSION = "svg"

# CSS absolute units -> user units (px) at 96 dpi
_UNIT_TO_PX = {
    "": 1.0,
    "px": 1.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "mm": 96.0 / 25.4,
    "cm": 96.0 / 2.54,
    "in": 96.0,
}

_LENGTH_RE = re.compile(
    r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*([a-zA-Z%]*)\s*$"
)


@dataclass(frozen=True)
class SvgDocument:
    data: bytes
    width: float
    height: float
    path: Optional[Path] = None

    @property
    def name(self) -> str:
        return str(self.path) if self.path is not None else "<memory>"

    @property
    def size(self) -> Tuple[float, float]:
        return self.width, self.height


def parse_length(value: Optional[str]) -> Optional[float]:
    """
    Parse an absolute SVG length into user units.

    Returns None for missing values and for relative units (%, em, ex, ...)
    which cannot be resolved without a viewport.
    """
    if value is None:
        return None
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    number, unit = m.group(1), m.group(2).lower()
    factor = _UNIT_TO_PX.get(unit)
    if factor is None:
        return None
    return float(number) * factor


def parse_view_box(value: Optional[str]) -> Optional[Tuple[float, float, float, float]]:
    if not value:
        return None
    parts = re.split(r"[\s,]+", value.strip())
    if len(parts) != 4:
        return None
    try:
        x, y, w, h = (float(p) for p in parts)
    except ValueError:
        return None
    return x, y, w, h


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def intrinsic_size(root: ET.Element) -> Tuple[float, float]:
    """
    Natural (width, height) of an `<svg>` root element.

    Raises DocumentDimensionError when neither the attributes nor the viewBox
    define a usable size.
    """
    width = parse_length(root.get("width"))
    height = parse_length(root.get("height"))
    view_box = parse_view_box(root.get("viewBox"))
    if view_box is not None:
        if width is None:
            width = view_box[2]
        if height is None:
            height = view_box[3]
    width = width if width is not None else 0.0
    height = height if height is not None else 0.0
    if width <= 0 or height <= 0:
        raise DocumentDimensionError(width, height)
    return width, height


def load_document(
    source: Union[str, Path, bytes], path: Optional[Path] = None
) -> SvgDocument:
    """
    Load an SVG document from a file path or raw bytes.

    Parameters
    ----------
    source : str | Path | bytes
        File path, or the document bytes themselves.
    path : Path, optional
        Origin of `source` when it is given as bytes (used in messages only).

    Raises
    ------
    RenderError
        The file cannot be read.
    DocumentParseError
        The content is not well-formed XML or its root is not `<svg>`.
    DocumentDimensionError
        The document has no usable intrinsic size.
    """
    if isinstance(source, bytes):
        data = source
    else:
        path = Path(source)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise RenderError(f"'{path}' could not be read: {e.strerror or e}") from e

    label = str(path) if path is not None else "<memory>"
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise DocumentParseError(
            f"'{label}' could not be interpreted as an SVG document: {e}"
        ) from e
    if _local_name(root.tag) != "svg":
        raise DocumentParseError(
            f"'{label}' could not be interpreted as an SVG document "
            f"(root element is <{_local_name(root.tag)}>)."
        )

    width, height = intrinsic_size(root)
    return SvgDocument(data=data, width=width, height=height, path=path)
