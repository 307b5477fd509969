"""
encode.py
=========

Image encoder capability and the supported output formats.

`ImageEncoder.encode(image, output_format) -> bytes` is the only thing the
writer needs; `PillowEncoder` is the default implementation. Encoding happens
fully in memory so nothing touches the filesystem until the bytes are ready.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Protocol

from PIL import Image, features

from .errors import ConfigurationError, EncodeOrWriteError

__all__ = [
    "OutputFormat",
    "OUTPUT_FORMATS",
    "DEFAULT_FORMAT",
    "get_output_format",
    "ImageEncoder",
    "PillowEncoder",
]


@dataclass(frozen=True)
class OutputFormat:
    name: str
    extension: str
    pil_format: str
    # Pillow feature that must be compiled in for this format (None = always available)
    feature: Any = None

    def file_name(self, base_name: str) -> str:
        return f"{base_name}.{self.extension}"

    def is_available(self) -> bool:
        return self.feature is None or bool(features.check(self.feature))


OUTPUT_FORMATS: Mapping[str, OutputFormat] = MappingProxyType(
    {
        "webp": OutputFormat("webp", "webp", "WEBP", feature="webp"),
        "png": OutputFormat("png", "png", "PNG"),
    }
)

DEFAULT_FORMAT = "webp"


def get_output_format(name: str) -> OutputFormat:
    fmt = OUTPUT_FORMATS.get(name.lower().lstrip("."))
    if fmt is None:
        known = ", ".join(OUTPUT_FORMATS)
        raise ConfigurationError(
            f"Unsupported output format '{name}' (expected one of: {known})."
        )
    return fmt


class ImageEncoder(Protocol):
    def encode(self, image: Image.Image, output_format: OutputFormat) -> bytes:
        ...


class PillowEncoder:
    """
    Encode with Pillow.

    WebP is written lossy at `quality` unless `lossless` is set. `exact` keeps
    the RGB values of fully transparent pixels, otherwise libwebp is free to
    discard them and the transparent-white rewrite would be lost.
    """

    def __init__(self, quality: int = 75, lossless: bool = False, method: int = 4):
        if not 0 <= quality <= 100:
            raise ConfigurationError(f"Quality must be within 0..100 (got {quality}).")
        if not 0 <= method <= 6:
            raise ConfigurationError(f"WebP method must be within 0..6 (got {method}).")
        self.quality = quality
        self.lossless = lossless
        self.method = method

    def _save_params(self, output_format: OutputFormat) -> Dict[str, Any]:
        if output_format.pil_format == "WEBP":
            return {
                "quality": self.quality,
                "lossless": self.lossless,
                "method": self.method,
                "exact": True,
            }
        if output_format.pil_format == "PNG":
            return {"optimize": False}
        return {}

    def encode(self, image: Image.Image, output_format: OutputFormat) -> bytes:
        if not output_format.is_available():
            raise EncodeOrWriteError(
                f"This Pillow build has no {output_format.name.upper()} support."
            )
        buf = io.BytesIO()
        try:
            image.save(
                buf,
                format=output_format.pil_format,
                **self._save_params(output_format),
            )
        except (OSError, ValueError, KeyError) as e:
            raise EncodeOrWriteError(
                f"Could not encode image as {output_format.name.upper()}: {e}"
            ) from e
        return buf.getvalue()
