"""
errors.py
=========

Exception hierarchy for the density rasterization pipeline.

Every failure the pipeline surfaces derives from `RasterizationError` so that
callers (the CLI batch loop in particular) can report a single terminal failure
per source file without catching unrelated programming errors.

    RasterizationError
    ├── ConfigurationError          (detected before rendering, no side effects)
    │   └── DocumentDimensionError  (degenerate intrinsic size)
    ├── RenderError                 (source unreadable / renderer failure)
    │   └── DocumentParseError      (not a well-formed SVG document)
    └── WriteError
        ├── DirectoryCreationError  (output directory cannot be created)
        └── EncodeOrWriteError      (encoder / disk failure, triggers rollback)
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

__all__ = [
    "RasterizationError",
    "ConfigurationError",
    "DocumentDimensionError",
    "RenderError",
    "DocumentParseError",
    "WriteError",
    "DirectoryCreationError",
    "EncodeOrWriteError",
]


class RasterizationError(Exception):
    """Base class for all pipeline failures."""


class ConfigurationError(RasterizationError):
    pass


class DocumentDimensionError(ConfigurationError):
    def __init__(self, width: float, height: float):
        super().__init__(
            f"Document has a degenerate intrinsic size ({width:g}x{height:g})."
        )
        self.width = width
        self.height = height


class RenderError(RasterizationError):
    pass


class DocumentParseError(RenderError):
    pass


class WriteError(RasterizationError):
    pass


class DirectoryCreationError(WriteError):
    def __init__(self, directory: Union[str, Path]):
        super().__init__(f"Directory '{directory}' could not be created.")
        self.directory = Path(directory)


class EncodeOrWriteError(WriteError):
    pass
