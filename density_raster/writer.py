"""
writer.py
=========

Per-density writer.

Output layout:

    <output_root>/<density.directory_name>/<file_name>.<ext>

The density directory is handled as a scoped resource (`density_directory`):
it is created on entry (recursively, tolerating concurrent creation) and, if
anything inside the scope fails, whatever this scope put on disk is removed
before the error propagates. A directory the scope created itself is removed
as well, so a failed density never leaves a half-populated directory behind.

Rollback is deliberately narrower than deleting the whole density directory:
a directory that already existed is kept (only this call's partial file goes),
and a created directory is only removed while it is empty and no other scope in
this process is still writing into it. Files from earlier runs and from
parallel jobs sharing the same `drawable-*` directory therefore survive.

Bytes are written to a hidden temporary file next to the target and moved into
place with `os.replace`, so the target name never refers to a truncated file.
"""

from __future__ import annotations

import contextlib
import os
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Set, Union

from PIL import Image

from .density import Density
from .encode import ImageEncoder, OutputFormat
from .errors import DirectoryCreationError, EncodeOrWriteError, RasterizationError

__all__ = [
    "DensityDirectory",
    "density_directory",
    "write_density",
]

# Open scopes per density directory, and the directories those scopes created.
# Guarded by one lock so creation and removal never interleave.
_open_scopes: Dict[Path, int] = {}
_created_dirs: Set[Path] = set()
_scopes_lock = threading.Lock()


class DensityDirectory:
    def __init__(self, path: Path, created: bool):
        self.path = path
        self.created = created
        self._pending: List[Path] = []

    def write_bytes(self, target: Path, data: bytes) -> Path:
        tmp = target.with_name(
            f".{target.name}.{os.getpid()}.{threading.get_ident()}.tmp"
        )
        self._pending.append(tmp)
        try:
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, target)
        except OSError as e:
            raise EncodeOrWriteError(f"Could not write '{target}': {e}") from e
        return target

    def rollback(self, remove_directory: bool) -> None:
        # Best effort: a failing cleanup must not mask the original error.
        for tmp in self._pending:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
        self._pending.clear()
        if remove_directory:
            with contextlib.suppress(OSError):
                # Only succeeds when empty.
                self.path.rmdir()


def _enter(directory: Path) -> DensityDirectory:
    key = directory.absolute()
    with _scopes_lock:
        created = not directory.is_dir()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(directory) from e
        _open_scopes[key] = _open_scopes.get(key, 0) + 1
        if created:
            _created_dirs.add(key)
    return DensityDirectory(directory, created)


def _leave(scope: DensityDirectory, failed: bool) -> None:
    key = scope.path.absolute()
    with _scopes_lock:
        remaining = _open_scopes[key] - 1
        if remaining:
            _open_scopes[key] = remaining
            if failed:
                scope.rollback(remove_directory=False)
            return
        del _open_scopes[key]
        created = key in _created_dirs
        _created_dirs.discard(key)
        if failed:
            scope.rollback(remove_directory=created)


@contextlib.contextmanager
def density_directory(
    output_root: Union[str, Path], density: Density
) -> Iterator[DensityDirectory]:
    scope = _enter(Path(output_root) / density.directory_name)
    try:
        yield scope
    except BaseException:
        _leave(scope, failed=True)
        raise
    _leave(scope, failed=False)


def write_density(
    image: Image.Image,
    density: Density,
    output_root: Union[str, Path],
    file_name: str,
    encoder: ImageEncoder,
    output_format: OutputFormat,
) -> Path:
    """
    Encode `image` and write it to the slot of `density`.

    Returns the path of the written file. Raises `DirectoryCreationError` or
    `EncodeOrWriteError`; in the latter case the density directory has been
    rolled back.
    """
    with density_directory(output_root, density) as scope:
        target = scope.path / output_format.file_name(file_name)
        try:
            data = encoder.encode(image, output_format)
        except RasterizationError:
            raise
        except Exception as e:
            raise EncodeOrWriteError(
                f"Could not encode '{target.name}' for {density.qualifier}: {e}"
            ) from e
        scope.write_bytes(target, data)
    return target
