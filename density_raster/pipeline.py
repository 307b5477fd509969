"""
pipeline.py
===========

Per-source rasterization pipeline and the multi-file batch runner.

Flow for one source document (linear, terminal on first failure):

    resolve dimensions -> render base (initial density)
        -> for each density (canonical order): scale -> [transparent white] -> write

Intended Usage
--------------
    from density_raster import Rasterizer, RasterizerConfig, DensitySet, Density

    cfg = RasterizerConfig(densities=DensitySet.of(Density.MEDIUM, Density.HIGH))
    rst = Rasterizer(cfg)
    rst.rasterize_file("icons/star.svg", destination="res")
    # -> [res/drawable-mdpi/star.webp, res/drawable-hdpi/star.webp]

Batches of independent sources go through `rasterize_files`, optionally on a
thread pool. Each source is its own job; whether one failure stops the batch
is the caller's choice (`fail_fast`).
"""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from PIL import Image

from .density import Density, DensitySet
from .dimensions import resolve_dimensions, validate_explicit_dimension
from .document import SvgDocument, load_document
from .encode import DEFAULT_FORMAT, ImageEncoder, OutputFormat, PillowEncoder, get_output_format
from .errors import ConfigurationError, DirectoryCreationError, RasterizationError
from .render import CairoSvgRenderer, VectorRenderer, render_base
from .scale import DEFAULT_RESAMPLE, force_transparent_white, resample_filter, scale_to_density
from .writer import write_density

__all__ = [
    "default_densities",
    "RasterizerConfig",
    "RasterJob",
    "JobResult",
    "Rasterizer",
    "rasterize_files",
]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def default_densities() -> DensitySet:
    """Every tier except ldpi, which few devices still use."""
    return DensitySet.from_iterable(d for d in Density if d is not Density.LOW)


@dataclass
class RasterizerConfig:
    densities: DensitySet = field(default_factory=default_densities)
    # Explicit size in dp; None -> derived from the document
    width_dp: Optional[float] = None
    height_dp: Optional[float] = None
    # Output encoding
    output_format: str = DEFAULT_FORMAT
    quality: int = 75
    lossless: bool = False
    # Downscaling filter: box | bilinear | bicubic | lanczos
    resample: str = DEFAULT_RESAMPLE
    # Rewrite #00000000 -> #00FFFFFF before encoding
    force_transparent_white: bool = False
    verbose: bool = False

    def validate(self) -> None:
        """Raise ConfigurationError for anything detectable before rendering."""
        if not isinstance(self.densities, DensitySet):
            self.densities = DensitySet.from_iterable(self.densities)
        validate_explicit_dimension("width", self.width_dp)
        validate_explicit_dimension("height", self.height_dp)
        fmt = get_output_format(self.output_format)
        if not fmt.is_available():
            raise ConfigurationError(
                f"Output format '{fmt.name}' is not supported by the installed Pillow."
            )
        resample_filter(self.resample)
        if not 0 <= self.quality <= 100:
            raise ConfigurationError(f"Quality must be within 0..100 (got {self.quality}).")

    @property
    def format(self) -> OutputFormat:
        return get_output_format(self.output_format)


# ---------------------------------------------------------------------------
# Job / Result
# ---------------------------------------------------------------------------


@dataclass
class RasterJob:
    base: Image.Image
    base_density: Density
    densities: DensitySet
    output_root: Path
    file_name: str


@dataclass
class JobResult:
    source: Path
    outputs: List[Path] = field(default_factory=list)
    error: Optional[RasterizationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Rasterizer
# ---------------------------------------------------------------------------


class Rasterizer:
    """
    Runs the pipeline for one source at a time. Holds no per-job state, so a
    single instance can be shared by the batch runner's worker threads.
    """

    def __init__(
        self,
        cfg: Optional[RasterizerConfig] = None,
        renderer: Optional[VectorRenderer] = None,
        encoder: Optional[ImageEncoder] = None,
    ):
        self.cfg = cfg or RasterizerConfig()
        self.cfg.validate()
        self.renderer = renderer or CairoSvgRenderer()
        self.encoder = encoder or PillowEncoder(
            quality=self.cfg.quality, lossless=self.cfg.lossless
        )

    def resolve(self, document: SvgDocument) -> Tuple[float, float]:
        return resolve_dimensions(self.cfg.width_dp, self.cfg.height_dp, *document.size)

    def render(
        self, document: SvgDocument, output_root: Union[str, Path], file_name: str
    ) -> RasterJob:
        width, height = self.resolve(document)
        base, initial = render_base(
            self.renderer, document, width, height, self.cfg.densities
        )
        if self.cfg.verbose:
            print(
                f"[RASTER] {document.name}: {width:g}x{height:g} dp -> base "
                f"{base.size[0]}x{base.size[1]} px @ {initial.qualifier}"
            )
        return RasterJob(
            base=base,
            base_density=initial,
            densities=self.cfg.densities,
            output_root=Path(output_root),
            file_name=file_name,
        )

    def write_job(self, job: RasterJob) -> List[Path]:
        """Scale + write every density of `job`; aborts on the first failure."""
        fmt = self.cfg.format
        written: List[Path] = []
        for density in job.densities:
            img = scale_to_density(job.base, job.base_density, density, self.cfg.resample)
            if self.cfg.force_transparent_white:
                img = force_transparent_white(img)
            path = write_density(
                img, density, job.output_root, job.file_name, self.encoder, fmt
            )
            written.append(path)
            if self.cfg.verbose:
                print(f"[RASTER]   {density.qualifier:<8} {img.size[0]}x{img.size[1]} -> {path}")
        return written

    def rasterize_document(
        self, document: SvgDocument, output_root: Union[str, Path], file_name: str
    ) -> List[Path]:
        job = self.render(document, output_root, file_name)
        ensure_output_root(job.output_root)
        return self.write_job(job)

    def rasterize_file(
        self, source: Union[str, Path], destination: Optional[Union[str, Path]] = None
    ) -> List[Path]:
        """
        Rasterize one SVG file.

        Output goes to `destination` (created if absent) or, when None, next to
        the source file. The output base name is the source name without its
        extension.
        """
        source = Path(source)
        document = load_document(source)
        output_root = Path(destination) if destination is not None else source.parent
        return self.rasterize_document(document, output_root, source.stem)


def ensure_output_root(output_root: Union[str, Path]) -> Path:
    root = Path(output_root)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(root) from e
    return root


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def _run_one(
    rasterizer: Rasterizer, source: Path, destination: Optional[Path]
) -> JobResult:
    try:
        outputs = rasterizer.rasterize_file(source, destination)
    except RasterizationError as e:
        return JobResult(source=source, error=e)
    return JobResult(source=source, outputs=outputs)


def rasterize_files(
    sources: Iterable[Union[str, Path]],
    rasterizer: Rasterizer,
    destination: Optional[Union[str, Path]] = None,
    jobs: int = 1,
    fail_fast: bool = False,
) -> List[JobResult]:
    """
    Rasterize independent sources.

    Parameters
    ----------
    sources : iterable of paths
    rasterizer : Rasterizer
    destination : path, optional
        Shared output root; None -> each source's own directory.
    jobs : int
        Worker threads. 1 (default) runs sequentially in the calling thread.
    fail_fast : bool
        Stop scheduling further sources after the first failure. Sources
        already running on other workers are allowed to finish.

    Returns
    -------
    List[JobResult]
        In input order, for every source that was attempted.
    """
    paths: Sequence[Path] = [Path(s) for s in sources]
    dest = Path(destination) if destination is not None else None
    if jobs < 1:
        raise ConfigurationError(f"jobs must be >= 1 (got {jobs}).")

    if jobs == 1 or len(paths) <= 1:
        results: List[JobResult] = []
        for p in paths:
            res = _run_one(rasterizer, p, dest)
            results.append(res)
            if not res.ok:
                _report_failure(res)
                if fail_fast:
                    break
        return results

    by_index = {}
    with ThreadPoolExecutor(max_workers=jobs) as ex:
        futures = {ex.submit(_run_one, rasterizer, p, dest): i for i, p in enumerate(paths)}
        for fut in as_completed(futures):
            if fut.cancelled():
                continue
            res = fut.result()
            by_index[futures[fut]] = res
            if not res.ok:
                _report_failure(res)
                if fail_fast:
                    for other in futures:
                        other.cancel()
    return [by_index[i] for i in sorted(by_index)]


def _report_failure(res: JobResult) -> None:
    print(f"[ERROR] {res.source}: {res.error}", file=sys.stderr)
