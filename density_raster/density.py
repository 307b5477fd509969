"""
density.py
==========

Density model: the ordered, closed set of Android-style scale tiers.

Each tier carries a fixed scale factor relative to MEDIUM (mdpi = 1.0) and a
canonical output sub-directory name ("drawable-<qualifier>"). Attributes are
kept in an immutable lookup table keyed by enum member rather than on the
members themselves, so the table can be validated once at import time.

Usage
-----
    from density_raster.density import Density, DensitySet

    Density.X_HIGH.scale_factor        # 2.0
    Density.X_HIGH.directory_name      # "drawable-xhdpi"

    ds = DensitySet.of(Density.MEDIUM, Density.HIGH)
    ds.initial                         # Density.HIGH (highest requested tier)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Tuple, Union

from .errors import ConfigurationError

__all__ = [
    "DIRECTORY_PREFIX",
    "Density",
    "DensityInfo",
    "DensitySet",
]

DIRECTORY_PREFIX = "drawable-"


@dataclass(frozen=True)
class DensityInfo:
    qualifier: str
    scale_factor: float

    @property
    def directory_name(self) -> str:
        return f"{DIRECTORY_PREFIX}{self.qualifier}"


class Density(Enum):
    """Declaration order is the canonical (ascending resolution) order."""

    LOW = "ldpi"
    MEDIUM = "mdpi"
    HIGH = "hdpi"
    X_HIGH = "xhdpi"
    XX_HIGH = "xxhdpi"
    XXX_HIGH = "xxxhdpi"

    @property
    def info(self) -> DensityInfo:
        return _DENSITY_TABLE[self]

    @property
    def qualifier(self) -> str:
        return self.info.qualifier

    @property
    def scale_factor(self) -> float:
        return self.info.scale_factor

    @property
    def directory_name(self) -> str:
        return self.info.directory_name

    @classmethod
    def from_qualifier(cls, qualifier: str) -> "Density":
        key = qualifier.strip().lower()
        for density in cls:
            if density.qualifier == key:
                return density
        known = ", ".join(d.qualifier for d in cls)
        raise ConfigurationError(
            f"Unknown density qualifier '{qualifier}' (expected one of: {known})."
        )

    def __str__(self) -> str:
        return self.qualifier


_DENSITY_TABLE: Mapping[Density, DensityInfo] = MappingProxyType(
    {
        Density.LOW: DensityInfo("ldpi", 0.75),
        Density.MEDIUM: DensityInfo("mdpi", 1.0),
        Density.HIGH: DensityInfo("hdpi", 1.5),
        Density.X_HIGH: DensityInfo("xhdpi", 2.0),
        Density.XX_HIGH: DensityInfo("xxhdpi", 3.0),
        Density.XXX_HIGH: DensityInfo("xxxhdpi", 4.0),
    }
)

_CANONICAL_ORDER: Tuple[Density, ...] = tuple(Density)


def _check_table() -> None:
    factors = [d.scale_factor for d in _CANONICAL_ORDER]
    if any(b <= a for a, b in zip(factors, factors[1:])):
        raise RuntimeError("Density scale factors must strictly increase.")
    names = [d.directory_name for d in _CANONICAL_ORDER]
    if len(set(names)) != len(names):
        raise RuntimeError("Density directory names must be unique.")
    if set(_DENSITY_TABLE) != set(_CANONICAL_ORDER):
        raise RuntimeError("Every density needs a table entry.")


_check_table()


# ---------------------------------------------------------------------------
# DensitySet
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DensitySet:
    """
    Non-empty, de-duplicated set of requested densities. Members may be given
    as `Density` values or as qualifier strings ("xhdpi").

    Iteration always follows the canonical declaration order regardless of the
    order the densities were supplied in. `initial` is the highest requested
    tier, i.e. the resolution the source document is rendered at before the
    other tiers are derived from it by downscaling.
    """

    members: Tuple[Density, ...]

    def __post_init__(self):
        if not self.members:
            raise ConfigurationError("At least one density must be specified.")
        requested = {
            Density.from_qualifier(d) if isinstance(d, str) else d for d in self.members
        }
        unknown = [d for d in requested if not isinstance(d, Density)]
        if unknown:
            raise ConfigurationError(f"Not a density: {unknown[0]!r}")
        canonical = tuple(d for d in _CANONICAL_ORDER if d in requested)
        object.__setattr__(self, "members", canonical)

    @classmethod
    def of(cls, *densities: Union[Density, str]) -> "DensitySet":
        return cls(tuple(densities))

    @classmethod
    def from_iterable(cls, densities: Iterable[Union[Density, str]]) -> "DensitySet":
        return cls(tuple(densities))

    @classmethod
    def all(cls) -> "DensitySet":
        return cls(_CANONICAL_ORDER)

    @property
    def initial(self) -> Density:
        return self.members[-1]

    def __iter__(self) -> Iterator[Density]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, density: object) -> bool:
        return density in self.members

    def __str__(self) -> str:
        return ",".join(d.qualifier for d in self.members)
