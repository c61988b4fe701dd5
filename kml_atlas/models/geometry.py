"""Canonical geometry variants for imported placemarks.

A placemark carries exactly one of ``Point``, ``LineString`` or
``Polygon``. The variants are frozen value objects built by
``kml_atlas.ingest._geometry``. Each converts to a shapely geometry, which
renders the stored WKT at fixed precision and reports the envelope of
that stored shape (used by the store's bounding-box prefilter).

All coordinates are WGS 84 ``(lon, lat)``. Out-of-range values are not
rejected here; the coordinate parser passes them through unchecked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

import shapely
from shapely import geometry as shapely_geometry

from kml_atlas.core.constants import WKT_PRECISION

if TYPE_CHECKING:
    from shapely.geometry.base import BaseGeometry

Coordinate = tuple[float, float]
Ring = tuple[Coordinate, ...]
Bounds = tuple[float, float, float, float]


class _ShapeMixin:
    """WKT and envelope shared by every variant, both taken from the rounded shape."""

    __slots__ = ()

    def to_shape(self) -> BaseGeometry:
        raise NotImplementedError

    def to_wkt(self) -> str:
        return shapely.to_wkt(self.to_shape(), rounding_precision=WKT_PRECISION, trim=False)

    @property
    def bounds(self) -> Bounds:
        """Envelope of the geometry as stored, i.e. after WKT rounding."""
        return tuple(shapely.from_wkt(self.to_wkt()).bounds)  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class Point(_ShapeMixin):
    """A single position."""

    geometry_type: ClassVar[str] = "Point"

    lon: float
    lat: float

    def to_shape(self) -> BaseGeometry:
        return shapely_geometry.Point(self.lon, self.lat)


@dataclass(frozen=True, slots=True)
class LineString(_ShapeMixin):
    """An ordered path of at least two positions."""

    geometry_type: ClassVar[str] = "LineString"

    points: Ring

    def to_shape(self) -> BaseGeometry:
        return shapely_geometry.LineString(self.points)


@dataclass(frozen=True, slots=True)
class Polygon(_ShapeMixin):
    """An outer ring with zero or more interior rings (holes).

    Every ring is closed (first position == last position) and has at
    least four positions. The builder guarantees this; the model only
    stores it.
    """

    geometry_type: ClassVar[str] = "Polygon"

    outer: Ring
    holes: tuple[Ring, ...] = field(default_factory=tuple)

    @property
    def rings(self) -> tuple[Ring, ...]:
        return (self.outer, *self.holes)

    def to_shape(self) -> BaseGeometry:
        return shapely_geometry.Polygon(self.outer, self.holes)


Geometry = Point | LineString | Polygon
