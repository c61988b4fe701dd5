"""Geometry construction from KML coordinate text.

One builder per geometry kind. Each raises ``GeometryError`` when the
input cannot produce a usable geometry; callers decide whether that drops
the feature (outer geometry) or only the sub-element (a hole).

Ring policy:
- a ring needs at least 3 distinct positions before closing
- an open ring is closed by appending its first position
- an invalid hole is skipped on its own; the polygon keeps its outer ring
  and the remaining holes
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_atlas.core.constants import MIN_LINESTRING_POINTS, MIN_RING_DISTINCT_POINTS
from kml_atlas.ingest._coordinates import parse_coordinates_text
from kml_atlas.ingest._validation import GeometryError
from kml_atlas.models.geometry import LineString, Point, Polygon
from kml_atlas.models.placemark import RawLineString, RawPoint, RawPolygon

if TYPE_CHECKING:
    from kml_atlas.models.geometry import Coordinate, Geometry, Ring
    from kml_atlas.models.placemark import RawGeometry

logger = logging.getLogger("kml_atlas.ingest")


def build_point(text: str) -> Point:
    """Build a Point from the first parsable position in *text*."""
    coords = parse_coordinates_text(text)
    if not coords:
        msg = "Point has no parsable coordinates"
        raise GeometryError(msg)
    lon, lat = coords[0]
    return Point(lon=lon, lat=lat)


def build_linestring(text: str) -> LineString:
    coords = parse_coordinates_text(text)
    if len(coords) < MIN_LINESTRING_POINTS:
        msg = (
            f"LineString has {len(coords)} parsable point(s), "
            f"need at least {MIN_LINESTRING_POINTS}"
        )
        raise GeometryError(msg)
    return LineString(points=tuple(coords))


def close_ring(coords: list[Coordinate], label: str = "ring", *, name: str = "") -> Ring:
    """Validate a ring and return it closed.

    Raises:
        GeometryError: If the ring has fewer than 3 distinct positions.
    """
    distinct = len(set(coords))
    if distinct < MIN_RING_DISTINCT_POINTS:
        msg = (
            f"{label} has {distinct} distinct point(s), "
            f"need at least {MIN_RING_DISTINCT_POINTS}"
        )
        raise GeometryError(msg)

    if coords[0] != coords[-1]:
        logger.warning("Auto-closing unclosed %s of Placemark '%s'", label, name)
        coords = [*coords, coords[0]]

    return tuple(coords)


def build_polygon(outer_text: str, hole_texts: tuple[str, ...] = (), *, name: str = "") -> Polygon:
    """Build a Polygon from outer-boundary text and inner-boundary texts.

    Raises:
        GeometryError: If the outer ring is unusable. Unusable holes are
            logged and skipped instead.
    """
    outer = close_ring(parse_coordinates_text(outer_text), "outer ring", name=name)

    holes: list[Ring] = []
    for idx, hole_text in enumerate(hole_texts):
        try:
            holes.append(close_ring(parse_coordinates_text(hole_text), f"hole {idx}", name=name))
        except GeometryError as exc:
            logger.warning("Skipping hole %d of Placemark '%s': %s", idx, name, exc)

    return Polygon(outer=outer, holes=tuple(holes))


def build_geometry(raw: RawGeometry, *, name: str = "") -> Geometry:
    """Dispatch a raw geometry block to its builder."""
    if isinstance(raw, RawPoint):
        return build_point(raw.coordinates)
    if isinstance(raw, RawLineString):
        return build_linestring(raw.coordinates)
    if isinstance(raw, RawPolygon):
        return build_polygon(raw.outer, raw.holes, name=name)
    msg = f"Unsupported geometry block: {type(raw).__name__}"
    raise GeometryError(msg)
