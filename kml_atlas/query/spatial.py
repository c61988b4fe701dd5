"""Spatial query helpers.

The store keeps each geometry as WKT together with its envelope
(``min_lon``, ``min_lat``, ``max_lon``, ``max_lat``). A bounding-box query
is answered in two steps:

1. the store selects candidates whose envelope overlaps the box
   (cheap, index-backed);
2. ``intersects_bbox`` keeps only candidates whose actual shape
   intersects the box (shapely), so a line whose envelope overlaps a box
   corner but never enters it is not returned.

Results leave the store as GeoJSON text (``wkt_to_geojson``).
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import TYPE_CHECKING

import shapely
from shapely.errors import ShapelyError
from shapely.geometry import LineString, Point, box, mapping

from kml_atlas.core.exceptions import ContractError

if TYPE_CHECKING:
    from shapely.geometry.base import BaseGeometry

    from kml_atlas.models.views import BoundingBox


class StoredGeometryError(ContractError):
    """Raised when a stored geometry can no longer be read back."""

    default_stage = "query"
    default_code = "STORED_GEOMETRY_INVALID"


def bbox_geometry(bbox: BoundingBox) -> BaseGeometry:
    """Return the query box as a shapely polygon (a point or line if degenerate)."""
    min_lon, min_lat, max_lon, max_lat = bbox.as_tuple()
    if min_lon == max_lon or min_lat == max_lat:
        if (min_lon, min_lat) == (max_lon, max_lat):
            return Point(min_lon, min_lat)
        return LineString([(min_lon, min_lat), (max_lon, max_lat)])
    return box(min_lon, min_lat, max_lon, max_lat)


def intersects_bbox(geom_wkt: str, area: BaseGeometry) -> bool:
    """Exact intersection test of a stored WKT geometry against the query area."""
    return _load_wkt(geom_wkt).intersects(area)


def wkt_to_geojson(geom_wkt: str) -> str:
    """Re-encode stored WKT as compact GeoJSON geometry text."""
    return json.dumps(mapping(_load_wkt(geom_wkt)), separators=(",", ":"))


@lru_cache(maxsize=4096)
def _load_wkt(geom_wkt: str) -> BaseGeometry:
    try:
        return shapely.from_wkt(geom_wkt)
    except ShapelyError as exc:
        msg = f"Stored geometry is not valid WKT: {geom_wkt[:80]!r}"
        raise StoredGeometryError(msg) from exc
