"""Read-side query engines.

- spatial: bounding-box intersection and WKT to GeoJSON re-encoding
- timeline: event recovery from date-stamped placemark names
"""

from kml_atlas.query.spatial import (
    StoredGeometryError,
    bbox_geometry,
    intersects_bbox,
    wkt_to_geojson,
)
from kml_atlas.query.timeline import (
    TIMESTAMP_PATTERNS,
    TimelineCandidate,
    derive_timeline_events,
    extract_point_from_geojson,
    looks_like_event_name,
    parse_timestamp_from_name,
)

__all__ = [
    "StoredGeometryError",
    "TIMESTAMP_PATTERNS",
    "TimelineCandidate",
    "bbox_geometry",
    "derive_timeline_events",
    "extract_point_from_geojson",
    "intersects_bbox",
    "looks_like_event_name",
    "parse_timestamp_from_name",
    "wkt_to_geojson",
]
