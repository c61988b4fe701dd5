"""Data models and schemas.

Defines the data structures used throughout the service:
- Geometry variants: Point, LineString, Polygon (WKT-renderable)
- RawPlacemark / PlacemarkRecord / StyleRecord: ingestion-side records
- Placemark / TimelineEvent / BoundingBox: query-side pydantic views
"""

from kml_atlas.models.geometry import Geometry, LineString, Point, Polygon
from kml_atlas.models.placemark import (
    FolderPath,
    KeyValue,
    ParsedDocument,
    PlacemarkRecord,
    RawGeometry,
    RawLineString,
    RawPlacemark,
    RawPoint,
    RawPolygon,
    StyleRecord,
)
from kml_atlas.models.views import BoundingBox, KVPair, Location, Placemark, TimelineEvent

__all__ = [
    "BoundingBox",
    "FolderPath",
    "Geometry",
    "KVPair",
    "KeyValue",
    "LineString",
    "Location",
    "ParsedDocument",
    "Placemark",
    "PlacemarkRecord",
    "Point",
    "Polygon",
    "RawGeometry",
    "RawLineString",
    "RawPlacemark",
    "RawPoint",
    "RawPolygon",
    "StyleRecord",
    "TimelineEvent",
]
