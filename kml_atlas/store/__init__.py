"""Relational placemark store.

- schema: table definitions, engine construction, schema creation
- writer: two-phase import (styles, then placemarks in one transaction)
- placemarks: read-side queries (listing, get-by-id, bbox, timeline, stats)
"""

from kml_atlas.store.placemarks import PlacemarkNotFoundError, PlacemarkStore, StoreQueryError
from kml_atlas.store.schema import SchemaSetupError, create_store_engine, ensure_schema, metadata
from kml_atlas.store.writer import (
    ImportWriteError,
    import_placemarks,
    insert_placemark,
    resolve_style_id,
    truncate_placemarks,
    upsert_styles,
)

__all__ = [
    "ImportWriteError",
    "PlacemarkNotFoundError",
    "PlacemarkStore",
    "SchemaSetupError",
    "StoreQueryError",
    "create_store_engine",
    "ensure_schema",
    "import_placemarks",
    "insert_placemark",
    "metadata",
    "resolve_style_id",
    "truncate_placemarks",
    "upsert_styles",
]
