"""KML ingestion as a composable pipeline.

Reads a nested-folder KML document and flattens it into normalized
placemark records plus style definitions.

The pipeline is split into focused stages:
- **_validation**: well-formed XML / KML root check, ingestion exceptions
- **_coordinates**: coordinate text → ``(lon, lat)`` tuples
- **_geometry**: Point / LineString / Polygon construction, ring closure
- **_normalization**: one raw placemark + folder path → ``PlacemarkRecord``
- **_walker**: folder traversal (explicit stack), style extraction

Failure policy:
- a document that is not KML aborts the whole parse (``KmlParseError``)
- a placemark without a usable geometry is dropped and logged
- a malformed coordinate tuple or hole is dropped, the rest is kept
"""

from __future__ import annotations

import logging
from pathlib import Path

from kml_atlas.ingest._coordinates import parse_coordinates_text
from kml_atlas.ingest._geometry import (
    build_geometry,
    build_linestring,
    build_point,
    build_polygon,
    close_ring,
)
from kml_atlas.ingest._normalization import (
    normalize_placemark,
    partition_extended_data,
    strip_style_marker,
)
from kml_atlas.ingest._validation import (
    GeometryError,
    KmlParseError,
    KmlValidationError,
    load_kml_root,
    read_kml_file,
)
from kml_atlas.ingest._walker import (
    document_container,
    iter_placemarks,
    read_placemark,
    read_style,
    read_styles,
    walk_document,
)
from kml_atlas.models.placemark import ParsedDocument

logger = logging.getLogger("kml_atlas.ingest")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "GeometryError",
    "KmlParseError",
    "KmlValidationError",
    "build_geometry",
    "build_linestring",
    "build_point",
    "build_polygon",
    "close_ring",
    "document_container",
    "iter_placemarks",
    "load_kml_root",
    "normalize_placemark",
    "parse_coordinates_text",
    "parse_kml_bytes",
    "parse_kml_file",
    "partition_extended_data",
    "read_kml_file",
    "read_placemark",
    "read_style",
    "read_styles",
    "strip_style_marker",
    "walk_document",
]


def parse_kml_file(kml_path: Path | str, *, workers: int = 1) -> ParsedDocument:
    """Parse a KML file into placemark records and style definitions.

    Args:
        kml_path: Filesystem path to the KML document.
        workers: Threads used for placemark normalization (1 = inline).

    Returns:
        ``ParsedDocument`` with placemarks in depth-first pre-order.

    Raises:
        KmlParseError: If the file cannot be read or is not well-formed KML.
    """
    kml_path = Path(kml_path)
    logger.info("Parsing KML file: %s", kml_path.name)

    root = read_kml_file(kml_path)
    document = walk_document(root, workers=workers)

    logger.info(
        "Parsed %d placemark(s) and %d style(s) from %s",
        len(document.placemarks),
        len(document.styles),
        kml_path.name,
    )
    return document


def parse_kml_bytes(content: bytes, *, source: str = "<bytes>", workers: int = 1) -> ParsedDocument:
    """Parse in-memory KML content. Same contract as ``parse_kml_file``."""
    root = load_kml_root(content, source=source)
    return walk_document(root, workers=workers)
