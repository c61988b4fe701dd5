"""Shared constants.

Centralises the reserved KML keys, default paths and limits, and the WKT
number formatting used across ingestion, storage, and the HTTP layer.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# KML document conventions
# ---------------------------------------------------------------------------

MEDIA_LINKS_KEY: str = "gx_media_links"
"""ExtendedData key whose values are media links rather than attributes."""

STYLE_REF_MARKER: str = "#"
"""Leading character of a document-local ``styleUrl`` reference."""

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

WKT_PRECISION: int = 6
"""Fractional digits written per ordinate (~0.1 m at the equator)."""

MIN_RING_DISTINCT_POINTS: int = 3
"""A ring needs 3 distinct points before closure (4 positions after)."""

MIN_LINESTRING_POINTS: int = 2

# ---------------------------------------------------------------------------
# Defaults (overridable via AtlasConfig)
# ---------------------------------------------------------------------------

DEFAULT_DATABASE_URL: str = "sqlite:///data/atlas.db"
DEFAULT_KML_PATH: str = "data/raw/doc.kml"
DEFAULT_LIST_LIMIT: int = 100
DEFAULT_BBOX_LIMIT: int = 1000
TOP_FOLDERS_LIMIT: int = 10
