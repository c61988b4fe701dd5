"""Placemark normalization: one raw node + its folder path → one flat record.

Responsibilities:
- Pick the placemark's geometry (Point before LineString before Polygon)
  and build it; a placemark without a usable geometry is dropped
- Split ExtendedData into media links and generic key/value pairs
- Strip the ``#`` marker from the style reference
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_atlas.core.constants import MEDIA_LINKS_KEY, STYLE_REF_MARKER
from kml_atlas.ingest._geometry import build_geometry
from kml_atlas.ingest._validation import GeometryError
from kml_atlas.models.placemark import PlacemarkRecord, RawPolygon

if TYPE_CHECKING:
    from kml_atlas.models.placemark import FolderPath, KeyValue, RawPlacemark

logger = logging.getLogger("kml_atlas.ingest")


def strip_style_marker(style_url: str) -> str | None:
    """Return the style token without its leading ``#``, or ``None`` if empty."""
    token = style_url.strip().removeprefix(STYLE_REF_MARKER)
    return token or None


def partition_extended_data(
    entries: tuple[KeyValue, ...],
) -> tuple[tuple[str, ...], tuple[KeyValue, ...]]:
    """Split ExtendedData into ``(media_links, other_pairs)``.

    Order and duplicates are preserved on both sides.
    """
    media_links: list[str] = []
    pairs: list[KeyValue] = []
    for entry in entries:
        if entry.key == MEDIA_LINKS_KEY:
            media_links.append(entry.value)
        else:
            pairs.append(entry)
    return tuple(media_links), tuple(pairs)


def normalize_placemark(raw: RawPlacemark, folder_path: FolderPath = ()) -> PlacemarkRecord | None:
    """Normalize one placemark, or return ``None`` if it has no usable geometry."""
    name = raw.name.strip()
    block = raw.geometry

    if block is None:
        logger.debug("Dropping Placemark '%s': no geometry", name)
        return None

    if raw.has_multiple_geometries:
        logger.warning(
            "Placemark '%s' has %d geometry blocks, using %s",
            name,
            len(raw.geometries),
            block.kind,
        )

    try:
        geometry = build_geometry(block, name=name)
    except GeometryError as exc:
        logger.warning("Dropping Placemark '%s' in %s: %s", name, "/".join(folder_path), exc)
        return None

    coordinates_raw = block.outer if isinstance(block, RawPolygon) else block.coordinates
    media_links, extended_data = partition_extended_data(raw.extended_data)

    return PlacemarkRecord(
        name=name,
        description=raw.description.strip(),
        style_id=strip_style_marker(raw.style_url),
        folder_path=tuple(folder_path),
        geometry=geometry,
        coordinates_raw=coordinates_raw.strip(),
        media_links=media_links,
        extended_data=extended_data,
    )
