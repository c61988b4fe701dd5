"""Data models for the ingestion side of the pipeline.

- ``RawPlacemark``: the transient view of one ``<Placemark>`` element, read
  by the tree walker and discarded after normalization.
- ``PlacemarkRecord``: the flat, normalized record handed to the import
  writer.
- ``StyleRecord``: one ``<Style>`` definition, keyed by its document id.

Raw geometry blocks are a tagged variant (``RawPoint`` / ``RawLineString``
/ ``RawPolygon``) so "no geometry" and "more than one geometry" are both
visible on the node instead of hidden behind three nullable fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from kml_atlas.models.geometry import Geometry

FolderPath = tuple[str, ...]


@dataclass(frozen=True, slots=True)
class KeyValue:
    """One ExtendedData entry. Keys are not unique within a placemark."""

    key: str
    value: str


# ---------------------------------------------------------------------------
# Raw geometry blocks (coordinate text as found in the document)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawPoint:
    kind: ClassVar[str] = "Point"

    coordinates: str


@dataclass(frozen=True, slots=True)
class RawLineString:
    kind: ClassVar[str] = "LineString"

    coordinates: str


@dataclass(frozen=True, slots=True)
class RawPolygon:
    """Outer boundary text plus one text blob per inner boundary."""

    kind: ClassVar[str] = "Polygon"

    outer: str
    holes: tuple[str, ...] = field(default_factory=tuple)


RawGeometry = RawPoint | RawLineString | RawPolygon


@dataclass(frozen=True, slots=True)
class RawPlacemark:
    """A single ``<Placemark>`` as read from the document.

    Attributes:
        name: ``<name>`` text, untrimmed.
        description: ``<description>`` text, untrimmed.
        style_url: ``<styleUrl>`` token, including any leading ``#``.
        geometries: Geometry blocks found on the placemark, ordered
            Point, LineString, Polygon. Normally zero or one entry.
        extended_data: ``Data``/``SimpleData`` entries in document order.
    """

    name: str = ""
    description: str = ""
    style_url: str = ""
    geometries: tuple[RawGeometry, ...] = field(default_factory=tuple)
    extended_data: tuple[KeyValue, ...] = field(default_factory=tuple)

    @property
    def geometry(self) -> RawGeometry | None:
        """The geometry block that wins (first in Point/LineString/Polygon order)."""
        return self.geometries[0] if self.geometries else None

    @property
    def has_multiple_geometries(self) -> bool:
        return len(self.geometries) > 1


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlacemarkRecord:
    """A normalized placemark ready to be written to the store.

    Attributes:
        name: Trimmed placemark name.
        description: Trimmed description text.
        style_id: Style token with the leading marker stripped, or ``None``.
            The import writer nulls it again if no such style exists.
        folder_path: Folder names from document root to the parent folder.
        geometry: Canonical geometry (closed rings, at least 2 line points).
        coordinates_raw: Trimmed source coordinate text (outer ring for
            polygons), kept verbatim for auditing.
        media_links: Values of ``gx_media_links`` entries, in order.
        extended_data: All other ExtendedData entries, duplicates kept.
    """

    name: str
    geometry: Geometry
    description: str = ""
    style_id: str | None = None
    folder_path: FolderPath = field(default_factory=tuple)
    coordinates_raw: str = ""
    media_links: tuple[str, ...] = field(default_factory=tuple)
    extended_data: tuple[KeyValue, ...] = field(default_factory=tuple)

    @property
    def geometry_type(self) -> str:
        return self.geometry.geometry_type

    @property
    def geom_wkt(self) -> str:
        return self.geometry.to_wkt()


@dataclass(frozen=True, slots=True)
class StyleRecord:
    """A ``<Style>`` definition keyed by its document-scoped id."""

    id: str
    icon_href: str | None = None
    icon_scale: float | None = None
    label_scale: float | None = None
    raw_xml: str = ""

    def to_row(self) -> dict[str, object]:
        return {
            "id": self.id,
            "icon_href": self.icon_href,
            "icon_scale": self.icon_scale,
            "label_scale": self.label_scale,
            "raw_xml": self.raw_xml,
        }


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    """Output of one tree walk: placemarks in pre-order plus style definitions."""

    placemarks: list[PlacemarkRecord] = field(default_factory=list)
    styles: list[StyleRecord] = field(default_factory=list)
