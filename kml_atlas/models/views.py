"""Pydantic models for the query side (what the API returns).

These mirror the JSON documents served by the HTTP layer. Optional fields
are omitted from the JSON when empty (``to_json_dict`` uses
``exclude_none``), so a placemark without a style or a timeline event
without a location simply lacks the key.

Geometry crosses this boundary as GeoJSON text.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class JsonModel(BaseModel):
    """Base with the serialisation used by the API layer."""

    def to_json_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)


class KVPair(JsonModel):
    """One extended-attribute pair of a placemark."""

    key: str
    value: str


class Placemark(JsonModel):
    """A stored placemark as served by list, get-by-id and bbox queries.

    Attributes:
        id: Store-assigned identity.
        geometry: GeoJSON geometry text.
        extended_data: Only populated by get-by-id.
    """

    id: int
    name: str
    description: str | None = None
    style_id: str | None = None
    folder_path: list[str] = Field(default_factory=list)
    geometry_type: str
    geometry: str
    coordinates_raw: str | None = None
    media_links: list[str] | None = None
    created_at: datetime | None = None
    extended_data: list[KVPair] | None = None


class Location(JsonModel):
    lat: float
    lon: float


class TimelineEvent(JsonModel):
    """A chronological event recovered from a date-stamped placemark name.

    Derived on every query; never persisted.
    """

    timestamp: datetime | None = None
    name: str
    description: str | None = None
    location: Location | None = None
    media_links: list[str] | None = None
    placemark_id: int
    folder_path: list[str] = Field(default_factory=list)


class BoundingBox(JsonModel):
    """Axis-aligned lon/lat rectangle used by spatial queries."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @model_validator(mode="after")
    def _check_order(self) -> BoundingBox:
        if self.min_lon > self.max_lon:
            msg = f"min_lon ({self.min_lon}) is greater than max_lon ({self.max_lon})"
            raise ValueError(msg)
        if self.min_lat > self.max_lat:
            msg = f"min_lat ({self.min_lat}) is greater than max_lat ({self.max_lat})"
            raise ValueError(msg)
        return self

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)
