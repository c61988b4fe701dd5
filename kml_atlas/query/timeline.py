"""Timeline derivation from date-stamped placemark names.

Placemarks whose name starts with ``M/D/YYYY`` are treated as events,
e.g. ``"10/1/2017 09:41:56 PM - Shots reported"``. Each becomes a
``TimelineEvent``:

- ``timestamp``: parsed from the name prefix with the first matching
  entry of ``TIMESTAMP_PATTERNS``; ``None`` if none parses (the event is
  still emitted)
- ``location``: the point, only when the placemark geometry is a Point

Events are ordered by name, not by timestamp. On names sharing a
zero-padding convention this matches chronological order; mixed
``1/…`` and ``10/…`` prefixes do not sort chronologically.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from kml_atlas.models.views import Location, TimelineEvent

if TYPE_CHECKING:
    from collections.abc import Iterable

TIMELINE_NAME_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}")


@dataclass(frozen=True, slots=True)
class TimestampPattern:
    """A name prefix shape and the ``strptime`` format that reads it."""

    prefix: re.Pattern[str]
    fmt: str


#: Tried in order; the first whose prefix matches and parses wins.
TIMESTAMP_PATTERNS: tuple[TimestampPattern, ...] = (
    TimestampPattern(
        re.compile(r"\d{1,2}/\d{1,2}/\d{4}  \d{1,2}:\d{2}:\d{2} [AP]M", re.IGNORECASE),
        "%m/%d/%Y  %I:%M:%S %p",
    ),
    TimestampPattern(
        re.compile(r"\d{1,2}/\d{1,2}/\d{4} \d{1,2}:\d{2}:\d{2} [AP]M", re.IGNORECASE),
        "%m/%d/%Y %I:%M:%S %p",
    ),
)


@dataclass(frozen=True, slots=True)
class TimelineCandidate:
    """The columns of a stored placemark the timeline needs."""

    placemark_id: int
    name: str
    geometry_type: str
    geometry: str
    description: str = ""
    media_links: tuple[str, ...] = field(default_factory=tuple)
    folder_path: tuple[str, ...] = field(default_factory=tuple)


def looks_like_event_name(name: str) -> bool:
    return TIMELINE_NAME_RE.match(name) is not None


def parse_timestamp_from_name(name: str) -> datetime | None:
    """Parse the leading date/time of *name* as UTC, or return ``None``."""
    for pattern in TIMESTAMP_PATTERNS:
        match = pattern.prefix.match(name)
        if match is None:
            continue
        try:
            parsed = datetime.strptime(match.group(0), pattern.fmt)  # noqa: DTZ007
        except ValueError:
            continue
        return parsed.replace(tzinfo=UTC)
    return None


def extract_point_from_geojson(geojson: str) -> Location | None:
    """Return the ``(lat, lon)`` of a GeoJSON Point, or ``None`` if unreadable."""
    try:
        data = json.loads(geojson)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None

    coordinates = data.get("coordinates")
    if not isinstance(coordinates, list) or len(coordinates) < 2:
        return None
    lon, lat = coordinates[0], coordinates[1]
    if not isinstance(lon, int | float) or not isinstance(lat, int | float):
        return None
    return Location(lat=float(lat), lon=float(lon))


def derive_timeline_events(candidates: Iterable[TimelineCandidate]) -> list[TimelineEvent]:
    """Build timeline events for every candidate with a date-like name, sorted by name."""
    events: list[TimelineEvent] = []
    for candidate in candidates:
        if not looks_like_event_name(candidate.name):
            continue

        location = None
        if candidate.geometry_type == "Point":
            location = extract_point_from_geojson(candidate.geometry)

        events.append(
            TimelineEvent(
                timestamp=parse_timestamp_from_name(candidate.name),
                name=candidate.name,
                description=candidate.description or None,
                location=location,
                media_links=list(candidate.media_links) or None,
                placemark_id=candidate.placemark_id,
                folder_path=list(candidate.folder_path),
            )
        )

    events.sort(key=lambda event: event.name)
    return events
