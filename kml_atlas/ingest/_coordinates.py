"""KML coordinate text parsing.

KML writes positions as ``lon,lat[,alt]`` tuples separated by whitespace.
Parsing is tolerant: a tuple that does not yield two finite numbers is
skipped and the rest of the text is still used. Longitude and latitude
ranges are not checked.
"""

from __future__ import annotations

import math

from kml_atlas.models.geometry import Coordinate


def parse_coordinates_text(text: str) -> list[Coordinate]:
    """Parse KML coordinate text (``lon,lat,alt lon,lat,alt ...``) to (lon, lat) tuples.

    Altitude is dropped. Malformed tuples are skipped, valid ones keep
    their relative order.
    """
    coords: list[Coordinate] = []
    for token in text.split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lon = float(parts[0])
            lat = float(parts[1])
        except ValueError:
            continue
        if not (math.isfinite(lon) and math.isfinite(lat)):
            continue
        coords.append((lon, lat))
    return coords
