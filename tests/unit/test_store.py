"""Tests for the read-side placemark store.

Covers:
- Paginated listing and folder filter (any depth)
- Get by id with extended attributes; unknown id
- Bounding-box queries: exact intersection, not envelope overlap
- Folder enumeration and stats
- Query failures surfaced as StoreQueryError; unreadable stored rows as
  StoredGeometryError
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import OperationalError

from kml_atlas.models import BoundingBox, PlacemarkRecord, Point
from kml_atlas.query.spatial import StoredGeometryError
from kml_atlas.store.placemarks import PlacemarkNotFoundError, PlacemarkStore, StoreQueryError
from kml_atlas.store.schema import placemarks
from kml_atlas.store.writer import import_placemarks

if TYPE_CHECKING:
    from sqlalchemy import Engine

SHOTS = "10/1/2017 09:41:56 PM - Shots reported"
PERIMETER = "10/1/2017  10:05:00 PM - Perimeter set"
ROUTE = "10/2/2017 Evacuation route"


def _names(placemarks: list) -> list[str]:
    return [p.name for p in placemarks]


class TestList:
    def test_ordered_by_id(self, loaded_store: PlacemarkStore) -> None:
        placemarks = loaded_store.list()
        assert _names(placemarks) == ["Headquarters", SHOTS, PERIMETER, ROUTE, "Venue"]
        assert [p.id for p in placemarks] == sorted(p.id for p in placemarks)

    def test_pagination(self, loaded_store: PlacemarkStore) -> None:
        assert _names(loaded_store.list(limit=2, offset=1)) == [SHOTS, PERIMETER]

    def test_folder_filter_matches_any_depth(self, loaded_store: PlacemarkStore) -> None:
        assert _names(loaded_store.list(folder="Events")) == [SHOTS, PERIMETER, ROUTE]
        assert _names(loaded_store.list(folder="Routes")) == [ROUTE]

    def test_unknown_folder(self, loaded_store: PlacemarkStore) -> None:
        assert loaded_store.list(folder="Nowhere") == []

    def test_geometry_is_geojson(self, loaded_store: PlacemarkStore) -> None:
        hq = loaded_store.list(limit=1)[0]
        assert json.loads(hq.geometry) == {"type": "Point", "coordinates": [-115.17, 36.1]}
        assert hq.style_id == "icon-red"
        assert hq.folder_path == []

    def test_dangling_style_is_null(self, loaded_store: PlacemarkStore) -> None:
        perimeter = loaded_store.list(limit=1, offset=2)[0]
        assert perimeter.name == PERIMETER
        assert perimeter.style_id is None

    def test_empty_store(self, engine: Engine) -> None:
        assert PlacemarkStore(engine).list() == []


class TestGetById:
    def test_with_extended_data(self, loaded_store: PlacemarkStore) -> None:
        shots_id = loaded_store.list(limit=1, offset=1)[0].id
        shots = loaded_store.get_by_id(shots_id)

        assert shots.name == SHOTS
        assert shots.description == "First reports"
        assert shots.media_links == [
            "https://example.com/media/a.mp4",
            "https://example.com/media/b.mp4",
        ]
        assert [(kv.key, kv.value) for kv in shots.extended_data or []] == [
            ("source", "radio"),
            ("source", "phone"),
        ]

    def test_without_extended_data(self, loaded_store: PlacemarkStore) -> None:
        hq_id = loaded_store.list(limit=1)[0].id
        hq = loaded_store.get_by_id(hq_id)
        assert hq.extended_data is None
        assert "extended_data" not in hq.to_json_dict()

    def test_unknown_id(self, loaded_store: PlacemarkStore) -> None:
        with pytest.raises(PlacemarkNotFoundError, match="999 not found"):
            loaded_store.get_by_id(999)


class TestGetInBBox:
    def test_box_covering_everything(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=-116, min_lat=36, max_lon=-115, max_lat=37)
        assert len(loaded_store.get_in_bbox(bbox)) == 5

    def test_box_elsewhere(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=0, min_lat=0, max_lon=1, max_lat=1)
        assert loaded_store.get_in_bbox(bbox) == []

    def test_envelope_overlap_without_intersection_excluded(self, loaded_store: PlacemarkStore) -> None:
        """The box lies inside the route's envelope but the route never enters it."""
        bbox = BoundingBox(min_lon=-115.169, min_lat=36.092, max_lon=-115.167, max_lat=36.094)
        assert loaded_store.get_in_bbox(bbox) == []

    def test_point_inside_route_envelope(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=-115.1685, min_lat=36.0975, max_lon=-115.1675, max_lat=36.0985)
        assert _names(loaded_store.get_in_bbox(bbox)) == [PERIMETER]

    def test_box_crossing_line(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=-115.166, min_lat=36.094, max_lon=-115.164, max_lat=36.096)
        assert _names(loaded_store.get_in_bbox(bbox)) == [ROUTE]

    def test_limit_applied_in_id_order(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=-116, min_lat=36, max_lon=-115, max_lat=37)
        assert _names(loaded_store.get_in_bbox(bbox, limit=2)) == ["Headquarters", SHOTS]

    def test_zero_limit(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=-116, min_lat=36, max_lon=-115, max_lat=37)
        assert loaded_store.get_in_bbox(bbox, limit=0) == []

    def test_degenerate_box_on_point(self, loaded_store: PlacemarkStore) -> None:
        bbox = BoundingBox(min_lon=-115.168, min_lat=36.098, max_lon=-115.168, max_lat=36.098)
        assert _names(loaded_store.get_in_bbox(bbox)) == [PERIMETER]

    def test_box_edge_matches_rounded_stored_point(self, engine: Engine) -> None:
        """The envelope prefilter sees the same six-decimal shape the store returns."""
        record = PlacemarkRecord(name="p", geometry=Point(lon=1.0000004, lat=1.0))
        import_placemarks(engine, [record], known_styles=frozenset())
        store = PlacemarkStore(engine)

        found = store.get_in_bbox(BoundingBox(min_lon=0.5, min_lat=0.5, max_lon=1.0000002, max_lat=1.5))

        assert _names(found) == ["p"]
        assert json.loads(found[0].geometry)["coordinates"] == [1.0, 1.0]


class TestFoldersAndStats:
    def test_list_folders_sorted_distinct(self, loaded_store: PlacemarkStore) -> None:
        assert loaded_store.list_folders() == ["Areas", "Events", "Routes"]

    def test_stats(self, loaded_store: PlacemarkStore) -> None:
        stats = loaded_store.get_stats()
        assert stats["total_placemarks"] == 5
        assert stats["total_styles"] == 2
        assert stats["geometry_types"] == {"Point": 3, "LineString": 1, "Polygon": 1}
        assert list(stats["top_folders"].items()) == [  # type: ignore[attr-defined]
            ("Events", 3),
            ("Areas", 1),
            ("Routes", 1),
        ]

    def test_stats_empty_store(self, engine: Engine) -> None:
        stats = PlacemarkStore(engine).get_stats()
        assert stats == {
            "total_placemarks": 0,
            "total_styles": 0,
            "geometry_types": {},
            "top_folders": {},
        }


class TestQueryFailures:
    def test_database_error_wrapped(self, loaded_store: PlacemarkStore) -> None:
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        with (
            patch.object(loaded_store.engine, "connect", side_effect=error),
            pytest.raises(StoreQueryError, match="Failed to query placemarks") as exc_info,
        ):
            loaded_store.list()
        assert exc_info.value.retryable is True

    def test_missing_tables(self, database_url: str) -> None:
        store = PlacemarkStore.from_url(database_url)
        with pytest.raises(StoreQueryError):
            store.list_folders()

    def test_unreadable_stored_geometry(self, engine: Engine) -> None:
        with engine.begin() as conn:
            placemark_id = conn.execute(
                insert(placemarks).values(
                    name="broken",
                    folder_path=[],
                    geometry_type="Point",
                    geom_wkt="POINT(abc)",
                    min_lon=0.0,
                    min_lat=0.0,
                    max_lon=0.0,
                    max_lat=0.0,
                )
            ).inserted_primary_key[0]

        with pytest.raises(StoredGeometryError, match="not valid WKT") as exc_info:
            PlacemarkStore(engine).get_by_id(placemark_id)
        assert exc_info.value.category == "contract"
