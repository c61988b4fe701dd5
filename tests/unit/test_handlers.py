"""Tests for the framework-independent HTTP handlers.

Covers:
- Response envelopes (placemarks/limit/offset, events/count, folders/count, bbox echo)
- Parameter defaults and fallbacks
- Error mapping: 400 (bad input), 404 (unknown id), 500 (store failure)
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from kml_atlas.api.handlers import ApiResponse, PlacemarkHandlers
from kml_atlas.store.placemarks import PlacemarkStore, StoreQueryError

BBOX = {"min_lon": "-116", "min_lat": "36", "max_lon": "-115", "max_lat": "37"}


@pytest.fixture()
def handlers(loaded_store: PlacemarkStore) -> PlacemarkHandlers:
    return PlacemarkHandlers(loaded_store, list_default_limit=3, bbox_default_limit=4)


@pytest.fixture()
def failing_handlers() -> PlacemarkHandlers:
    store = MagicMock(spec=PlacemarkStore)
    error = StoreQueryError("Failed to query: database is locked")
    for method in ("list", "get_by_id", "get_in_bbox", "get_timeline", "list_folders", "get_stats"):
        getattr(store, method).side_effect = error
    return PlacemarkHandlers(store)


class TestApiResponse:
    def test_to_json(self) -> None:
        assert json.loads(ApiResponse(200, {"a": [1]}).to_json()) == {"a": [1]}


class TestListPlacemarks:
    def test_default_limit(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.list_placemarks({})
        assert response.status == 200
        assert response.body["limit"] == 3
        assert response.body["offset"] == 0
        assert len(response.body["placemarks"]) == 3

    def test_unparseable_params_fall_back(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.list_placemarks({"limit": "many", "offset": "-2"})
        assert response.body["limit"] == 3
        assert response.body["offset"] == 0

    def test_folder_filter(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.list_placemarks({"folder": "Routes", "limit": "10"})
        assert [p["name"] for p in response.body["placemarks"]] == ["10/2/2017 Evacuation route"]

    def test_body_is_json_serialisable(self, handlers: PlacemarkHandlers) -> None:
        payload = json.loads(handlers.list_placemarks({"limit": "1"}).to_json())
        placemark = payload["placemarks"][0]
        assert placemark["name"] == "Headquarters"
        assert placemark["geometry_type"] == "Point"
        assert json.loads(placemark["geometry"])["type"] == "Point"
        assert "description" not in placemark


class TestGetPlacemark:
    def test_found(self, handlers: PlacemarkHandlers, loaded_store: PlacemarkStore) -> None:
        venue_id = loaded_store.list(folder="Areas")[0].id
        response = handlers.get_placemark(str(venue_id))
        assert response.status == 200
        assert response.body["name"] == "Venue"
        assert response.body["extended_data"] == [{"key": "capacity", "value": "22000"}]

    def test_not_found(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_placemark("999")
        assert response.status == 404
        assert "not found" in response.body["error"]

    def test_invalid_id(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_placemark("abc")
        assert response.status == 400
        assert response.body == {"error": "invalid id"}


class TestBBox:
    def test_bbox_envelope(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_placemarks_in_bbox(BBOX)
        assert response.status == 200
        assert response.body["count"] == 4  # bbox_default_limit
        assert response.body["bbox"] == {
            "min_lon": -116.0,
            "min_lat": 36.0,
            "max_lon": -115.0,
            "max_lat": 37.0,
        }

    def test_explicit_limit(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_placemarks_in_bbox({**BBOX, "limit": "1"})
        assert response.body["count"] == 1

    def test_missing_bound_is_400(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_placemarks_in_bbox({"min_lon": "1"})
        assert response.status == 400
        assert "missing required bbox" in response.body["error"]

    def test_malformed_bound_is_400(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_placemarks_in_bbox({**BBOX, "max_lat": "x"})
        assert response.status == 400

    def test_store_not_touched_on_bad_input(self, failing_handlers: PlacemarkHandlers) -> None:
        response = failing_handlers.get_placemarks_in_bbox({})
        assert response.status == 400


class TestTimelineFoldersStats:
    def test_timeline_envelope(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_timeline()
        assert response.status == 200
        assert response.body["count"] == 3
        assert len(response.body["events"]) == 3
        assert response.body["events"][1]["timestamp"] == "2017-10-01T21:41:56Z"

    def test_timeline_events_bare_list(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_timeline_events()
        assert isinstance(response.body, list)
        assert [e["name"] for e in response.body] == [e["name"] for e in handlers.get_timeline().body["events"]]

    def test_folders(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.list_folders()
        assert response.body == {"folders": ["Areas", "Events", "Routes"], "count": 3}

    def test_stats(self, handlers: PlacemarkHandlers) -> None:
        response = handlers.get_stats()
        assert response.status == 200
        assert response.body["total_placemarks"] == 5


class TestStoreFailures:
    @pytest.mark.parametrize(
        "call",
        [
            lambda h: h.list_placemarks({}),
            lambda h: h.get_placemark("1"),
            lambda h: h.get_placemarks_in_bbox(BBOX),
            lambda h: h.get_timeline(),
            lambda h: h.get_timeline_events(),
            lambda h: h.list_folders(),
            lambda h: h.get_stats(),
        ],
    )
    def test_store_error_is_500(self, failing_handlers: PlacemarkHandlers, call: object) -> None:
        response = call(failing_handlers)  # type: ignore[operator]
        assert response.status == 500
        assert response.body == {"error": "Failed to query: database is locked"}
