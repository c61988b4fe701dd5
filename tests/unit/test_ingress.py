"""Tests for the HTTP ingress helpers.

Covers:
- Optional int parameters default on absence or parse failure
- Required bounding-box parameters: missing, malformed, inverted, zero
- Process-wide store construction from the environment
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from kml_atlas.core.config import ConfigValidationError
from kml_atlas.core.ingress import (
    QueryValidationError,
    get_config,
    get_int_param,
    get_store,
    parse_bbox_params,
)
from kml_atlas.store.placemarks import PlacemarkStore

if TYPE_CHECKING:
    from collections.abc import Iterator

VALID_BBOX = {"min_lon": "-116", "min_lat": "36", "max_lon": "-115", "max_lat": "37"}


class TestGetIntParam:
    def test_present(self) -> None:
        assert get_int_param({"limit": "25"}, "limit", 100) == 25

    def test_absent(self) -> None:
        assert get_int_param({}, "limit", 100) == 100

    def test_empty(self) -> None:
        assert get_int_param({"limit": ""}, "limit", 100) == 100

    def test_unparseable(self) -> None:
        assert get_int_param({"limit": "ten"}, "limit", 100) == 100

    def test_below_minimum(self) -> None:
        assert get_int_param({"offset": "-5"}, "offset", 0, minimum=0) == 0

    def test_minimum_boundary(self) -> None:
        assert get_int_param({"limit": "0"}, "limit", 100, minimum=0) == 0


class TestParseBboxParams:
    def test_valid(self) -> None:
        bbox = parse_bbox_params(VALID_BBOX)
        assert bbox.as_tuple() == (-116.0, 36.0, -115.0, 37.0)

    def test_zero_bounds_allowed(self) -> None:
        bbox = parse_bbox_params({"min_lon": "0", "min_lat": "0", "max_lon": "1", "max_lat": "1"})
        assert bbox.as_tuple() == (0.0, 0.0, 1.0, 1.0)

    def test_missing_bound(self) -> None:
        params = {k: v for k, v in VALID_BBOX.items() if k != "max_lat"}
        with pytest.raises(QueryValidationError, match="missing required bbox parameter\\(s\\): max_lat"):
            parse_bbox_params(params)

    def test_blank_bound_is_missing(self) -> None:
        with pytest.raises(QueryValidationError, match="min_lon"):
            parse_bbox_params({**VALID_BBOX, "min_lon": "  "})

    def test_malformed_bound(self) -> None:
        with pytest.raises(QueryValidationError, match="invalid bbox parameter\\(s\\): min_lat"):
            parse_bbox_params({**VALID_BBOX, "min_lat": "north"})

    def test_infinite_bound(self) -> None:
        with pytest.raises(QueryValidationError, match="max_lon"):
            parse_bbox_params({**VALID_BBOX, "max_lon": "inf"})

    def test_inverted_box(self) -> None:
        with pytest.raises(QueryValidationError, match="greater than") as exc_info:
            parse_bbox_params({**VALID_BBOX, "min_lon": "-114"})
        assert exc_info.value.http_status == 400


class TestGetStore:
    @pytest.fixture(autouse=True)
    def _clear_caches(self) -> Iterator[None]:
        get_config.cache_clear()
        get_store.cache_clear()
        yield
        get_config.cache_clear()
        get_store.cache_clear()

    def test_store_from_environment(self, database_url: str) -> None:
        with patch.dict(os.environ, {"DATABASE_URL": database_url}, clear=True):
            store = get_store()
            assert isinstance(store, PlacemarkStore)
            assert get_store() is store
        assert str(store.engine.url) == database_url

    def test_invalid_configuration(self) -> None:
        with (
            patch.dict(os.environ, {"DATABASE_URL": ""}, clear=True),
            pytest.raises(ConfigValidationError),
        ):
            get_store()
