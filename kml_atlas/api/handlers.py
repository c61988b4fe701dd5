"""Framework-independent request handlers.

Each handler takes the already-extracted query parameters (and route
values) of one request and returns an ``ApiResponse``. Azure Functions
wiring in ``function_app.py`` only translates to and from
``func.HttpRequest`` / ``func.HttpResponse``.

Every ``PipelineError`` is answered with its ``http_status`` and an
``{"error": message}`` body.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kml_atlas.core.constants import DEFAULT_BBOX_LIMIT, DEFAULT_LIST_LIMIT
from kml_atlas.core.exceptions import PipelineError
from kml_atlas.core.ingress import get_int_param, parse_bbox_params

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from kml_atlas.store.placemarks import PlacemarkStore

logger = logging.getLogger("kml_atlas.api")

JSON_MIMETYPE = "application/json"


@dataclass(frozen=True, slots=True)
class ApiResponse:
    status: int
    body: Any

    def to_json(self) -> str:
        return json.dumps(self.body)


def error_response(status: int, message: str) -> ApiResponse:
    return ApiResponse(status, {"error": message})


class PlacemarkHandlers:
    """HTTP handlers over one ``PlacemarkStore``.

    Args:
        store: Query interface to serve from.
        list_default_limit: Page size when ``limit`` is absent or invalid.
        bbox_default_limit: Result ceiling when ``limit`` is absent or invalid.
    """

    def __init__(
        self,
        store: PlacemarkStore,
        *,
        list_default_limit: int = DEFAULT_LIST_LIMIT,
        bbox_default_limit: int = DEFAULT_BBOX_LIMIT,
    ) -> None:
        self._store = store
        self._list_default_limit = list_default_limit
        self._bbox_default_limit = bbox_default_limit

    def _guard(self, operation: str, fn: Callable[[], ApiResponse]) -> ApiResponse:
        try:
            return fn()
        except PipelineError as exc:
            log = logger.warning if exc.http_status < 500 else logger.error
            log(
                "Request failed | operation=%s | status=%d | code=%s | error=%s",
                operation,
                exc.http_status,
                exc.code,
                exc.message,
            )
            return error_response(exc.http_status, exc.message)

    # -- placemarks --------------------------------------------------------

    def list_placemarks(self, params: Mapping[str, str]) -> ApiResponse:
        limit = get_int_param(params, "limit", self._list_default_limit, minimum=0)
        offset = get_int_param(params, "offset", 0, minimum=0)
        folder = params.get("folder", "")

        def run() -> ApiResponse:
            placemarks = self._store.list(limit=limit, offset=offset, folder=folder)
            return ApiResponse(
                200,
                {
                    "placemarks": [p.to_json_dict() for p in placemarks],
                    "limit": limit,
                    "offset": offset,
                },
            )

        return self._guard("list_placemarks", run)

    def get_placemark(self, placemark_id: str) -> ApiResponse:
        try:
            parsed_id = int(placemark_id)
        except (TypeError, ValueError):
            return error_response(400, "invalid id")

        def run() -> ApiResponse:
            return ApiResponse(200, self._store.get_by_id(parsed_id).to_json_dict())

        return self._guard("get_placemark", run)

    def get_placemarks_in_bbox(self, params: Mapping[str, str]) -> ApiResponse:
        def run() -> ApiResponse:
            bbox = parse_bbox_params(params)
            limit = get_int_param(params, "limit", self._bbox_default_limit, minimum=0)
            placemarks = self._store.get_in_bbox(bbox, limit=limit)
            return ApiResponse(
                200,
                {
                    "placemarks": [p.to_json_dict() for p in placemarks],
                    "bbox": bbox.to_json_dict(),
                    "count": len(placemarks),
                },
            )

        return self._guard("get_placemarks_in_bbox", run)

    # -- timeline ----------------------------------------------------------

    def get_timeline(self) -> ApiResponse:
        def run() -> ApiResponse:
            events = [event.to_json_dict() for event in self._store.get_timeline()]
            return ApiResponse(200, {"events": events, "count": len(events)})

        return self._guard("get_timeline", run)

    def get_timeline_events(self) -> ApiResponse:
        def run() -> ApiResponse:
            return ApiResponse(200, [event.to_json_dict() for event in self._store.get_timeline()])

        return self._guard("get_timeline_events", run)

    # -- folders & stats ---------------------------------------------------

    def list_folders(self) -> ApiResponse:
        def run() -> ApiResponse:
            folders = self._store.list_folders()
            return ApiResponse(200, {"folders": folders, "count": len(folders)})

        return self._guard("list_folders", run)

    def get_stats(self) -> ApiResponse:
        return self._guard("get_stats", lambda: ApiResponse(200, self._store.get_stats()))
