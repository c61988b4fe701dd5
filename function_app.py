"""Azure Functions entry point: KML Atlas query API.

This module registers the HTTP-triggered functions using the Python v2
programming model.

All business logic lives in the kml_atlas package. This file is purely
the wiring layer between Azure Functions bindings and application code.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import azure.functions as func

from kml_atlas.api.handlers import JSON_MIMETYPE, ApiResponse, PlacemarkHandlers, error_response
from kml_atlas.core.exceptions import PipelineError
from kml_atlas.core.ingress import get_config, get_store

if TYPE_CHECKING:
    from collections.abc import Callable

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

logger = logging.getLogger("kml_atlas.function_app")


def _handlers() -> PlacemarkHandlers:
    config = get_config()
    return PlacemarkHandlers(
        get_store(),
        list_default_limit=config.list_default_limit,
        bbox_default_limit=config.bbox_default_limit,
    )


def _to_http(response: ApiResponse) -> func.HttpResponse:
    return func.HttpResponse(
        body=response.to_json(),
        status_code=response.status,
        mimetype=JSON_MIMETYPE,
    )


def _serve(req: func.HttpRequest, call: Callable[[PlacemarkHandlers], ApiResponse]) -> func.HttpResponse:
    """Build the handlers, invoke *call* with them, and encode the result."""
    try:
        handlers = _handlers()
    except PipelineError as exc:
        logger.exception("Service not configured | url=%s | code=%s", req.url, exc.code)
        return _to_http(error_response(500, exc.message))
    return _to_http(call(handlers))


# ---------------------------------------------------------------------------
# Placemarks
# ---------------------------------------------------------------------------


@app.function_name("list_placemarks")
@app.route(route="placemarks", methods=["GET"])
def list_placemarks(req: func.HttpRequest) -> func.HttpResponse:
    """Paginated placemarks: ``?limit=&offset=&folder=``."""
    return _serve(req, lambda h: h.list_placemarks(req.params))


@app.function_name("get_placemarks_in_bbox")
@app.route(route="placemarks/bbox", methods=["GET"])
def get_placemarks_in_bbox(req: func.HttpRequest) -> func.HttpResponse:
    """Placemarks intersecting ``?min_lon=&min_lat=&max_lon=&max_lat=[&limit=]``."""
    return _serve(req, lambda h: h.get_placemarks_in_bbox(req.params))


@app.function_name("get_placemark")
@app.route(route="placemarks/{id:int}", methods=["GET"])
def get_placemark(req: func.HttpRequest) -> func.HttpResponse:
    return _serve(req, lambda h: h.get_placemark(req.route_params.get("id", "")))


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


@app.function_name("get_timeline")
@app.route(route="timeline", methods=["GET"])
def get_timeline(req: func.HttpRequest) -> func.HttpResponse:
    return _serve(req, lambda h: h.get_timeline())


@app.function_name("get_timeline_events")
@app.route(route="timeline/events", methods=["GET"])
def get_timeline_events(req: func.HttpRequest) -> func.HttpResponse:
    return _serve(req, lambda h: h.get_timeline_events())


# ---------------------------------------------------------------------------
# Folders & stats
# ---------------------------------------------------------------------------


@app.function_name("list_folders")
@app.route(route="folders", methods=["GET"])
def list_folders(req: func.HttpRequest) -> func.HttpResponse:
    return _serve(req, lambda h: h.list_folders())


@app.function_name("get_stats")
@app.route(route="stats", methods=["GET"])
def get_stats(req: func.HttpRequest) -> func.HttpResponse:
    return _serve(req, lambda h: h.get_stats())
