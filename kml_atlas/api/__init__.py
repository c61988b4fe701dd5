"""HTTP-facing request handlers (no framework dependency)."""

from kml_atlas.api.handlers import ApiResponse, PlacemarkHandlers, error_response

__all__ = ["ApiResponse", "PlacemarkHandlers", "error_response"]
