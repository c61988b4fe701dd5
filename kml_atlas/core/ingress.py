"""Thin ingress boundary helpers for the HTTP entrypoints.

Centralises the transport concerns so that ``function_app.py`` contains
only route bindings and handoff:

- **get_int_param**: optional integer query parameters that fall back to
  a default when absent or unparseable.
- **parse_bbox_params**: the four required bounding-box bounds; missing or
  malformed values are rejected with ``QueryValidationError`` before any
  store access.
- **get_store**: one ``PlacemarkStore`` per process, built from
  ``AtlasConfig.from_env()``.
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import TYPE_CHECKING

import pydantic

from kml_atlas.core.config import AtlasConfig
from kml_atlas.core.exceptions import ValidationError
from kml_atlas.models.views import BoundingBox

if TYPE_CHECKING:
    from collections.abc import Mapping

    from kml_atlas.store.placemarks import PlacemarkStore

logger = logging.getLogger("kml_atlas.core.ingress")

BBOX_PARAMS = ("min_lon", "min_lat", "max_lon", "max_lat")


class QueryValidationError(ValidationError):
    """Raised when request parameters are missing or malformed."""

    default_stage = "ingress"
    default_code = "INVALID_QUERY_PARAMS"


# ---------------------------------------------------------------------------
# Optional numeric parameters
# ---------------------------------------------------------------------------


def get_int_param(
    params: Mapping[str, str],
    key: str,
    default: int,
    *,
    minimum: int | None = None,
) -> int:
    """Return ``params[key]`` as an int, or *default* if absent, unparseable
    or below *minimum*."""
    raw = params.get(key, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.debug("Ignoring unparseable int param | key=%s | value=%r", key, raw)
        return default
    if minimum is not None and value < minimum:
        return default
    return value


# ---------------------------------------------------------------------------
# Bounding box
# ---------------------------------------------------------------------------


def parse_bbox_params(params: Mapping[str, str]) -> BoundingBox:
    """Build a ``BoundingBox`` from the four required query parameters.

    ``0`` is a valid bound; only absent, non-numeric or non-finite values
    are rejected, as is a box whose minimum exceeds its maximum.

    Raises:
        QueryValidationError: Naming the offending parameter(s).
    """
    missing = [key for key in BBOX_PARAMS if not params.get(key, "").strip()]
    if missing:
        msg = f"missing required bbox parameter(s): {', '.join(missing)}"
        raise QueryValidationError(msg)

    values: dict[str, float] = {}
    malformed: list[str] = []
    for key in BBOX_PARAMS:
        try:
            value = float(params[key])
        except ValueError:
            malformed.append(key)
            continue
        if not math.isfinite(value):
            malformed.append(key)
            continue
        values[key] = value

    if malformed:
        msg = f"invalid bbox parameter(s): {', '.join(malformed)} (must be finite numbers)"
        raise QueryValidationError(msg)

    try:
        return BoundingBox(**values)
    except pydantic.ValidationError as exc:
        reasons = "; ".join(str(error["msg"]) for error in exc.errors())
        msg = f"invalid bbox: {reasons}"
        raise QueryValidationError(msg) from exc


# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_config() -> AtlasConfig:
    return AtlasConfig.from_env()


@lru_cache(maxsize=1)
def get_store() -> PlacemarkStore:
    """Return the process-wide ``PlacemarkStore`` for ``DATABASE_URL``.

    Raises:
        ConfigValidationError: If the environment configuration is invalid.
    """
    from kml_atlas.store.placemarks import PlacemarkStore

    config = get_config()
    logger.info("Opening placemark store")
    return PlacemarkStore.from_url(config.database_url)
