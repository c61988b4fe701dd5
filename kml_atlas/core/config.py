"""Service configuration loaded from environment variables.

All values have defaults suitable for local development against a SQLite
file. The import CLI loads a ``.env`` file first, so the same keys can
live there.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if a value is out of
    its valid range, so a bad deployment fails at startup rather than on
    the first request.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from kml_atlas.core.constants import (
    DEFAULT_BBOX_LIMIT,
    DEFAULT_DATABASE_URL,
    DEFAULT_KML_PATH,
    DEFAULT_LIST_LIMIT,
)
from kml_atlas.core.exceptions import ValidationError


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The environment variable that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class AtlasConfig:
    """Immutable service configuration.

    Attributes:
        database_url: SQLAlchemy URL of the placemark store.
        kml_path: Default KML document for the import command.
        list_default_limit: Page size when ``limit`` is absent from a listing request.
        bbox_default_limit: Result ceiling when ``limit`` is absent from a bbox request.
        normalize_workers: Worker threads used to normalize placemarks (1 = inline).
        log_level: Root log level name for the CLI.
    """

    database_url: str = DEFAULT_DATABASE_URL
    kml_path: str = DEFAULT_KML_PATH
    list_default_limit: int = DEFAULT_LIST_LIMIT
    bbox_default_limit: int = DEFAULT_BBOX_LIMIT
    normalize_workers: int = 1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> AtlasConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string is empty.
            ValueError: If a numeric variable cannot be parsed
                (e.g. ``LIST_DEFAULT_LIMIT=abc``).
        """
        config = cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            kml_path=os.getenv("KML_PATH", DEFAULT_KML_PATH),
            list_default_limit=int(os.getenv("LIST_DEFAULT_LIMIT", str(DEFAULT_LIST_LIMIT))),
            bbox_default_limit=int(os.getenv("BBOX_DEFAULT_LIMIT", str(DEFAULT_BBOX_LIMIT))),
            normalize_workers=int(os.getenv("NORMALIZE_WORKERS", "1")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
        _validate(config)
        return config


def _validate(config: AtlasConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.database_url:
        raise ConfigValidationError("DATABASE_URL", config.database_url, "must not be empty")

    if not config.kml_path:
        raise ConfigValidationError("KML_PATH", config.kml_path, "must not be empty")

    if config.list_default_limit <= 0:
        raise ConfigValidationError(
            "LIST_DEFAULT_LIMIT",
            config.list_default_limit,
            "must be > 0",
        )

    if config.bbox_default_limit <= 0:
        raise ConfigValidationError(
            "BBOX_DEFAULT_LIMIT",
            config.bbox_default_limit,
            "must be > 0",
        )

    if config.normalize_workers < 1:
        raise ConfigValidationError(
            "NORMALIZE_WORKERS",
            config.normalize_workers,
            "must be >= 1",
        )

    if not isinstance(logging.getLevelName(config.log_level), int):
        raise ConfigValidationError(
            "LOG_LEVEL",
            config.log_level,
            "must be a logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        )
