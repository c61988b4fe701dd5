"""Table definitions and engine construction for the placemark store.

Layout:
- ``styles``: keyed by the document style token (not store-assigned)
- ``placemarks``: one row per imported placemark; geometry as WKT plus
  an indexed envelope used as the spatial prefilter
- ``placemark_data``: extended attributes, cascade-deleted with their placemark
- ``placemark_folders``: one row per folder-path element, indexed on
  ``folder``; backs "path contains folder" filters and folder listing

Works on any SQLAlchemy backend; SQLite connections get
``PRAGMA foreign_keys=ON`` so the cascades are enforced.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Engine,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from kml_atlas.core.exceptions import PermanentError

logger = logging.getLogger("kml_atlas.store")


class SchemaSetupError(PermanentError):
    """Raised when the store cannot be opened or its tables cannot be created."""

    default_stage = "ensure_schema"
    default_code = "SCHEMA_FAILED"


metadata = MetaData()

styles = Table(
    "styles",
    metadata,
    Column("id", String, primary_key=True),
    Column("icon_href", Text),
    Column("icon_scale", Float),
    Column("label_scale", Float),
    Column("raw_xml", Text),
)

placemarks = Table(
    "placemarks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("style_id", String, ForeignKey("styles.id"), nullable=True),
    Column("folder_path", JSON, nullable=False),
    Column("geometry_type", String(16), nullable=False),
    Column("geom_wkt", Text, nullable=False),
    Column("min_lon", Float, nullable=False),
    Column("min_lat", Float, nullable=False),
    Column("max_lon", Float, nullable=False),
    Column("max_lat", Float, nullable=False),
    Column("coordinates_raw", Text),
    Column("media_links", JSON(none_as_null=True)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Index("placemarks_envelope_idx", "min_lon", "max_lon", "min_lat", "max_lat"),
    Index("placemarks_name_idx", "name"),
)

placemark_data = Table(
    "placemark_data",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "placemark_id",
        Integer,
        ForeignKey("placemarks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("key", Text),
    Column("value", Text),
)

placemark_folders = Table(
    "placemark_folders",
    metadata,
    Column(
        "placemark_id",
        Integer,
        ForeignKey("placemarks.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("position", Integer, primary_key=True),
    Column("folder", Text, nullable=False, index=True),
)


def _enable_sqlite_foreign_keys(dbapi_connection: object, _record: object) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine for *database_url*, preparing SQLite files and pragmas.

    Raises:
        SchemaSetupError: If the URL is malformed, names an unknown backend,
            has no installed driver, or its SQLite directory cannot be
            created.
    """
    try:
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url, echo=echo)
    except (SQLAlchemyError, ImportError, OSError) as exc:
        msg = f"Cannot create store engine: {exc}"
        raise SchemaSetupError(msg) from exc

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.debug("Store engine created | dialect=%s", engine.dialect.name)
    return engine


def ensure_schema(engine: Engine) -> None:
    """Create any missing tables and indexes.

    Raises:
        SchemaSetupError: If the database cannot be opened or written.
    """
    try:
        metadata.create_all(engine)
    except SQLAlchemyError as exc:
        msg = f"Cannot prepare store schema: {exc}"
        raise SchemaSetupError(msg) from exc
    logger.info("Schema ensured | dialect=%s", engine.dialect.name)
