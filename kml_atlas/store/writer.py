"""Import writer: persists a parsed document.

Two phases, strictly ordered:

1. ``upsert_styles`` inserts or updates every style by its token and
   returns the set of style ids that now exist.
2. ``import_placemarks`` takes that set explicitly, resolves each
   record's style reference against it (unknown → ``NULL``), and writes
   every placemark with its extended attributes and folder rows inside
   ONE transaction. Any failing insert rolls the whole batch back,
   including an optional truncate of the previous placemarks.

Styles are never removed; they accumulate and update across runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from kml_atlas.core.exceptions import PermanentError
from kml_atlas.store.schema import placemark_data, placemark_folders, placemarks, styles

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy import Connection, Engine

    from kml_atlas.models.placemark import PlacemarkRecord, StyleRecord

logger = logging.getLogger("kml_atlas.store")

_STYLE_UPDATE_COLUMNS = ("icon_href", "icon_scale", "label_scale", "raw_xml")


class ImportWriteError(PermanentError):
    """Raised when a write fails; the enclosing transaction has been rolled back."""

    default_stage = "import_placemarks"
    default_code = "IMPORT_WRITE_FAILED"


# ---------------------------------------------------------------------------
# Phase 1: styles
# ---------------------------------------------------------------------------


def upsert_styles(engine: Engine, records: Sequence[StyleRecord]) -> frozenset[str]:
    """Insert or update *records* by id and return every style id in the store.

    Raises:
        ImportWriteError: If the upsert fails (no style is changed).
    """
    # last definition of a duplicated id wins
    rows = list({record.id: record.to_row() for record in records}.values())

    try:
        with engine.begin() as conn:
            if rows:
                _upsert_style_rows(conn, rows)
            known = frozenset(conn.execute(select(styles.c.id)).scalars())
    except SQLAlchemyError as exc:
        msg = f"Failed to upsert {len(rows)} style(s): {exc}"
        raise ImportWriteError(msg, stage="import_styles", code="STYLE_UPSERT_FAILED") from exc

    logger.info("Styles upserted | written=%d | known=%d", len(rows), len(known))
    return known


def _upsert_style_rows(conn: Connection, rows: list[dict[str, object]]) -> None:
    dialect = conn.dialect.name
    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        else:
            from sqlalchemy.dialects.postgresql import insert as dialect_insert

        stmt = dialect_insert(styles)
        stmt = stmt.on_conflict_do_update(
            index_elements=[styles.c.id],
            set_={column: stmt.excluded[column] for column in _STYLE_UPDATE_COLUMNS},
        )
        conn.execute(stmt, rows)
        return

    # portable fallback: update, insert when nothing matched
    for row in rows:
        values = {column: row[column] for column in _STYLE_UPDATE_COLUMNS}
        result = conn.execute(update(styles).where(styles.c.id == row["id"]).values(**values))
        if result.rowcount == 0:
            conn.execute(insert(styles).values(**row))


# ---------------------------------------------------------------------------
# Phase 2: placemarks
# ---------------------------------------------------------------------------


def resolve_style_id(style_id: str | None, known_styles: Collection[str]) -> str | None:
    """Return *style_id* if it names an existing style, else ``None``."""
    if style_id and style_id in known_styles:
        return style_id
    return None


def truncate_placemarks(conn: Connection) -> int:
    """Delete every placemark (with its attributes and folder rows). Styles stay."""
    conn.execute(delete(placemark_folders))
    conn.execute(delete(placemark_data))
    result = conn.execute(delete(placemarks))
    return result.rowcount


def import_placemarks(
    engine: Engine,
    records: Sequence[PlacemarkRecord],
    *,
    known_styles: Collection[str],
    truncate: bool = False,
    correlation_id: str = "",
) -> int:
    """Write *records* in one all-or-nothing transaction.

    Args:
        engine: Store engine.
        records: Normalized placemarks in traversal order.
        known_styles: Style ids returned by ``upsert_styles``.
        truncate: Remove existing placemarks first (same transaction).
        correlation_id: Import run identifier for error reporting.

    Returns:
        Number of placemarks written.

    Raises:
        ImportWriteError: If any insert fails. Nothing from this call
            (truncate included) is visible afterwards.
    """
    written = 0
    try:
        with engine.begin() as conn:
            if truncate:
                removed = truncate_placemarks(conn)
                logger.info("Truncated placemarks | removed=%d", removed)
            for record in records:
                insert_placemark(conn, record, known_styles)
                written += 1
    except SQLAlchemyError as exc:
        msg = (
            f"Import rolled back: placemark {written + 1} of {len(records)} "
            f"failed to insert: {exc}"
        )
        raise ImportWriteError(msg, correlation_id=correlation_id) from exc

    logger.info("Placemarks imported | written=%d | truncate=%s", written, truncate)
    return written


def insert_placemark(
    conn: Connection,
    record: PlacemarkRecord,
    known_styles: Collection[str],
) -> int:
    """Insert one placemark plus its extended attributes and folder rows.

    Returns:
        The store-assigned placemark id.
    """
    min_lon, min_lat, max_lon, max_lat = record.geometry.bounds
    result = conn.execute(
        insert(placemarks).values(
            name=record.name,
            description=record.description,
            style_id=resolve_style_id(record.style_id, known_styles),
            folder_path=list(record.folder_path),
            geometry_type=record.geometry_type,
            geom_wkt=record.geom_wkt,
            min_lon=min_lon,
            min_lat=min_lat,
            max_lon=max_lon,
            max_lat=max_lat,
            coordinates_raw=record.coordinates_raw,
            media_links=list(record.media_links) or None,
        )
    )
    placemark_id = int(result.inserted_primary_key[0])

    if record.extended_data:
        conn.execute(
            insert(placemark_data),
            [
                {"placemark_id": placemark_id, "key": kv.key, "value": kv.value}
                for kv in record.extended_data
            ],
        )

    if record.folder_path:
        conn.execute(
            insert(placemark_folders),
            [
                {"placemark_id": placemark_id, "position": position, "folder": folder}
                for position, folder in enumerate(record.folder_path)
            ],
        )

    return placemark_id
