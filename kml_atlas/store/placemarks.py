"""Read-side access to stored placemarks.

``PlacemarkStore`` answers every query the API exposes. Each call opens
its own connection and reads committed data only, so queries are safe to
run concurrently with each other and with an import in progress (they
see the state before that import commits).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from kml_atlas.core.constants import DEFAULT_BBOX_LIMIT, DEFAULT_LIST_LIMIT, TOP_FOLDERS_LIMIT
from kml_atlas.core.exceptions import PermanentError, TransientError
from kml_atlas.models.views import KVPair, Placemark
from kml_atlas.query.spatial import bbox_geometry, intersects_bbox, wkt_to_geojson
from kml_atlas.query.timeline import TimelineCandidate, derive_timeline_events
from kml_atlas.store.schema import (
    create_store_engine,
    placemark_data,
    placemark_folders,
    placemarks,
    styles,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection, Engine, Row

    from kml_atlas.models.views import BoundingBox, TimelineEvent

logger = logging.getLogger("kml_atlas.store")


class StoreQueryError(TransientError):
    """Raised when the store cannot answer a query."""

    default_stage = "query"
    default_code = "STORE_QUERY_FAILED"


class PlacemarkNotFoundError(PermanentError):
    """Raised when no placemark has the requested id."""

    default_stage = "query"
    default_code = "PLACEMARK_NOT_FOUND"
    http_status = 404


_PLACEMARK_COLUMNS = (
    placemarks.c.id,
    placemarks.c.name,
    placemarks.c.description,
    placemarks.c.style_id,
    placemarks.c.folder_path,
    placemarks.c.geometry_type,
    placemarks.c.geom_wkt,
    placemarks.c.coordinates_raw,
    placemarks.c.media_links,
    placemarks.c.created_at,
)


def _row_to_placemark(row: Row) -> Placemark:
    return Placemark(
        id=row.id,
        name=row.name,
        description=row.description or None,
        style_id=row.style_id,
        folder_path=list(row.folder_path or []),
        geometry_type=row.geometry_type,
        geometry=wkt_to_geojson(row.geom_wkt),
        coordinates_raw=row.coordinates_raw or None,
        media_links=list(row.media_links) if row.media_links else None,
        created_at=row.created_at,
    )


class PlacemarkStore:
    """Query interface over the placemark tables."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> PlacemarkStore:
        return cls(create_store_engine(database_url))

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _connect(self, operation: str) -> Iterator[Connection]:
        try:
            with self._engine.connect() as conn:
                yield conn
        except SQLAlchemyError as exc:
            msg = f"Failed to {operation}: {exc}"
            raise StoreQueryError(msg) from exc

    # -- listing -----------------------------------------------------------

    def list(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
        folder: str = "",
    ) -> list[Placemark]:
        """Return a page of placemarks ordered by id.

        Args:
            limit: Page size.
            offset: Rows to skip.
            folder: When non-empty, only placemarks whose folder path
                contains this folder name (at any depth).
        """
        stmt = select(*_PLACEMARK_COLUMNS).order_by(placemarks.c.id).limit(limit).offset(offset)
        if folder:
            stmt = stmt.where(
                select(placemark_folders.c.placemark_id)
                .where(
                    placemark_folders.c.placemark_id == placemarks.c.id,
                    placemark_folders.c.folder == folder,
                )
                .exists()
            )

        with self._connect("query placemarks") as conn:
            return [_row_to_placemark(row) for row in conn.execute(stmt)]

    def get_by_id(self, placemark_id: int) -> Placemark:
        """Return one placemark with its extended attributes.

        Raises:
            PlacemarkNotFoundError: If no placemark has this id.
        """
        with self._connect("get placemark") as conn:
            row = conn.execute(
                select(*_PLACEMARK_COLUMNS).where(placemarks.c.id == placemark_id)
            ).first()
            if row is None:
                msg = f"placemark {placemark_id} not found"
                raise PlacemarkNotFoundError(msg)

            pairs = conn.execute(
                select(placemark_data.c.key, placemark_data.c.value)
                .where(placemark_data.c.placemark_id == placemark_id)
                .order_by(placemark_data.c.id)
            )
            extended = [KVPair(key=key or "", value=value or "") for key, value in pairs]

        placemark = _row_to_placemark(row)
        placemark.extended_data = extended or None
        return placemark

    # -- spatial -----------------------------------------------------------

    def get_in_bbox(self, bbox: BoundingBox, limit: int = DEFAULT_BBOX_LIMIT) -> list[Placemark]:
        """Return placemarks whose geometry intersects *bbox*, at most *limit*.

        Candidates come from the envelope columns in id order; each is
        then tested against its actual shape.
        """
        if limit <= 0:
            return []

        area = bbox_geometry(bbox)
        stmt = (
            select(*_PLACEMARK_COLUMNS)
            .where(
                placemarks.c.max_lon >= bbox.min_lon,
                placemarks.c.min_lon <= bbox.max_lon,
                placemarks.c.max_lat >= bbox.min_lat,
                placemarks.c.min_lat <= bbox.max_lat,
            )
            .order_by(placemarks.c.id)
        )

        results: list[Placemark] = []
        candidates = 0
        with self._connect("query bbox") as conn:
            for row in conn.execute(stmt):
                candidates += 1
                if intersects_bbox(row.geom_wkt, area):
                    results.append(_row_to_placemark(row))
                    if len(results) >= limit:
                        break

        logger.debug(
            "Bbox query | bbox=%s | candidates=%d | matched=%d | limit=%d",
            bbox.as_tuple(),
            candidates,
            len(results),
            limit,
        )
        return results

    # -- timeline ----------------------------------------------------------

    def get_timeline(self) -> list[TimelineEvent]:
        """Return timeline events for every date-stamped placemark, sorted by name."""
        stmt = select(
            placemarks.c.id,
            placemarks.c.name,
            placemarks.c.description,
            placemarks.c.geometry_type,
            placemarks.c.geom_wkt,
            placemarks.c.media_links,
            placemarks.c.folder_path,
        ).where(placemarks.c.name.like("%/%/%"))

        with self._connect("query timeline") as conn:
            candidates = [
                TimelineCandidate(
                    placemark_id=row.id,
                    name=row.name,
                    geometry_type=row.geometry_type,
                    geometry=wkt_to_geojson(row.geom_wkt) if row.geometry_type == "Point" else "",
                    description=row.description or "",
                    media_links=tuple(row.media_links or ()),
                    folder_path=tuple(row.folder_path or ()),
                )
                for row in conn.execute(stmt)
            ]

        return derive_timeline_events(candidates)

    # -- folders & stats ---------------------------------------------------

    def list_folders(self) -> list[str]:
        """Return every folder name used in any folder path, deduplicated and sorted."""
        stmt = select(placemark_folders.c.folder).distinct()
        with self._connect("query folders") as conn:
            return sorted(conn.execute(stmt).scalars())

    def get_stats(self) -> dict[str, object]:
        """Return totals, a geometry-type breakdown, and the busiest folders."""
        folder_count = func.count().label("count")
        with self._connect("query stats") as conn:
            total_placemarks = conn.execute(select(func.count()).select_from(placemarks)).scalar_one()
            total_styles = conn.execute(select(func.count()).select_from(styles)).scalar_one()
            geometry_types = dict(
                conn.execute(
                    select(placemarks.c.geometry_type, func.count()).group_by(
                        placemarks.c.geometry_type
                    )
                ).tuples()
            )
            top_folders = dict(
                conn.execute(
                    select(placemark_folders.c.folder, folder_count)
                    .group_by(placemark_folders.c.folder)
                    .order_by(folder_count.desc(), placemark_folders.c.folder)
                    .limit(TOP_FOLDERS_LIMIT)
                ).tuples()
            )

        return {
            "total_placemarks": total_placemarks,
            "total_styles": total_styles,
            "geometry_types": geometry_types,
            "top_folders": top_folders,
        }
