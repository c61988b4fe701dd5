"""Import pipeline: KML document → placemark store.

Steps, in order:

1. Parse the document (``kml_atlas.ingest.parse_kml_file``)
2. Optionally keep only the first ``limit`` placemarks
3. Summarize (style count, placemark count, count per geometry type)
4. Stop here on ``dry_run``
5. Ensure the schema exists
6. Upsert styles (phase 1)
7. Import placemarks in one transaction (phase 2, optional truncate first)

A ``PipelineError`` from any step propagates unchanged; nothing after the
failing step runs. A failure in step 7 leaves the store exactly as it was
before step 7 (styles from step 6 remain, as they are upserts).
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kml_atlas.ingest import parse_kml_file
from kml_atlas.store.schema import ensure_schema
from kml_atlas.store.writer import import_placemarks, upsert_styles

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Engine

    from kml_atlas.models.placemark import PlacemarkRecord, StyleRecord

logger = logging.getLogger("kml_atlas.orchestrators.import_pipeline")


@dataclass(frozen=True, slots=True)
class ImportSummary:
    """Counts describing one parsed (and possibly imported) document.

    Attributes:
        styles: Number of style definitions found.
        placemarks: Number of placemarks kept after normalization and limit.
        geometry_types: Placemark count per geometry type, in first-seen order.
        imported: Placemarks written to the store (``None`` on a dry run).
    """

    styles: int
    placemarks: int
    geometry_types: dict[str, int] = field(default_factory=dict)
    imported: int | None = None

    def to_text(self) -> str:
        lines = [f"Styles: {self.styles}", f"Placemarks: {self.placemarks}"]
        lines.extend(f"  {name}: {count}" for name, count in self.geometry_types.items())
        return "\n".join(lines)


def summarize(styles: list[StyleRecord], placemarks: list[PlacemarkRecord]) -> ImportSummary:
    counts = Counter(record.geometry_type for record in placemarks)
    return ImportSummary(
        styles=len(styles),
        placemarks=len(placemarks),
        geometry_types=dict(counts),
    )


def run_import(
    kml_path: Path | str,
    *,
    engine: Engine | None = None,
    truncate: bool = False,
    dry_run: bool = False,
    limit: int = 0,
    workers: int = 1,
    correlation_id: str = "",
) -> ImportSummary:
    """Parse *kml_path* and, unless *dry_run*, load it into the store.

    Args:
        kml_path: KML document to import.
        engine: Store engine; required unless *dry_run*.
        truncate: Remove existing placemarks inside the import transaction.
        dry_run: Parse and summarize only.
        limit: Keep only the first *limit* placemarks (0 = all).
        workers: Normalization threads.
        correlation_id: Run identifier for logs and errors (generated if empty).

    Returns:
        ``ImportSummary`` of the parsed document; ``imported`` is set when
        the placemarks were written.

    Raises:
        KmlParseError: If the document cannot be parsed.
        SchemaSetupError: If the store cannot be opened or its tables created.
        ImportWriteError: If styles or placemarks cannot be written.
        ValueError: If *engine* is missing for a non-dry run.
    """
    correlation_id = correlation_id or uuid.uuid4().hex
    logger.info(
        "Import started | kml=%s | truncate=%s | dry_run=%s | limit=%d | correlation_id=%s",
        kml_path,
        truncate,
        dry_run,
        limit,
        correlation_id,
    )

    document = parse_kml_file(kml_path, workers=workers)
    placemarks = document.placemarks
    if limit > 0 and len(placemarks) > limit:
        placemarks = placemarks[:limit]

    summary = summarize(document.styles, placemarks)
    if dry_run:
        logger.info("Dry run finished | correlation_id=%s", correlation_id)
        return summary

    if engine is None:
        msg = "an engine is required unless dry_run is set"
        raise ValueError(msg)

    ensure_schema(engine)
    known_styles = upsert_styles(engine, document.styles)
    imported = import_placemarks(
        engine,
        placemarks,
        known_styles=known_styles,
        truncate=truncate,
        correlation_id=correlation_id,
    )

    logger.info(
        "Import finished | imported=%d | styles=%d | correlation_id=%s",
        imported,
        summary.styles,
        correlation_id,
    )
    return ImportSummary(
        styles=summary.styles,
        placemarks=summary.placemarks,
        geometry_types=summary.geometry_types,
        imported=imported,
    )
