"""``kml-atlas`` command line: import a KML document into the placemark store."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from dotenv import load_dotenv

from kml_atlas.core.config import AtlasConfig
from kml_atlas.core.exceptions import PipelineError
from kml_atlas.orchestrators.import_pipeline import run_import
from kml_atlas.store.schema import create_store_engine

app = typer.Typer(help="KML Atlas: import nested-folder KML documents into a queryable store.")

logger = logging.getLogger("kml_atlas.cli")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


@app.callback()
def main() -> None:
    """Load ``.env`` before any command reads the environment."""
    if not load_dotenv():
        logger.debug("No .env file found, using environment variables")


def _fail(exc: PipelineError) -> NoReturn:
    typer.echo(json.dumps(exc.to_error_dict(), indent=2), err=True)
    raise typer.Exit(code=1)


@app.command("import")
def import_command(
    kml: Annotated[Path | None, typer.Option(help="Path to the KML file (default: KML_PATH).")] = None,
    truncate: Annotated[bool, typer.Option(help="Remove existing placemarks before import.")] = False,
    dry_run: Annotated[bool, typer.Option(help="Parse and print the summary only.")] = False,
    limit: Annotated[int, typer.Option(min=0, help="Import only the first N placemarks (0 = all).")] = 0,
    workers: Annotated[int | None, typer.Option(min=1, help="Normalization threads (default: NORMALIZE_WORKERS).")] = None,
) -> None:
    """Parse a KML document and load its styles and placemarks."""
    try:
        config = AtlasConfig.from_env()
    except PipelineError as exc:
        _fail(exc)
    except ValueError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    setup_logging(config.log_level)
    kml_path = kml or Path(config.kml_path)

    try:
        engine = None if dry_run else create_store_engine(config.database_url)
        summary = run_import(
            kml_path,
            engine=engine,
            truncate=truncate,
            dry_run=dry_run,
            limit=limit,
            workers=workers or config.normalize_workers,
        )
    except PipelineError as exc:
        _fail(exc)

    typer.echo(summary.to_text())
    if summary.imported is not None:
        typer.echo(f"\nImported {summary.imported} placemarks")
