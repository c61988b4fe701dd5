"""Shared pytest fixtures for the KML Atlas test suite."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from kml_atlas.ingest import parse_kml_file
from kml_atlas.store.placemarks import PlacemarkStore
from kml_atlas.store.schema import create_store_engine, ensure_schema
from kml_atlas.store.writer import import_placemarks, upsert_styles

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine

    from kml_atlas.models.placemark import ParsedDocument

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


@pytest.fixture()
def incident_kml(data_dir: Path) -> Path:
    """Nested-folder KML with styles, dated events, a route and a holed polygon.

    8 placemarks, 5 usable (3 Point, 1 LineString, 1 Polygon), 2 styles
    plus one StyleMap.
    """
    return data_dir / "incident_map.kml"


@pytest.fixture()
def not_xml_kml(data_dir: Path) -> Path:
    """Path to a file that is not valid XML."""
    return data_dir / "not_xml.kml"


@pytest.fixture()
def not_kml_root(data_dir: Path) -> Path:
    """Path to well-formed XML whose root is not ``<kml>``."""
    return data_dir / "not_kml_root.xml"


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'atlas.db'}"


@pytest.fixture()
def engine(database_url: str) -> Iterator[Engine]:
    """A fresh SQLite store with the schema created."""
    store_engine = create_store_engine(database_url)
    ensure_schema(store_engine)
    yield store_engine
    store_engine.dispose()


@pytest.fixture()
def incident_document(incident_kml: Path) -> ParsedDocument:
    return parse_kml_file(incident_kml)


@pytest.fixture()
def loaded_store(engine: Engine, incident_document: ParsedDocument) -> PlacemarkStore:
    """A store holding the imported incident map."""
    known = upsert_styles(engine, incident_document.styles)
    import_placemarks(engine, incident_document.placemarks, known_styles=known)
    return PlacemarkStore(engine)
