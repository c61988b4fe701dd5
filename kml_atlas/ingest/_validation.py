"""Document validation and ingestion exceptions.

Responsibilities:
- Read the document and reject anything that is not well-formed XML
  with a KML root element (document-fatal: the whole import aborts)
- Define the exceptions raised while ingesting
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_atlas.core.exceptions import ValidationError

if TYPE_CHECKING:
    from pathlib import Path

    from lxml.etree import _Element

logger = logging.getLogger("kml_atlas.ingest")


# ---------------------------------------------------------------------------
# Exceptions (public API, re-exported from __init__)
# ---------------------------------------------------------------------------


class KmlParseError(ValidationError):
    """Raised when a document cannot be read as KML at all."""

    default_stage = "parse_kml"
    default_code = "KML_PARSE_FAILED"


class KmlValidationError(KmlParseError):
    """Raised when a document is well-formed but part of it is unusable."""

    default_code = "KML_VALIDATION_FAILED"


class GeometryError(KmlValidationError):
    """Raised when a geometry block cannot produce a usable geometry.

    Never escapes ``parse_kml_file``: the normalizer drops the feature (or
    the builder drops the hole) and logs the reason.
    """

    default_code = "KML_GEOMETRY_INVALID"


# ---------------------------------------------------------------------------
# XML / KML root validation
# ---------------------------------------------------------------------------


def load_kml_root(content: bytes, *, source: str = "<bytes>") -> _Element:
    """Parse *content* and return the ``<kml>`` root element.

    Raises:
        KmlParseError: If the content is empty, not well-formed XML, or
            its root element is not ``<kml>``.
    """
    from lxml import etree  # type: ignore[attr-defined]

    if not content.strip():
        msg = f"KML document is empty: {source}"
        raise KmlParseError(msg)

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Not valid XML ({source}): {exc}"
        raise KmlParseError(msg) from exc

    tag = root.tag if isinstance(root.tag, str) else ""
    if etree.QName(root).localname.lower() != "kml":
        msg = f"Not a KML file ({source}): root element is <{tag}>"
        raise KmlParseError(msg)

    return root


def read_kml_file(kml_path: Path) -> _Element:
    """Read a KML file from disk and return its root element.

    Raises:
        KmlParseError: If the file cannot be read or is not KML.
    """
    try:
        content = kml_path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read KML file: {exc}"
        raise KmlParseError(msg) from exc

    return load_kml_root(content, source=kml_path.name)
