"""Document tree walker.

Flattens the ``Document``/``Folder`` hierarchy into placemark records in
depth-first pre-order, each tagged with the folder path that leads to it,
and collects the document's ``<Style>`` definitions.

Traversal uses an explicit stack of ``(folder, parent_path)`` frames, so
arbitrarily deep folder nesting never touches the interpreter's recursion
limit. Element lookups match on local name, which makes the walker
indifferent to the KML namespace version (or its absence).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from kml_atlas.ingest._normalization import normalize_placemark
from kml_atlas.models.placemark import (
    KeyValue,
    ParsedDocument,
    RawLineString,
    RawPlacemark,
    RawPoint,
    RawPolygon,
    StyleRecord,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from lxml.etree import _Element

    from kml_atlas.models.placemark import FolderPath, PlacemarkRecord, RawGeometry

logger = logging.getLogger("kml_atlas.ingest")


# ---------------------------------------------------------------------------
# Element helpers (namespace-agnostic)
# ---------------------------------------------------------------------------


def _local_name(elem: _Element) -> str:
    tag = elem.tag
    if not isinstance(tag, str):  # comments, processing instructions
        return ""
    return tag.rsplit("}", 1)[-1]


def _children(elem: _Element, name: str) -> list[_Element]:
    return [child for child in elem if _local_name(child) == name]


def _child(elem: _Element, name: str) -> _Element | None:
    for child in elem:
        if _local_name(child) == name:
            return child
    return None


def _path_text(elem: _Element | None, *names: str) -> str:
    """Text of the first element reached by following *names*, or ``""``."""
    for name in names:
        if elem is None:
            return ""
        elem = _child(elem, name)
    if elem is None:
        return ""
    return elem.text or ""


def _float_or_none(text: str) -> float | None:
    text = text.strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Node readers
# ---------------------------------------------------------------------------


def read_placemark(elem: _Element) -> RawPlacemark:
    """Read a ``<Placemark>`` element into a ``RawPlacemark``."""
    geometries: list[RawGeometry] = []

    point = _child(elem, "Point")
    if point is not None:
        geometries.append(RawPoint(coordinates=_path_text(point, "coordinates")))

    line = _child(elem, "LineString")
    if line is not None:
        geometries.append(RawLineString(coordinates=_path_text(line, "coordinates")))

    polygon = _child(elem, "Polygon")
    if polygon is not None:
        holes = tuple(
            ring.text or ""
            for boundary in _children(polygon, "innerBoundaryIs")
            for linear_ring in _children(boundary, "LinearRing")
            for ring in _children(linear_ring, "coordinates")
        )
        geometries.append(
            RawPolygon(
                outer=_path_text(polygon, "outerBoundaryIs", "LinearRing", "coordinates"),
                holes=holes,
            )
        )

    return RawPlacemark(
        name=_path_text(elem, "name"),
        description=_path_text(elem, "description"),
        style_url=_path_text(elem, "styleUrl"),
        geometries=tuple(geometries),
        extended_data=read_extended_data(elem),
    )


def read_extended_data(elem: _Element) -> tuple[KeyValue, ...]:
    """Read ``ExtendedData`` entries of a placemark in document order.

    Handles both KML metadata patterns:
    - ``ExtendedData/Data/value``: untyped key-value pairs.
    - ``ExtendedData/SchemaData/SimpleData``: typed fields.
    """
    entries: list[KeyValue] = []
    for extended in _children(elem, "ExtendedData"):
        for item in extended:
            kind = _local_name(item)
            if kind == "Data":
                entries.append(
                    KeyValue(key=item.get("name", ""), value=_path_text(item, "value").strip())
                )
            elif kind == "SchemaData":
                entries.extend(
                    KeyValue(key=simple.get("name", ""), value=(simple.text or "").strip())
                    for simple in _children(item, "SimpleData")
                )
    return tuple(entries)


def read_style(elem: _Element) -> StyleRecord | None:
    """Read a ``<Style>`` element, or ``None`` if it has no id."""
    from lxml import etree  # type: ignore[attr-defined]

    style_id = (elem.get("id") or "").strip()
    if not style_id:
        return None

    icon_style = _child(elem, "IconStyle")
    label_style = _child(elem, "LabelStyle")
    icon_href = _path_text(icon_style, "Icon", "href").strip() or None

    return StyleRecord(
        id=style_id,
        icon_href=icon_href,
        icon_scale=_float_or_none(_path_text(icon_style, "scale")),
        label_scale=_float_or_none(_path_text(label_style, "scale")),
        raw_xml=etree.tostring(elem, encoding="unicode", with_tail=False),
    )


def read_styles(container: _Element) -> list[StyleRecord]:
    """Collect every identified ``<Style>`` under *container*, in document order."""
    styles: list[StyleRecord] = []
    for elem in container.iter():
        if _local_name(elem) != "Style":
            continue
        style = read_style(elem)
        if style is not None:
            styles.append(style)
    return styles


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def document_container(root: _Element) -> _Element:
    """Return the ``<Document>`` under the ``<kml>`` root (or the root itself)."""
    document = _child(root, "Document")
    return document if document is not None else root


def iter_placemarks(container: _Element) -> Iterator[tuple[_Element, FolderPath]]:
    """Yield ``(placemark, folder_path)`` in depth-first pre-order.

    Placemarks directly under a container come before its sub-folders;
    sibling folders keep document order.
    """
    for placemark in _children(container, "Placemark"):
        yield placemark, ()

    stack: list[tuple[_Element, FolderPath]] = [
        (folder, ()) for folder in reversed(_children(container, "Folder"))
    ]
    while stack:
        folder, parent_path = stack.pop()
        path = (*parent_path, _path_text(folder, "name").strip())

        for placemark in _children(folder, "Placemark"):
            yield placemark, path

        stack.extend((sub, path) for sub in reversed(_children(folder, "Folder")))


def walk_document(root: _Element, *, workers: int = 1) -> ParsedDocument:
    """Flatten a KML document into normalized placemarks and styles.

    Traversal is sequential. Normalization is a pure function of each
    ``(node, path)`` frame, so with ``workers > 1`` it runs on a bounded
    thread pool; ``map`` keeps results in traversal order.
    """
    container = document_container(root)

    raws: list[RawPlacemark] = []
    paths: list[FolderPath] = []
    for elem, path in iter_placemarks(container):
        raws.append(read_placemark(elem))
        paths.append(path)

    results: list[PlacemarkRecord | None]
    if workers > 1 and len(raws) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(normalize_placemark, raws, paths))
    else:
        results = [normalize_placemark(raw, path) for raw, path in zip(raws, paths, strict=True)]

    placemarks = [record for record in results if record is not None]
    styles = read_styles(container)

    logger.info(
        "Walked document | placemarks=%d | kept=%d | dropped=%d | styles=%d",
        len(raws),
        len(placemarks),
        len(raws) - len(placemarks),
        len(styles),
    )
    return ParsedDocument(placemarks=placemarks, styles=styles)
