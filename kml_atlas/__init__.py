"""KML Atlas: placemark ingestion and spatial/timeline query service.

Ingests a nested-folder KML document, normalizes every placemark into a
flat record with a canonical WKT geometry, persists the records to a SQL
store, and serves paginated listings, bounding-box intersection queries,
folder enumeration, and a timeline recovered from date-stamped names.
"""

__version__ = "0.1.0"
