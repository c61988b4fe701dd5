"""Import orchestration.

Runs the end-to-end import of one KML document:
1. Parse → normalized placemarks + styles
2. Summarize (and stop on a dry run)
3. Ensure schema → upsert styles → import placemarks (one transaction)
"""

from kml_atlas.orchestrators.import_pipeline import ImportSummary, run_import, summarize

__all__ = ["ImportSummary", "run_import", "summarize"]
