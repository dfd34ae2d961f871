"""
app/schemas package marker.
"""

from app.schemas.ingest_result import IngestResult

__all__ = [
    "IngestResult",
]
