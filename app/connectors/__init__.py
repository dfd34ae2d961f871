"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorRequestError
from app.connectors.metrics_ingest_connector import (
    MetricsIngestConnector,
    MetricsSinkError,
    render_line,
    render_lines,
)

__all__ = [
    "BaseConnector",
    "ConnectorRequestError",
    "MetricsIngestConnector",
    "MetricsSinkError",
    "render_line",
    "render_lines",
]
