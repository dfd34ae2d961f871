"""
metrics package marker.
"""

from metrics.dimensions import DimensionTuple, FailureSignature, enumerate_space, fan_out
from metrics.failed import FailedFamily
from metrics.integration import IntegrationFamily
from metrics.processed import ProcessedFamily
from metrics.received import ReceivedFamily
from metrics.schema import MetricPoint

__all__ = [
    "DimensionTuple",
    "FailureSignature",
    "FailedFamily",
    "IntegrationFamily",
    "MetricPoint",
    "ProcessedFamily",
    "ReceivedFamily",
    "enumerate_space",
    "fan_out",
]
