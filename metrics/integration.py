"""
metrics/integration.py

Integration status family: downstream completion per contract.
"""

from __future__ import annotations

from app.domain.contract_records import ContractIntegration
from metrics.base import BaseMetricFamily
from metrics.dimensions import DimensionTuple, fan_out
from metrics.status import (
    INTEGRATION_STATUSES,
    UNKNOWN,
    map_contract_status_code,
    normalize_country,
    normalize_integration_status,
    to_contract_status_code,
)

INTEGRATION_KINDS: tuple[str, ...] = tuple(dict.fromkeys(INTEGRATION_STATUSES.values()))


class IntegrationFamily(BaseMetricFamily):
    """
    Counts contracts by their latest integration status.

    Country comes from the contract's entity record.  Contract status is
    taken from the integration document, falling back to the entity when
    the document does not carry one.
    """

    name = "integrationstatus"
    kinds = INTEGRATION_KINDS

    def classify(self, record: ContractIntegration, window: str) -> tuple[DimensionTuple, ...]:
        entity = record.entity
        country = normalize_country(entity.country_code) if entity is not None else UNKNOWN

        raw_status = record.status.contract_status
        if raw_status is None and entity is not None:
            raw_status = entity.contract_status
        contract_status = to_contract_status_code(raw_status)

        kind = normalize_integration_status(record.status.integration_status)
        return fan_out(kind, country, contract_status, window)

    def render_labels(self, dim: DimensionTuple) -> dict[str, str]:
        return {
            "integration_status": str(dim.metric_kind),
            "contractstatus": map_contract_status_code(dim.contract_status),
            "country": dim.country,
            "window": dim.window,
        }
