"""
metrics/received.py

Contract received family.

Every deduplicated upload that could be joined to its entity counts as
one successfully received contract.  Each contract contributes to both
the plain and the ``_unique`` series; after deduplication both count
distinct contracts.  ``failed_to_receive`` kinds have no upstream signal
and stay zero.
"""

from __future__ import annotations

from app.domain.contract_records import ContractUpload
from metrics.base import BaseMetricFamily
from metrics.dimensions import DimensionTuple, fan_out
from metrics.status import normalize_country, to_contract_status_code

SUCCESSFULLY_RECEIVED = "successfully_received"
SUCCESSFULLY_RECEIVED_UNIQUE = "successfully_received_unique"

RECEIVED_KINDS: tuple[str, ...] = (
    SUCCESSFULLY_RECEIVED,
    "failed_to_receive",
    SUCCESSFULLY_RECEIVED_UNIQUE,
    "failed_to_receive_unique",
)


class ReceivedFamily(BaseMetricFamily):
    """Counts received contracts by country and contract status."""

    name = "contractreceived"
    kinds = RECEIVED_KINDS

    def classify(self, record: ContractUpload, window: str) -> tuple[DimensionTuple, ...]:
        country = normalize_country(record.entity.country_code)
        contract_status = to_contract_status_code(record.entity.contract_status)
        return fan_out(SUCCESSFULLY_RECEIVED, country, contract_status, window) + fan_out(
            SUCCESSFULLY_RECEIVED_UNIQUE, country, contract_status, window
        )
