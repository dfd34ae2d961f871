"""
metrics/joins.py

Joins between contract-store records and their entity records.

All functions are pure: they take already-normalized domain records and
return joined records.  Uploads without a matching entity cannot be
attributed to a contract and are left out.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping

from app.domain.contract_records import (
    ContractFailure,
    ContractIntegration,
    ContractUpload,
    EntityRecord,
    IntegrationStatusRecord,
    RawContractRecord,
)
from metrics.dedupe import dedupe_latest_by_key

logger = logging.getLogger(__name__)

UPLOAD_BATCH_PREFIX = "CMP-Contract-"


def to_entity_batch_id(batch_id: str | None) -> str:
    """
    Strip the upload prefix so the id matches the entity correlation id.

    Non-string or empty ids map to ``""``.
    """

    if not isinstance(batch_id, str):
        return ""
    if batch_id.startswith(UPLOAD_BATCH_PREFIX):
        return batch_id[len(UPLOAD_BATCH_PREFIX):]
    return batch_id


def index_entities_by_batch(entities: Iterable[EntityRecord]) -> dict[str, EntityRecord]:
    """Latest entity per split-entity correlation id."""
    return dedupe_latest_by_key(entities, lambda e: e.batch_id, lambda e: e.timestamp)


def index_entities_by_contract(entities: Iterable[EntityRecord]) -> dict[str, EntityRecord]:
    """Latest entity per contract id."""
    return dedupe_latest_by_key(entities, lambda e: e.contract_id, lambda e: e.timestamp)


def join_uploads(
    uploads: Iterable[RawContractRecord],
    entities_by_batch: Mapping[str, EntityRecord],
) -> list[ContractUpload]:
    """
    Attach each upload to the entity sharing its (prefix-stripped) batch id.

    One joined record is produced per matched upload; deduplication to the
    latest upload per contract happens afterwards.
    """

    joined: list[ContractUpload] = []
    unmatched = 0
    for upload in uploads:
        entity = entities_by_batch.get(to_entity_batch_id(upload.batch_id))
        if entity is None or not entity.contract_id:
            unmatched += 1
            continue
        joined.append(ContractUpload(contract_id=entity.contract_id, upload=upload, entity=entity))

    if unmatched:
        logger.debug("join_uploads unmatched=%d matched=%d", unmatched, len(joined))
    return joined


def attach_integration_statuses(
    uploads: Iterable[ContractUpload],
    statuses_by_contract: Mapping[str, IntegrationStatusRecord],
) -> list[ContractUpload]:
    """Copy each contract's latest integration status onto its joined upload."""
    attached: list[ContractUpload] = []
    for upload in uploads:
        status = statuses_by_contract.get(upload.contract_id)
        if status is None:
            attached.append(upload)
            continue
        attached.append(dataclasses.replace(upload, integration_status=status.integration_status))
    return attached


def join_failures(
    failures: Iterable[RawContractRecord],
    entities_by_contract: Mapping[str, EntityRecord],
) -> list[ContractFailure]:
    """Pair failures with their contract's entity; failures without a contract id are dropped."""
    return [
        ContractFailure(
            contract_id=failure.contract_id,
            failure=failure,
            entity=entities_by_contract.get(failure.contract_id),
        )
        for failure in failures
        if failure.contract_id
    ]


def join_integrations(
    statuses: Iterable[IntegrationStatusRecord],
    entities_by_contract: Mapping[str, EntityRecord],
) -> list[ContractIntegration]:
    return [
        ContractIntegration(
            contract_id=status.contract_id,
            status=status,
            entity=entities_by_contract.get(status.contract_id),
        )
        for status in statuses
        if status.contract_id
    ]
