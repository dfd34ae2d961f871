"""
db/repositories/contract_repository.py

Read-only access to the contract and contract-entity document tables.

Rows are normalized into immutable domain records at this boundary, so
nothing downstream ever sees raw JSON bodies.  Integration-status
documents may arrive wrapped in a ``{"c": {...}}`` projection envelope;
it is unwrapped exactly once, here.

Id-list lookups are issued in chunks (default 50 ids per query).  A
chunk that matches nothing simply contributes no rows.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.contract_records import (
    EntityRecord,
    IntegrationStatusRecord,
    RawContractRecord,
    ReportWindow,
    SalesforceError,
    SalesforceResponse,
)
from db.models.contract_document import (
    INTEGRATION_STATUS_DOCUMENT_TYPE,
    ContractDocument,
    ContractEntityDocument,
)
from db.repositories.errors import ContractRepositoryError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50
ENTITY_SUB_DOMAIN = "Contract"
UPLOAD_ID_MARKER = "Upload"


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def unwrap_envelope(body: Any) -> dict[str, Any]:
    """
    Return the document inside a ``{"c": {...}}`` envelope, or *body* itself.
    """

    if not isinstance(body, dict):
        return {}
    inner = body.get("c")
    if isinstance(inner, dict):
        return inner
    return body


def chunked(values: Sequence[str], size: int) -> Iterator[list[str]]:
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _salesforce_response_from(raw: Any) -> SalesforceResponse | None:
    if not isinstance(raw, dict):
        return None
    errors = tuple(
        SalesforceError(
            status_code=_as_str(item.get("statusCode")),
            message=_as_str(item.get("message")),
        )
        for item in raw.get("errors") or ()
        if isinstance(item, dict)
    )
    return SalesforceResponse(result=_as_str(raw.get("result")), errors=errors)


def contract_record_from_row(doc_id: str, ts: int, body: Any) -> RawContractRecord | None:
    """
    Build a :class:`RawContractRecord`; rows without a batch id yield ``None``.
    """

    doc = unwrap_envelope(body)
    batch_id = _as_str(doc.get("contractBatchId"))
    if batch_id is None:
        logger.warning("Skipping contract document id=%s: missing or invalid contractBatchId", doc_id)
        return None
    return RawContractRecord(
        batch_id=batch_id,
        contract_id=_as_str(doc.get("contractId")),
        status=str(doc.get("status") or ""),
        attempts=_as_int(doc.get("attempts", doc.get("empRetryCount"))),
        large_entity_type=_as_str(doc.get("largeEntityType")),
        salesforce_response=_salesforce_response_from(doc.get("salesforceResponse")),
        timestamp=_as_int(ts),
    )


def entity_record_from_row(doc_id: str, ts: int, body: Any) -> EntityRecord | None:
    """
    Build an :class:`EntityRecord` from ``header.metadata``.
    """

    doc = unwrap_envelope(body)
    header = doc.get("header") if isinstance(doc.get("header"), dict) else {}
    metadata = header.get("metadata") if isinstance(header.get("metadata"), dict) else {}
    contract_id = _as_str(metadata.get("contractId"))
    if contract_id is None:
        logger.warning("Skipping entity document id=%s: missing contractId", doc_id)
        return None
    return EntityRecord(
        contract_id=contract_id,
        contract_status=str(metadata.get("contractStatus") or ""),
        country_code=str(metadata.get("countryCode") or ""),
        sub_domain=str(header.get("subDomain") or ""),
        batch_id=_as_str(metadata.get("splitEntityCorrelationId")),
        timestamp=_as_int(ts),
    )


def integration_status_from_row(doc_id: str, ts: int, body: Any) -> IntegrationStatusRecord | None:
    doc = unwrap_envelope(body)
    contract_id = _as_str(doc.get("contractId")) or _as_str(doc.get("id")) or _as_str(doc_id)
    if contract_id is None:
        return None
    return IntegrationStatusRecord(
        contract_id=contract_id,
        integration_status=str(doc.get("integrationStatus") or "Unknown"),
        integration_comment=_as_str(doc.get("integrationComment")),
        contract_status=_as_str(doc.get("contractStatus")),
        timestamp=_as_int(ts),
    )


def _unique(values: Iterable[str | None]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContractRepository:
    """
    Window and id-list queries over the contract document store.

    Every public method raises :class:`ContractRepositoryError` when the
    underlying query fails; normalization problems on individual rows are
    logged and the row is skipped.
    """

    def __init__(self, session: Session, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self._session = session
        self._chunk_size = chunk_size

    # ------------------------------------------------------------------
    # Window queries
    # ------------------------------------------------------------------

    def fetch_uploads(self, window: ReportWindow) -> list[RawContractRecord]:
        """Upload documents written inside *window*."""
        stmt = self._window_select(window).where(ContractDocument.id.contains(UPLOAD_ID_MARKER))
        rows = self._execute(stmt, "fetch_uploads")
        return [r for r in (contract_record_from_row(*row) for row in rows) if r is not None]

    def fetch_failures(self, window: ReportWindow) -> list[RawContractRecord]:
        """
        Documents whose upstream result is ``Failed`` or mentions ``permanent``.
        """

        result = ContractDocument.body["salesforceResponse"]["result"].astext
        stmt = self._window_select(window).where(
            or_(result == "Failed", func.lower(result).contains("permanent"))
        )
        rows = self._execute(stmt, "fetch_failures")
        return [r for r in (contract_record_from_row(*row) for row in rows) if r is not None]

    def fetch_integration_statuses(self, window: ReportWindow) -> list[IntegrationStatusRecord]:
        stmt = self._window_select(window).where(
            ContractDocument.document_type == INTEGRATION_STATUS_DOCUMENT_TYPE
        )
        rows = self._execute(stmt, "fetch_integration_statuses")
        return [r for r in (integration_status_from_row(*row) for row in rows) if r is not None]

    # ------------------------------------------------------------------
    # Id-list lookups
    # ------------------------------------------------------------------

    def fetch_entities_by_batch_ids(self, batch_ids: Iterable[str | None]) -> list[EntityRecord]:
        """
        Contract entities whose split-entity correlation id is in *batch_ids*.
        """

        column = ContractEntityDocument.body["header"]["metadata"]["splitEntityCorrelationId"].astext
        return self._fetch_entities(column, _unique(batch_ids), "fetch_entities_by_batch_ids")

    def fetch_entities_by_contract_ids(self, contract_ids: Iterable[str | None]) -> list[EntityRecord]:
        column = ContractEntityDocument.body["header"]["metadata"]["contractId"].astext
        return self._fetch_entities(column, _unique(contract_ids), "fetch_entities_by_contract_ids")

    def fetch_latest_integration_statuses(
        self,
        contract_ids: Iterable[str | None],
    ) -> dict[str, IntegrationStatusRecord]:
        """
        Most recent integration-status document per contract id.

        Rows are read newest first and the first one seen per contract
        wins, so the result holds one record per contract at most.
        """

        latest: dict[str, IntegrationStatusRecord] = {}
        column = ContractDocument.body["contractId"].astext
        for chunk in chunked(_unique(contract_ids), self._chunk_size):
            stmt = (
                select(ContractDocument.id, ContractDocument.ts, ContractDocument.body)
                .where(ContractDocument.document_type == INTEGRATION_STATUS_DOCUMENT_TYPE)
                .where(column.in_(chunk))
                .order_by(ContractDocument.ts.desc())
            )
            for row in self._execute(stmt, "fetch_latest_integration_statuses"):
                record = integration_status_from_row(*row)
                if record is not None and record.contract_id not in latest:
                    latest[record.contract_id] = record
        return latest

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_entities(self, column: Any, ids: list[str], operation: str) -> list[EntityRecord]:
        entities: list[EntityRecord] = []
        for index, chunk in enumerate(chunked(ids, self._chunk_size), start=1):
            stmt = (
                select(ContractEntityDocument.id, ContractEntityDocument.ts, ContractEntityDocument.body)
                .where(column.in_(chunk))
                .where(ContractEntityDocument.body["header"]["subDomain"].astext == ENTITY_SUB_DOMAIN)
            )
            rows = self._execute(stmt, operation)
            logger.debug("%s chunk=%d ids=%d rows=%d", operation, index, len(chunk), len(rows))
            entities.extend(e for e in (entity_record_from_row(*row) for row in rows) if e is not None)
        return entities

    @staticmethod
    def _window_select(window: ReportWindow) -> Select:
        return (
            select(ContractDocument.id, ContractDocument.ts, ContractDocument.body)
            .where(ContractDocument.ts >= window.start_sec)
            .where(ContractDocument.ts < window.end_sec)
            .order_by(ContractDocument.ts.desc())
        )

    def _execute(self, stmt: Select, operation: str) -> list[Any]:
        try:
            return list(self._session.execute(stmt).all())
        except SQLAlchemyError as exc:
            raise ContractRepositoryError(f"{operation} failed: {exc}") from exc
