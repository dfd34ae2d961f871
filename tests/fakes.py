"""
tests/fakes.py

In-memory record builders and collaborator fakes shared by the tests.

Nothing here touches a database or the network.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from app.domain.contract_records import (
    ContractFailure,
    ContractIntegration,
    ContractUpload,
    EntityRecord,
    IntegrationStatusRecord,
    RawContractRecord,
    ReportWindow,
    SalesforceError,
    SalesforceResponse,
)
from app.schemas.ingest_result import IngestResult


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_upload(
    batch_id: str = "CMP-Contract-B1",
    *,
    status: str = "completed",
    timestamp: int = 1_000,
    attempts: int = 1,
) -> RawContractRecord:
    return RawContractRecord(batch_id=batch_id, status=status, attempts=attempts, timestamp=timestamp)


def make_entity(
    contract_id: str = "C1",
    *,
    batch_id: str | None = "B1",
    country: str = "au",
    contract_status: str = "a",
    timestamp: int = 900,
) -> EntityRecord:
    return EntityRecord(
        contract_id=contract_id,
        contract_status=contract_status,
        country_code=country,
        sub_domain="Contract",
        batch_id=batch_id,
        timestamp=timestamp,
    )


def make_failure(
    contract_id: str | None = "C1",
    *,
    result: str | None = "Failed",
    status_code: str | None = None,
    message: str | None = None,
    entity_type: str | None = "ContractCustomer",
    timestamp: int = 1_000,
) -> RawContractRecord:
    errors = () if status_code is None and message is None else (SalesforceError(status_code, message),)
    return RawContractRecord(
        batch_id=f"CMP-Contract-{contract_id}",
        contract_id=contract_id,
        status="failed",
        attempts=1,
        large_entity_type=entity_type,
        salesforce_response=SalesforceResponse(result=result, errors=errors),
        timestamp=timestamp,
    )


def make_integration_status(
    contract_id: str = "C1",
    *,
    integration_status: str = "Completed",
    contract_status: str | None = "approved",
    timestamp: int = 1_100,
    comment: str | None = None,
) -> IntegrationStatusRecord:
    return IntegrationStatusRecord(
        contract_id=contract_id,
        integration_status=integration_status,
        contract_status=contract_status,
        timestamp=timestamp,
        integration_comment=comment,
    )


def joined_upload(
    contract_id: str = "C1",
    *,
    status: str = "completed",
    country: str = "au",
    contract_status: str = "a",
    integration_status: str | None = None,
) -> ContractUpload:
    return ContractUpload(
        contract_id=contract_id,
        upload=make_upload(f"CMP-Contract-{contract_id}", status=status),
        entity=make_entity(contract_id, batch_id=contract_id, country=country, contract_status=contract_status),
        integration_status=integration_status,
    )


def joined_failure(contract_id: str = "C1", *, entity: EntityRecord | None = None, **kwargs) -> ContractFailure:
    return ContractFailure(contract_id=contract_id, failure=make_failure(contract_id, **kwargs), entity=entity)


def joined_integration(
    contract_id: str = "C1",
    *,
    entity: EntityRecord | None = None,
    **kwargs,
) -> ContractIntegration:
    return ContractIntegration(
        contract_id=contract_id,
        status=make_integration_status(contract_id, **kwargs),
        entity=entity,
    )


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeContractSource:
    """
    Dict-backed stand-in for ContractRepository.

    Window queries ignore the window bounds and return whatever was
    loaded; id lookups filter by the requested ids.
    """

    def __init__(
        self,
        *,
        uploads: Sequence[RawContractRecord] = (),
        failures: Sequence[RawContractRecord] = (),
        integration_statuses: Sequence[IntegrationStatusRecord] = (),
        entities: Sequence[EntityRecord] = (),
        fail_on: frozenset[str] = frozenset(),
    ) -> None:
        self.uploads = list(uploads)
        self.failures = list(failures)
        self.integration_statuses = list(integration_statuses)
        self.entities = list(entities)
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f"{name} unavailable")

    def fetch_uploads(self, window: ReportWindow) -> list[RawContractRecord]:
        self._record("fetch_uploads")
        return list(self.uploads)

    def fetch_failures(self, window: ReportWindow) -> list[RawContractRecord]:
        self._record("fetch_failures")
        return list(self.failures)

    def fetch_integration_statuses(self, window: ReportWindow) -> list[IntegrationStatusRecord]:
        self._record("fetch_integration_statuses")
        return list(self.integration_statuses)

    def fetch_entities_by_batch_ids(self, batch_ids: Iterable[str | None]) -> list[EntityRecord]:
        self._record("fetch_entities_by_batch_ids")
        wanted = set(batch_ids)
        return [e for e in self.entities if e.batch_id in wanted]

    def fetch_entities_by_contract_ids(self, contract_ids: Iterable[str | None]) -> list[EntityRecord]:
        self._record("fetch_entities_by_contract_ids")
        wanted = set(contract_ids)
        return [e for e in self.entities if e.contract_id in wanted]

    def fetch_latest_integration_statuses(
        self,
        contract_ids: Iterable[str | None],
    ) -> dict[str, IntegrationStatusRecord]:
        self._record("fetch_latest_integration_statuses")
        wanted = set(contract_ids)
        latest: dict[str, IntegrationStatusRecord] = {}
        for status in sorted(self.integration_statuses, key=lambda s: s.timestamp, reverse=True):
            if status.contract_id in wanted and status.contract_id not in latest:
                latest[status.contract_id] = status
        return latest


class RecordingSink:
    """Metrics sink that accepts every line and remembers each batch."""

    def __init__(self, *, fail: bool = False, invalid: int = 0) -> None:
        self.batches: list[list[str]] = []
        self._fail = fail
        self._invalid = invalid

    def send(self, lines: Sequence[str]) -> IngestResult:
        if self._fail:
            raise RuntimeError("ingest endpoint down")
        self.batches.append(list(lines))
        return IngestResult(
            lines_ok=len(lines) - self._invalid,
            lines_invalid=self._invalid,
            invalid_lines=[{"line": 1, "error": "bad"}] * self._invalid,
        )
