"""
app/domain/contract_records.py

Immutable record types consumed by the metric aggregation engine.

Records are produced by the contract repository for a single report run
and discarded afterwards.  The engine never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SalesforceError:
    """
    One error entry from an upstream Salesforce response.
    """

    status_code: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class SalesforceResponse:
    """
    Upstream processing result attached to a contract document.
    """

    result: str | None = None
    errors: tuple[SalesforceError, ...] = ()


@dataclass(frozen=True)
class RawContractRecord:
    """
    One upload or processing attempt from the contract store.
    """

    batch_id: str
    status: str
    attempts: int
    timestamp: int
    contract_id: str | None = None
    large_entity_type: str | None = None
    salesforce_response: SalesforceResponse | None = None


@dataclass(frozen=True)
class EntityRecord:
    """
    Business-attribute snapshot of a contract from the entities store.

    ``batch_id`` is the split-entity correlation id used to join upload
    documents to their entity.
    """

    contract_id: str
    contract_status: str
    country_code: str
    sub_domain: str
    timestamp: int
    batch_id: str | None = None


@dataclass(frozen=True)
class IntegrationStatusRecord:
    """
    Downstream integration completion signal for one contract.
    """

    contract_id: str
    integration_status: str
    timestamp: int
    integration_comment: str | None = None
    contract_status: str | None = None


@dataclass(frozen=True)
class ReportWindow:
    """
    Half-open ``[start_sec, end_sec)`` time range with its window label.
    """

    label: str
    start_sec: int
    end_sec: int


# ---------------------------------------------------------------------------
# Joined records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractUpload:
    """
    Latest upload of a contract joined to its entity record.

    ``integration_status`` is the raw latest integration status, when one
    was found.
    """

    contract_id: str
    upload: RawContractRecord
    entity: EntityRecord
    integration_status: str | None = None

    @property
    def timestamp(self) -> int:
        return self.upload.timestamp


@dataclass(frozen=True)
class ContractFailure:
    """
    Failed processing attempt joined to the contract's entity, if known.
    """

    contract_id: str
    failure: RawContractRecord
    entity: EntityRecord | None = None

    @property
    def timestamp(self) -> int:
        return self.failure.timestamp


@dataclass(frozen=True)
class ContractIntegration:
    """
    Integration status document joined to the contract's entity, if known.
    """

    contract_id: str
    status: IntegrationStatusRecord
    entity: EntityRecord | None = None

    @property
    def timestamp(self) -> int:
        return self.status.timestamp


@dataclass(frozen=True)
class ModuleReport:
    """
    Outcome of one report module within a run.
    """

    name: str
    metrics_count: int
    lines_ok: int = 0
    lines_invalid: int = 0
    error: str | None = None
    summary: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReportRunSummary:
    """
    End-of-run report summary.
    """

    mode: str
    window: ReportWindow
    modules: list[ModuleReport] = field(default_factory=list)

    @property
    def total_lines_sent(self) -> int:
        return sum(module.lines_ok for module in self.modules)

    @property
    def failed_modules(self) -> list[str]:
        return [module.name for module in self.modules if module.error is not None]
