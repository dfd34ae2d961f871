"""
app/services/report_queries.py

Report queries: fetch → join → dedupe → aggregate → materialize.

Each :class:`ReportQuery` pairs a record loader with a metric family.
Loaders talk to a :class:`ContractSource` (the contract repository in
production, an in-memory fake in tests) and return deduplicated joined
records, one per contract.  The family turns those into the dense point
list for the window.

Failure contract
----------------
Any error raised while loading records or building points is re-raised
as :class:`ReportQueryError`.
:meth:`ReportQuery.zero_fill` produces the same point list as a run
that found no data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from app.domain.contract_records import (
    ContractFailure,
    ContractIntegration,
    ContractUpload,
    EntityRecord,
    IntegrationStatusRecord,
    RawContractRecord,
    ReportWindow,
)
from metrics.base import BaseMetricFamily
from metrics.dedupe import dedupe_latest_by_key
from metrics.joins import (
    attach_integration_statuses,
    index_entities_by_batch,
    index_entities_by_contract,
    join_failures,
    join_integrations,
    join_uploads,
    to_entity_batch_id,
)
from metrics.processed import processing_breakdown
from metrics.schema import MetricPoint
from metrics.status import COMPLETED_WITH_ERRORS

logger = logging.getLogger(__name__)

ERROR_DETAIL_LIMIT = 10
ERROR_COMMENT_WIDTH = 54


class ReportQueryError(RuntimeError):
    """
    Raised when a report query cannot load its records.
    """


class ContractSource(Protocol):
    """Read operations the report queries need from the contract store."""

    def fetch_uploads(self, window: ReportWindow) -> list[RawContractRecord]: ...

    def fetch_failures(self, window: ReportWindow) -> list[RawContractRecord]: ...

    def fetch_integration_statuses(self, window: ReportWindow) -> list[IntegrationStatusRecord]: ...

    def fetch_entities_by_batch_ids(self, batch_ids: Iterable[str | None]) -> list[EntityRecord]: ...

    def fetch_entities_by_contract_ids(self, contract_ids: Iterable[str | None]) -> list[EntityRecord]: ...

    def fetch_latest_integration_statuses(
        self,
        contract_ids: Iterable[str | None],
    ) -> dict[str, IntegrationStatusRecord]: ...


RecordLoader = Callable[[ContractSource, ReportWindow], Sequence[Any]]


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


def load_latest_uploads(source: ContractSource, window: ReportWindow) -> list[ContractUpload]:
    """
    Latest upload per contract, joined to its entity by correlation id.
    """

    uploads = source.fetch_uploads(window)
    if not uploads:
        return []

    entities = source.fetch_entities_by_batch_ids(to_entity_batch_id(u.batch_id) for u in uploads)
    joined = join_uploads(uploads, index_entities_by_batch(entities))
    latest = dedupe_latest_by_key(joined, lambda r: r.contract_id, lambda r: r.timestamp)
    logger.info(
        "Loaded uploads window=%s uploads=%d entities=%d contracts=%d",
        window.label,
        len(uploads),
        len(entities),
        len(latest),
    )
    return list(latest.values())


def load_processed_uploads(source: ContractSource, window: ReportWindow) -> list[ContractUpload]:
    """
    Latest upload per contract with its latest integration status attached.
    """

    latest = load_latest_uploads(source, window)
    if not latest:
        return []
    statuses = source.fetch_latest_integration_statuses(r.contract_id for r in latest)
    attached = attach_integration_statuses(latest, statuses)
    logger.info(
        "Loaded processed window=%s contracts=%d breakdown=%s",
        window.label,
        len(attached),
        processing_breakdown(attached),
    )
    return attached


def load_failures(source: ContractSource, window: ReportWindow) -> list[ContractFailure]:
    failures = source.fetch_failures(window)
    latest = dedupe_latest_by_key(failures, lambda r: r.contract_id, lambda r: r.timestamp)
    if not latest:
        return []
    entities = source.fetch_entities_by_contract_ids(latest.keys())
    logger.info(
        "Loaded failures window=%s failures=%d contracts=%d entities=%d",
        window.label,
        len(failures),
        len(latest),
        len(entities),
    )
    return join_failures(latest.values(), index_entities_by_contract(entities))


def log_integration_errors(
    statuses: Iterable[IntegrationStatusRecord],
    *,
    limit: int = ERROR_DETAIL_LIMIT,
) -> int:
    """
    Log the comment of each contract that completed with errors.

    Only the first *limit* contracts are logged individually; comments are
    cut to a fixed width.  Returns the number of contracts with details.
    """

    details = [
        s for s in statuses
        if s.integration_status == COMPLETED_WITH_ERRORS and s.integration_comment
    ]
    for status in details[:limit]:
        logger.warning(
            "Integration completed with errors contract=%s contract_status=%s error=%s at=%s",
            status.contract_id,
            status.contract_status,
            status.integration_comment[:ERROR_COMMENT_WIDTH],
            datetime.fromtimestamp(status.timestamp, tz=timezone.utc).isoformat(),
        )
    if len(details) > limit:
        logger.warning("... and %d more integration error(s)", len(details) - limit)
    return len(details)


def load_integrations(source: ContractSource, window: ReportWindow) -> list[ContractIntegration]:
    statuses = source.fetch_integration_statuses(window)
    latest = dedupe_latest_by_key(statuses, lambda r: r.contract_id, lambda r: r.timestamp)
    if not latest:
        return []
    log_integration_errors(latest.values())
    entities = source.fetch_entities_by_contract_ids(latest.keys())
    return join_integrations(latest.values(), index_entities_by_contract(entities))


# ---------------------------------------------------------------------------
# Query value
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportQuery:
    """
    One report module: a named metric family bound to a window label.
    """

    name: str
    metric_base: str
    family: BaseMetricFamily
    window: str
    loader: RecordLoader

    def run(self, source: ContractSource, window: ReportWindow) -> list[MetricPoint]:
        """
        Load records for *window* and return the dense point list.

        Raises
        ------
        ReportQueryError
            If loading or point generation fails for any reason.
        """

        try:
            records = self.loader(source, window)
            return self.family.points(records, self.window)
        except Exception as exc:  # noqa: BLE001
            raise ReportQueryError(f"{self.name}: {exc}") from exc

    def zero_fill(self) -> list[MetricPoint]:
        return self.family.zero_points(self.window)
