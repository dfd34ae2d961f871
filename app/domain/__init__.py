"""
app/domain package marker.
"""

from app.domain.contract_records import (
    ContractFailure,
    ContractIntegration,
    ContractUpload,
    EntityRecord,
    IntegrationStatusRecord,
    ModuleReport,
    RawContractRecord,
    ReportRunSummary,
    ReportWindow,
    SalesforceError,
    SalesforceResponse,
)

__all__ = [
    "ContractFailure",
    "ContractIntegration",
    "ContractUpload",
    "EntityRecord",
    "IntegrationStatusRecord",
    "ModuleReport",
    "RawContractRecord",
    "ReportRunSummary",
    "ReportWindow",
    "SalesforceError",
    "SalesforceResponse",
]
