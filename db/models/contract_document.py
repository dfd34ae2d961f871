"""
db/models/contract_document.py

JSON document tables for the contract store and the contract entities store.

Documents keep their upstream shape in ``body``.  Only the fields every
report filters on are lifted into real columns: ``document_type`` and
``ts`` (the upstream epoch-seconds write timestamp).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, IngestedAtMixin

INTEGRATION_STATUS_DOCUMENT_TYPE = "ContractCosmosDataModel"


class ContractDocument(IngestedAtMixin, Base):
    """
    Upload, processing and integration-status documents.
    """

    __tablename__ = "contract_documents"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    document_type: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
        comment="ContractCosmosDataModel for integration-status documents",
    )
    partition_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ts: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Upstream write time, epoch seconds",
    )
    body: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    __table_args__ = (
        Index("ix_contract_documents_ts", "ts"),
        Index("ix_contract_documents_document_type_ts", "document_type", "ts"),
    )


class ContractEntityDocument(IngestedAtMixin, Base):
    """
    Contract entity snapshots carrying ``header.metadata`` business attributes.
    """

    __tablename__ = "contract_entity_documents"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    document_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    partition_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ts: Mapped[int] = mapped_column(BigInteger, nullable=False)
    body: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    __table_args__ = (
        Index("ix_contract_entity_documents_ts", "ts"),
    )
