"""create contract document tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "contract_documents",
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column(
            "document_type",
            sa.String(length=120),
            nullable=True,
            comment="ContractCosmosDataModel for integration-status documents",
        ),
        sa.Column("partition_key", sa.String(length=255), nullable=True),
        sa.Column("ts", sa.BigInteger(), nullable=False, comment="Upstream write time, epoch seconds"),
        sa.Column("body", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("ingested_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contract_documents_ts", "contract_documents", ["ts"], unique=False)
    op.create_index(
        "ix_contract_documents_document_type_ts",
        "contract_documents",
        ["document_type", "ts"],
        unique=False,
    )

    op.create_table(
        "contract_entity_documents",
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column("document_type", sa.String(length=120), nullable=True),
        sa.Column("partition_key", sa.String(length=255), nullable=True),
        sa.Column("ts", sa.BigInteger(), nullable=False),
        sa.Column("body", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("ingested_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contract_entity_documents_ts", "contract_entity_documents", ["ts"], unique=False)
    op.execute(
        "CREATE INDEX ix_contract_entity_documents_correlation_id "
        "ON contract_entity_documents ((body -> 'header' -> 'metadata' ->> 'splitEntityCorrelationId'))"
    )
    op.execute(
        "CREATE INDEX ix_contract_entity_documents_contract_id "
        "ON contract_entity_documents ((body -> 'header' -> 'metadata' ->> 'contractId'))"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_contract_entity_documents_contract_id")
    op.execute("DROP INDEX IF EXISTS ix_contract_entity_documents_correlation_id")
    op.drop_index("ix_contract_entity_documents_ts", table_name="contract_entity_documents")
    op.drop_table("contract_entity_documents")
    op.drop_index("ix_contract_documents_document_type_ts", table_name="contract_documents")
    op.drop_index("ix_contract_documents_ts", table_name="contract_documents")
    op.drop_table("contract_documents")
