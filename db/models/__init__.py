"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.contract_document import ContractDocument, ContractEntityDocument

__all__ = [
    "ContractDocument",
    "ContractEntityDocument",
]
