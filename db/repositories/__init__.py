"""
Repository layer exports.
"""

from db.repositories.contract_repository import ContractRepository
from db.repositories.errors import ContractRepositoryError

__all__ = [
    "ContractRepository",
    "ContractRepositoryError",
]
