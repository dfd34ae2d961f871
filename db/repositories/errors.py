"""
Repository-layer exceptions for contract store reads.
"""

from __future__ import annotations


class ContractRepositoryError(Exception):
    """Raised when a contract store query fails."""
