"""Operations, the ordered Transaction, and the builder that produces it.

All public names are re-exported here so callers can write
``from pkgsat.core.transaction import TransactionBuilder``.
"""

from pkgsat.core.transaction.builder import (
    TransactionBuilder,
    dependency_order,
    requires_edges,
    strongly_connected_components,
)
from pkgsat.core.transaction.operations import (
    InstallOperation,
    Operation,
    OperationKind,
    Transaction,
    UninstallOperation,
    UpdateOperation,
)

__all__ = [
    "InstallOperation",
    "Operation",
    "OperationKind",
    "Transaction",
    "TransactionBuilder",
    "UninstallOperation",
    "UpdateOperation",
    "dependency_order",
    "requires_edges",
    "strongly_connected_components",
]
