"""
Contract Validation Module

Модуль для валидации JSON контрактов share-ledger.
"""

from .validators import (
    ContractValidator,
    LedgerEventValidator,
    LedgerSnapshotValidator,
    SchemaLoader,
    validate_ledger_event,
    validate_ledger_snapshot,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "LedgerSnapshotValidator",
    "LedgerEventValidator",
    # Functions
    "validate_ledger_snapshot",
    "validate_ledger_event",
]
