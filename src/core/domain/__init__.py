"""
Domain models and value objects.

Contains holder identities, ledger events, and ledger snapshots.
"""

from src.core.domain.events import (
    AnyLedgerEvent,
    ApprovalEvent,
    EventKind,
    IssuanceEvent,
    LedgerEvent,
    RedemptionEvent,
    TransferEvent,
)
from src.core.domain.identity import (
    NULL_HOLDER,
    Holder,
    is_null_holder,
    normalize_holder,
)
from src.core.domain.ledger_state import AllowanceEntry, LedgerSnapshot

__all__ = [
    # Identity
    "Holder",
    "NULL_HOLDER",
    "is_null_holder",
    "normalize_holder",
    # Events
    "EventKind",
    "LedgerEvent",
    "IssuanceEvent",
    "RedemptionEvent",
    "TransferEvent",
    "ApprovalEvent",
    "AnyLedgerEvent",
    # Snapshot
    "AllowanceEntry",
    "LedgerSnapshot",
]
