"""
Share Ledger — долевой учёт поверх наблюдаемой стоимости пула.

Компоненты:
- ShareLedger: ядро (конверсия, mint, burn, transfer, allowance)
- ShareToken: token-style фасад с приложенными депозитами и выплатами
- InMemoryPool: коллаборатор, отслеживающий стоимость пула
"""

from src.ledger.config import LedgerConfig
from src.ledger.errors import (
    ArithmeticOverflow,
    FailedPayout,
    InsufficientAllowance,
    InsufficientShares,
    InvalidAmount,
    InvalidApprover,
    InvalidReceiver,
    InvalidSender,
    InvalidSpender,
    LedgerError,
    LedgerInvariantViolation,
    ReentrantMutation,
    SharesSlippage,
    ZeroSharesToBurn,
    ZeroSharesToTransfer,
)
from src.ledger.pool import InMemoryPool, PayoutTransport, PoolValueSource
from src.ledger.share_ledger import MintQuote, ShareLedger
from src.ledger.token import ShareToken

__all__ = [
    # Config
    "LedgerConfig",
    # Errors
    "LedgerError",
    "InvalidReceiver",
    "InvalidSender",
    "InvalidApprover",
    "InvalidSpender",
    "InvalidAmount",
    "ArithmeticOverflow",
    "InsufficientShares",
    "InsufficientAllowance",
    "SharesSlippage",
    "ZeroSharesToBurn",
    "ZeroSharesToTransfer",
    "FailedPayout",
    "ReentrantMutation",
    "LedgerInvariantViolation",
    # Pool
    "PoolValueSource",
    "PayoutTransport",
    "InMemoryPool",
    # Ledger
    "MintQuote",
    "ShareLedger",
    "ShareToken",
]
