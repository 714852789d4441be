"""
Ledger Errors — таксономия отказов share-ledger

Все отказы фатальны для операции и не ретраятся без изменения входов:
операция прерывается целиком, её мутации откатываются.

Каждое исключение несёт reason-тег (snake_case) в сообщении и атрибуте
`reason`, чтобы вызывающая сторона могла различать отказы без парсинга текста.
"""

from typing import Optional


class LedgerError(Exception):
    """Базовый класс отказов ledger."""

    reason: str = "ledger_error"

    def __init__(self, message: Optional[str] = None):
        detail = message or self.__class__.__name__
        super().__init__(f"{detail} ({self.reason})")


# =============================================================================
# IDENTITY
# =============================================================================


class InvalidReceiver(LedgerError):
    """Получатель — нулевая идентичность (или выплата получателю не удалась)."""

    reason = "invalid_receiver"


class InvalidSender(LedgerError):
    """Отправитель / держатель — нулевая идентичность."""

    reason = "invalid_sender"


class InvalidApprover(LedgerError):
    """Owner в approve — нулевая идентичность."""

    reason = "invalid_approver"


class InvalidSpender(LedgerError):
    """Spender в approve — нулевая идентичность."""

    reason = "invalid_spender"


# =============================================================================
# AMOUNTS
# =============================================================================


class InvalidAmount(LedgerError):
    """Amount вне допустимого диапазона (ноль там, где нужен положительный, и т.п.)."""

    reason = "invalid_amount"


class ArithmeticOverflow(LedgerError):
    """Результат операции не помещается в uint256."""

    reason = "arithmetic_overflow"


class InsufficientShares(LedgerError):
    """У держателя меньше shares, чем требует декремент."""

    reason = "insufficient_shares"

    def __init__(self, holder: str, required: int, available: int):
        self.holder = holder
        self.required = required
        self.available = available
        super().__init__(
            f"{holder} holds {available} shares, {required} required"
        )


class InsufficientAllowance(LedgerError):
    """Spender пытается потратить больше, чем разрешено."""

    reason = "insufficient_allowance"

    def __init__(self, owner: str, spender: str, required: int, available: int):
        self.owner = owner
        self.spender = spender
        self.required = required
        self.available = available
        super().__init__(
            f"allowance {owner} -> {spender} is {available}, {required} required"
        )


# =============================================================================
# CONVERSION
# =============================================================================


class SharesSlippage(LedgerError):
    """Выпущенные shares ниже slippage tolerance."""

    reason = "shares_slippage"

    def __init__(self, shares_issued: int, min_shares: int, slippage_bp: int):
        self.shares_issued = shares_issued
        self.min_shares = min_shares
        self.slippage_bp = slippage_bp
        super().__init__(
            f"issued {shares_issued} shares, tolerance {slippage_bp} bp "
            f"requires at least {min_shares}"
        )


class ZeroSharesToBurn(LedgerError):
    """Запрошенный amount округляется до 0 shares."""

    reason = "zero_shares_to_burn"


class ZeroSharesToTransfer(LedgerError):
    """Ненулевой amount перевода округляется до 0 shares."""

    reason = "zero_shares_to_transfer"


# =============================================================================
# PAYOUT / INVARIANTS
# =============================================================================


class FailedPayout(InvalidReceiver):
    """Выплата актива держателю не удалась; burn откатывается."""

    reason = "failed_payout"


class ReentrantMutation(LedgerError):
    """Мутирующий вызов ledger во время выплаты."""

    reason = "reentrant_mutation"


class LedgerInvariantViolation(LedgerError):
    """Нарушен инвариант total_shares == Σ share_balance."""

    reason = "ledger_invariant_violation"
