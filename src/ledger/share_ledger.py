"""
ShareLedger — ядро долевого учёта

Ledger владеет тремя частями состояния:
- total_shares: всего shares в обращении
- share_balance: shares по держателям
- allowance: (owner, spender) → разрешённый amount актива

и наблюдает одну внешнюю величину — стоимость пула (PoolValueSource).
Claimable amount держателя никогда не хранится: он всегда вычисляется как
share_balance × pool_value // total_shares.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. total_shares == Σ share_balance во всех достижимых состояниях
2. balance_of(h) == 0 при total_shares == 0, независимо от pool_value
3. Отказ операции откатывает все её мутации (журнал + rollback)
4. Burn фиксирует уменьшение shares ДО выплаты: реентерабельный вызов
   во время выплаты видит уже уменьшенные балансы
5. Безлимитный allowance (sentinel) никогда не декрементируется
6. Во время выплаты мутирующие вызовы запрещены (ReentrantMutation):
   выплата необратима, откат вложенной операции вернул бы shares
   держателю, уже получившему актив

Все мутирующие операции сериализуются одним RLock.
"""

import logging
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, Tuple, Type

from src.core.domain.events import (
    AnyLedgerEvent,
    ApprovalEvent,
    IssuanceEvent,
    RedemptionEvent,
    TransferEvent,
)
from src.core.domain.identity import Holder, is_null_holder, normalize_holder
from src.core.domain.ledger_state import AllowanceEntry, LedgerSnapshot
from src.core.math.share_math import (
    UintDomainError,
    amount_to_shares,
    bps_of,
    checked_add,
    is_within_slippage,
    shares_for_deposit,
    shares_to_amount,
    validate_uint,
)
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
from src.ledger.pool import PayoutTransport, PoolValueSource

logger = logging.getLogger(__name__)

PayoutFn = Callable[[Holder, int], bool]


# =============================================================================
# JOURNAL
# =============================================================================


@dataclass
class _Journal:
    """Undo-журнал одной операции.

    Для каждого затронутого слота хранится значение ДО первой мутации
    (None = слот отсутствовал). События буферизуются до commit.
    """

    total_shares_before: int
    shares_undo: Dict[Holder, Optional[int]] = field(default_factory=dict)
    allowance_undo: Dict[Tuple[Holder, Holder], Optional[int]] = field(default_factory=dict)
    pending_events: List[AnyLedgerEvent] = field(default_factory=list)

    def absorb(self, child: "_Journal") -> None:
        """Слияние успешно завершённой вложенной операции в родительскую."""
        for holder, prev in child.shares_undo.items():
            self.shares_undo.setdefault(holder, prev)
        for key, prev in child.allowance_undo.items():
            self.allowance_undo.setdefault(key, prev)
        self.pending_events.extend(child.pending_events)


@dataclass(frozen=True)
class MintQuote:
    """Котировка выпуска shares за будущий депозит."""

    deposit: int
    shares: int
    min_shares: int
    slippage_bp: int


# =============================================================================
# SHARE LEDGER
# =============================================================================


class ShareLedger:
    """Share ledger: конверсия amount ↔ shares, mint, burn, transfer, allowance.

    Args:
        pool: read accessor стоимости пула
        payout: выплата актива при burn; по умолчанию pool.pay_out,
            если pool реализует PayoutTransport
        config: LedgerConfig
    """

    def __init__(
        self,
        pool: PoolValueSource,
        payout: Optional[PayoutFn] = None,
        config: Optional[LedgerConfig] = None,
    ):
        self._pool = pool
        if payout is None and isinstance(pool, PayoutTransport):
            payout = pool.pay_out
        self._payout = payout
        self.config = config or LedgerConfig()

        self._total_shares = 0
        self._shares: Dict[Holder, int] = {}
        self._allowances: Dict[Tuple[Holder, Holder], int] = {}

        # None = полный журнал событий; иначе хранятся последние event_retention
        self._events: Deque[AnyLedgerEvent] = deque(maxlen=self.config.event_retention)
        self._last_seq = 0
        self._journals: List[_Journal] = []
        self._paying_out = False
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def total_shares(self) -> int:
        return self._total_shares

    def pool_value(self) -> int:
        return self._pool.total_value()

    def total_supply(self) -> int:
        """Total supply ledger: стоимость пула, а не количество shares."""
        return self._pool.total_value()

    def shares_of(self, holder: Holder) -> int:
        return self._shares.get(holder, 0)

    def balance_of(self, holder: Holder) -> int:
        """Claimable amount: share_balance × pool_value // total_shares."""
        with self._lock:
            return shares_to_amount(
                self._shares.get(holder, 0), self._total_shares, self._pool.total_value()
            )

    def allowance(self, owner: Holder, spender: Holder) -> int:
        return self._allowances.get((owner, spender), 0)

    def get_shares_by_amount(self, amount: int) -> int:
        """Конверсия amount → shares по текущему курсу (0 при пустом пуле)."""
        amount = self._require_uint(amount, "amount")
        with self._lock:
            return amount_to_shares(amount, self._total_shares, self._pool.total_value())

    def get_amount_by_shares(self, shares: int) -> int:
        """Конверсия shares → amount по текущему курсу (0 если shares не выпущены)."""
        shares = self._require_uint(shares, "shares")
        with self._lock:
            return shares_to_amount(shares, self._total_shares, self._pool.total_value())

    def preview_mint(self, deposit: int, slippage_bp: Optional[int] = None) -> MintQuote:
        """Котировка выпуска для депозита, который ещё НЕ поступил в пул.

        min_shares — нижняя граница, которую гарантирует mint с тем же slippage_bp
        при неизменном курсе.
        """
        deposit = self._require_uint(deposit, "deposit")
        bp = self._resolve_slippage(slippage_bp)
        with self._lock:
            total = self._total_shares
            pool_before = self._pool.total_value()
            if total == 0:
                shares = deposit
            elif pool_before == 0:
                raise InvalidAmount("pool holds no value for outstanding shares")
            else:
                shares = amount_to_shares(deposit, total, pool_before)
        min_shares = bps_of(shares, bp, self.config.bp_denominator)
        return MintQuote(deposit=deposit, shares=shares, min_shares=min_shares, slippage_bp=bp)

    @property
    def events(self) -> Tuple[AnyLedgerEvent, ...]:
        """Хранимые события (все или последние config.event_retention)."""
        return tuple(self._events)

    @property
    def last_event_seq(self) -> int:
        return self._last_seq

    def events_since(self, seq: int) -> List[AnyLedgerEvent]:
        """Хранимые события с номером > seq."""
        return [e for e in self._events if e.seq > seq]

    @contextmanager
    def exclusive(self) -> Iterator["ShareLedger"]:
        """Эксклюзивный доступ: для транспорта, которому нужно атомарно
        изменить пул и вызвать операцию ledger."""
        with self._lock:
            yield self

    # -------------------------------------------------------------------------
    # Mint
    # -------------------------------------------------------------------------

    def mint(self, to: Holder, deposit: int, slippage_bp: Optional[int] = None) -> int:
        """Выпуск shares за депозит, УЖЕ зачисленный в пул.

        Args:
            to: получатель shares
            deposit: сумма депозита (уже отражена в pool_value)
            slippage_bp: минимально допустимая доля от справедливого выпуска
                в basis points; None → config.default_slippage_bp

        Returns:
            Количество выпущенных shares

        Raises:
            InvalidReceiver: to — нулевая идентичность
            InvalidAmount: deposit == 0, slippage_bp вне [0, 10000] или
                стоимость пула не покрывает депозит
            SharesSlippage: выпуск ниже tolerance
        """
        with self._transaction("mint"):
            to = normalize_holder(to)
            if is_null_holder(to):
                raise InvalidReceiver("mint to the null holder")
            deposit = self._require_uint(deposit, "deposit")
            if deposit == 0:
                raise InvalidAmount("deposit must be positive")
            bp = self._resolve_slippage(slippage_bp)

            pool_after = self._pool.total_value()
            total_before = self._total_shares

            try:
                shares = shares_for_deposit(deposit, total_before, pool_after)
            except UintDomainError:
                raise InvalidAmount(
                    f"pool value {pool_after} does not include deposit {deposit}"
                ) from None
            except ZeroDivisionError:
                raise InvalidAmount(
                    f"pool held no value for {total_before} outstanding shares"
                ) from None

            # First depositor: курс 1:1, отклоняться не от чего
            if total_before > 0 and not is_within_slippage(
                shares,
                deposit,
                total_before,
                pool_after,
                bp,
                self.config.bp_denominator,
            ):
                denom = self.config.bp_denominator * pool_after
                min_shares = -(-(bp * deposit * total_before) // denom)
                raise SharesSlippage(shares, min_shares, bp)

            self._credit_shares(to, shares)
            self._set_total_shares(self._checked_add(self._total_shares, shares))
            self._emit(IssuanceEvent, receiver=to, deposit=deposit, shares=shares)
            return shares

    # -------------------------------------------------------------------------
    # Burn
    # -------------------------------------------------------------------------

    def burn(self, holder: Holder, amount: int, *, caller: Optional[Holder] = None) -> int:
        """Погашение shares на amount актива с выплатой держателю.

        Shares списываются до выплаты; если выплата не удалась, операция
        откатывается целиком.

        Args:
            holder: держатель, чьи shares погашаются
            amount: amount актива к выплате (не количество shares)
            caller: инициатор; если отличается от holder, тратится allowance

        Returns:
            Количество погашенных shares

        Raises:
            InvalidSender: holder — нулевая идентичность
            InvalidAmount: amount == 0
            InsufficientAllowance: caller не имеет достаточного allowance
            ZeroSharesToBurn: amount округляется до 0 shares
            InsufficientShares: у holder меньше shares, чем требуется
            FailedPayout: выплата не удалась (в т.ч. вложенный вызов ledger
                из выплаты отклонён с ReentrantMutation)
        """
        caller = holder if caller is None else caller
        with self._transaction("burn"):
            holder = normalize_holder(holder)
            caller = normalize_holder(caller)
            if is_null_holder(holder):
                raise InvalidSender("burn from the null holder")
            amount = self._require_uint(amount, "amount")
            if amount == 0:
                raise InvalidAmount("burn amount must be positive")

            if caller != holder:
                self._spend_allowance(holder, caller, amount)

            shares = amount_to_shares(amount, self._total_shares, self._pool.total_value())
            if shares == 0:
                raise ZeroSharesToBurn(f"amount {amount} converts to zero shares")

            self._debit_shares(holder, shares)
            self._set_total_shares(self._total_shares - shares)
            self._emit(RedemptionEvent, sender=holder, amount=amount, shares=shares)

            self._pay_out(holder, amount)
            return shares

    def _pay_out(self, to: Holder, amount: int) -> None:
        if self._payout is None:
            raise FailedPayout("no payout transport configured")
        self._paying_out = True
        try:
            ok = self._payout(to, amount)
        except Exception as exc:
            raise FailedPayout(f"payout of {amount} to {to} raised {exc!r}") from exc
        finally:
            self._paying_out = False
        if not ok:
            raise FailedPayout(f"payout of {amount} to {to} failed")

    # -------------------------------------------------------------------------
    # Allowance
    # -------------------------------------------------------------------------

    def approve(self, owner: Holder, spender: Holder, amount: int) -> bool:
        """Установка (перезапись) allowance owner → spender."""
        with self._transaction("approve"):
            owner = normalize_holder(owner)
            spender = normalize_holder(spender)
            if is_null_holder(owner):
                raise InvalidApprover("approve from the null holder")
            if is_null_holder(spender):
                raise InvalidSpender("approve for the null holder")
            amount = self._require_uint(amount, "amount")
            self._approve(owner, spender, amount)
            return True

    def increase_allowance(self, owner: Holder, spender: Holder, added: int) -> bool:
        with self._transaction("increase_allowance"):
            owner = normalize_holder(owner)
            spender = normalize_holder(spender)
            if is_null_holder(owner):
                raise InvalidApprover("approve from the null holder")
            if is_null_holder(spender):
                raise InvalidSpender("approve for the null holder")
            added = self._require_uint(added, "added")
            current = self.allowance(owner, spender)
            self._approve(owner, spender, self._checked_add(current, added))
            return True

    def decrease_allowance(self, owner: Holder, spender: Holder, subtracted: int) -> bool:
        with self._transaction("decrease_allowance"):
            owner = normalize_holder(owner)
            spender = normalize_holder(spender)
            if is_null_holder(owner):
                raise InvalidApprover("approve from the null holder")
            if is_null_holder(spender):
                raise InvalidSpender("approve for the null holder")
            subtracted = self._require_uint(subtracted, "subtracted")
            current = self.allowance(owner, spender)
            if current < subtracted:
                raise InsufficientAllowance(owner, spender, subtracted, current)
            self._approve(owner, spender, current - subtracted)
            return True

    def spend_allowance(self, owner: Holder, spender: Holder, amount: int) -> None:
        """Трата allowance; no-op для owner == spender и безлимитного allowance."""
        with self._transaction("spend_allowance"):
            owner = normalize_holder(owner)
            spender = normalize_holder(spender)
            amount = self._require_uint(amount, "amount")
            self._spend_allowance(owner, spender, amount)

    def _approve(self, owner: Holder, spender: Holder, amount: int) -> None:
        self._set_allowance(owner, spender, amount)
        self._emit(ApprovalEvent, owner=owner, spender=spender, amount=amount)

    def _spend_allowance(self, owner: Holder, spender: Holder, amount: int) -> None:
        if spender == owner:
            return
        current = self.allowance(owner, spender)
        if current == self.config.unlimited_allowance:
            return
        if current < amount:
            raise InsufficientAllowance(owner, spender, amount, current)
        self._set_allowance(owner, spender, current - amount)

    # -------------------------------------------------------------------------
    # Transfer
    # -------------------------------------------------------------------------

    def transfer(self, sender: Holder, to: Holder, amount: int) -> int:
        """Перевод amount актива (в shares-эквиваленте) от sender к to."""
        return self.transfer_from(sender, to, amount, caller=sender)

    def transfer_from(
        self, sender: Holder, to: Holder, amount: int, *, caller: Holder
    ) -> int:
        """Перевод от имени sender; caller != sender тратит allowance.

        total_shares не меняется. Из-за floor-округления получатель может
        получить claimable стоимость чуть меньше amount.

        Returns:
            Количество перемещённых shares
        """
        with self._transaction("transfer_from"):
            sender = normalize_holder(sender)
            to = normalize_holder(to)
            if is_null_holder(sender):
                raise InvalidSender("transfer from the null holder")
            if is_null_holder(to):
                raise InvalidReceiver("transfer to the null holder")
            amount = self._require_uint(amount, "amount")

            caller = normalize_holder(caller)
            if caller != sender:
                self._spend_allowance(sender, caller, amount)

            shares = amount_to_shares(amount, self._total_shares, self._pool.total_value())
            if shares == 0 and amount > 0:
                raise ZeroSharesToTransfer(f"amount {amount} converts to zero shares")

            self._move_shares(sender, to, shares)
            self._emit(TransferEvent, sender=sender, receiver=to, amount=amount, shares=shares)
            return shares

    def transfer_shares(self, sender: Holder, to: Holder, shares: int) -> int:
        """Перевод точного количества shares (без конверсии).

        Returns:
            amount актива, соответствующий перемещённым shares
        """
        with self._transaction("transfer_shares"):
            sender = normalize_holder(sender)
            to = normalize_holder(to)
            if is_null_holder(sender):
                raise InvalidSender("transfer from the null holder")
            if is_null_holder(to):
                raise InvalidReceiver("transfer to the null holder")
            shares = self._require_uint(shares, "shares")

            amount = shares_to_amount(shares, self._total_shares, self._pool.total_value())
            self._move_shares(sender, to, shares)
            self._emit(TransferEvent, sender=sender, receiver=to, amount=amount, shares=shares)
            return amount

    def _move_shares(self, sender: Holder, to: Holder, shares: int) -> None:
        # Сначала списание: нехватка shares обнаруживается до зачисления
        self._debit_shares(sender, shares)
        self._credit_shares(to, shares)

    # -------------------------------------------------------------------------
    # Snapshot / invariants
    # -------------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                pool_value=self._pool.total_value(),
                total_shares=self._total_shares,
                share_balances=dict(self._shares),
                allowances=[
                    AllowanceEntry(owner=owner, spender=spender, amount=amount)
                    for (owner, spender), amount in sorted(self._allowances.items())
                ],
                last_event_seq=self._last_seq,
            )

    def check_invariants(self) -> None:
        """Проверка total_shares == Σ share_balance.

        Raises:
            LedgerInvariantViolation: если инвариант нарушен
        """
        with self._lock:
            share_sum = sum(self._shares.values())
            if share_sum != self._total_shares:
                raise LedgerInvariantViolation(
                    f"total_shares={self._total_shares} != sum of balances={share_sum}"
                )
            negative = [h for h, v in self._shares.items() if v < 0]
            if negative:
                raise LedgerInvariantViolation(f"negative share balances: {negative}")

    # -------------------------------------------------------------------------
    # Transaction machinery
    # -------------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[_Journal]:
        with self._lock:
            if self._paying_out:
                exc = ReentrantMutation(f"{operation} called during a payout")
                logger.info("%s rejected: %s", operation, exc)
                raise exc
            journal = _Journal(total_shares_before=self._total_shares)
            self._journals.append(journal)
            try:
                yield journal
            except BaseException as exc:
                self._journals.pop()
                self._rollback(journal)
                if isinstance(exc, FailedPayout):
                    logger.warning("%s rolled back: %s", operation, exc)
                elif isinstance(exc, LedgerError):
                    logger.info("%s rejected: %s", operation, exc)
                raise
            self._journals.pop()
            if self._journals:
                self._journals[-1].absorb(journal)
            else:
                self._publish(journal)
                logger.debug(
                    "%s committed: total_shares=%d events=%d",
                    operation,
                    self._total_shares,
                    len(journal.pending_events),
                )

    def _rollback(self, journal: _Journal) -> None:
        for holder, prev in journal.shares_undo.items():
            if prev is None:
                self._shares.pop(holder, None)
            else:
                self._shares[holder] = prev
        for key, prev in journal.allowance_undo.items():
            if prev is None:
                self._allowances.pop(key, None)
            else:
                self._allowances[key] = prev
        self._total_shares = journal.total_shares_before

    def _publish(self, journal: _Journal) -> None:
        for event in journal.pending_events:
            self._last_seq += 1
            self._events.append(event.model_copy(update={"seq": self._last_seq}))

    def _emit(self, event_cls: Type[AnyLedgerEvent], **fields: Any) -> None:
        # Модель строится внутри транзакции: ошибка валидации откатывает операцию.
        # seq назначается при публикации.
        self._journals[-1].pending_events.append(event_cls(seq=self._last_seq + 1, **fields))

    # -------------------------------------------------------------------------
    # Slot writes (journaled)
    # -------------------------------------------------------------------------

    def _set_total_shares(self, value: int) -> None:
        self._total_shares = value

    def _set_shares(self, holder: Holder, value: int) -> None:
        self._journals[-1].shares_undo.setdefault(holder, self._shares.get(holder))
        self._shares[holder] = value

    def _set_allowance(self, owner: Holder, spender: Holder, value: int) -> None:
        key = (owner, spender)
        self._journals[-1].allowance_undo.setdefault(key, self._allowances.get(key))
        self._allowances[key] = value

    def _credit_shares(self, holder: Holder, shares: int) -> None:
        self._set_shares(holder, self._checked_add(self._shares.get(holder, 0), shares))

    def _debit_shares(self, holder: Holder, shares: int) -> None:
        available = self._shares.get(holder, 0)
        if shares > available:
            raise InsufficientShares(holder, shares, available)
        self._set_shares(holder, available - shares)

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_uint(value: int, name: str) -> int:
        try:
            return validate_uint(value, name)
        except UintDomainError as exc:
            raise InvalidAmount(str(exc)) from None

    @staticmethod
    def _checked_add(a: int, b: int) -> int:
        try:
            return checked_add(a, b)
        except UintDomainError as exc:
            raise ArithmeticOverflow(str(exc)) from None

    def _resolve_slippage(self, slippage_bp: Optional[int]) -> int:
        if slippage_bp is None:
            return self.config.default_slippage_bp
        bp = self._require_uint(slippage_bp, "slippage_bp")
        if bp > self.config.bp_denominator:
            raise InvalidAmount(
                f"slippage_bp must be in [0, {self.config.bp_denominator}], got {bp}"
            )
        return bp

    def __repr__(self) -> str:
        return (
            f"ShareLedger(total_shares={self._total_shares}, "
            f"holders={len(self._shares)}, pool_value={self._pool.total_value()})"
        )


__all__ = ["MintQuote", "PayoutFn", "ShareLedger"]
