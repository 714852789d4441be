"""
Pool — наблюдаемая стоимость пула и транспорт актива

Ledger не владеет стоимостью пула: он только читает её через PoolValueSource.
Изменения стоимости (депозиты, выплаты, внешние inflow) выполняет коллаборатор.

InMemoryPool — эталонный коллаборатор для in-process использования и тестов:
хранит стоимость пула и внешние (вне пула) балансы актива держателей.
"""

import logging
import threading
from typing import Dict, Protocol, Set, runtime_checkable

from src.core.domain.identity import Holder, is_null_holder
from src.core.math.share_math import checked_add, checked_sub, validate_uint

logger = logging.getLogger(__name__)


@runtime_checkable
class PoolValueSource(Protocol):
    """Read accessor текущей стоимости пула."""

    def total_value(self) -> int:
        ...


@runtime_checkable
class PayoutTransport(Protocol):
    """Выплата актива из пула получателю. False = выплата не удалась."""

    def pay_out(self, to: Holder, amount: int) -> bool:
        ...


class InMemoryPool:
    """In-memory трекер стоимости пула.

    - deposit(): поступление депозита (перед mint)
    - receive_inflow(): внешний yield, вне контроля ledger
    - pay_out(): выплата при burn; возвращает False вместо исключения
    - refund_deposit(): возврат депозита, если mint отклонён
    """

    def __init__(self, initial_value: int = 0):
        self._value = validate_uint(initial_value, "initial_value")
        self._external: Dict[Holder, int] = {}
        self._blocked: Set[Holder] = set()
        self._lock = threading.RLock()

    def total_value(self) -> int:
        with self._lock:
            return self._value

    def deposit(self, amount: int) -> None:
        validate_uint(amount, "amount")
        with self._lock:
            self._value = checked_add(self._value, amount)

    def refund_deposit(self, amount: int) -> None:
        validate_uint(amount, "amount")
        with self._lock:
            self._value = checked_sub(self._value, amount)

    def receive_inflow(self, amount: int) -> None:
        """Внешний inflow (yield): увеличивает стоимость пула без выпуска shares."""
        validate_uint(amount, "amount")
        with self._lock:
            self._value = checked_add(self._value, amount)
        logger.debug("pool inflow %d, value now %d", amount, self._value)

    def pay_out(self, to: Holder, amount: int) -> bool:
        with self._lock:
            if is_null_holder(to) or to in self._blocked:
                logger.warning("payout of %d to %r rejected: recipient blocked", amount, to)
                return False
            if amount > self._value:
                logger.warning(
                    "payout of %d to %r rejected: pool holds %d", amount, to, self._value
                )
                return False
            self._value -= amount
            self._external[to] = self._external.get(to, 0) + amount
            return True

    def external_balance(self, holder: Holder) -> int:
        """Актив, выплаченный держателю (вне пула)."""
        with self._lock:
            return self._external.get(holder, 0)

    def block_recipient(self, holder: Holder) -> None:
        """Все последующие выплаты holder будут отклонены."""
        with self._lock:
            self._blocked.add(holder)

    def unblock_recipient(self, holder: Holder) -> None:
        with self._lock:
            self._blocked.discard(holder)
