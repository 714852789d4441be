"""
ShareToken — token-style интерфейс поверх ShareLedger

Граница для держателей и интеграторов:
- balance_of / total_supply / allowance
- approve / transfer / transfer_from (caller передаётся явно)
- mint с приложенным депозитом: депозит зачисляется в пул ДО логики ledger
  и возвращается, если ledger отклонил выпуск
- burn с выплатой из пула держателю

Зачисление депозита и mint выполняются под эксклюзивной блокировкой ledger,
чтобы параллельный депозит не исказил pre-deposit стоимость пула.
"""

import logging
from typing import Any, Dict, List, Optional

from src.core.contracts import validate_ledger_event, validate_ledger_snapshot
from src.core.domain.events import AnyLedgerEvent
from src.core.domain.identity import Holder
from src.core.domain.ledger_state import LedgerSnapshot
from src.core.math.share_math import UintDomainError
from src.ledger.config import LedgerConfig
from src.ledger.errors import InvalidAmount
from src.ledger.pool import InMemoryPool
from src.ledger.share_ledger import MintQuote, ShareLedger

logger = logging.getLogger(__name__)


class ShareToken:
    """Token-style фасад share-ledger с in-memory пулом."""

    def __init__(
        self,
        pool: Optional[InMemoryPool] = None,
        config: Optional[LedgerConfig] = None,
    ):
        self.pool = pool or InMemoryPool()
        self.ledger = ShareLedger(self.pool, config=config)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def balance_of(self, holder: Holder) -> int:
        return self.ledger.balance_of(holder)

    def total_supply(self) -> int:
        return self.ledger.total_supply()

    def allowance(self, owner: Holder, spender: Holder) -> int:
        return self.ledger.allowance(owner, spender)

    def shares_of(self, holder: Holder) -> int:
        return self.ledger.shares_of(holder)

    def total_shares(self) -> int:
        return self.ledger.total_shares

    def get_shares_by_amount(self, amount: int) -> int:
        return self.ledger.get_shares_by_amount(amount)

    def get_amount_by_shares(self, shares: int) -> int:
        return self.ledger.get_amount_by_shares(shares)

    def preview_mint(self, deposit: int, slippage_bp: Optional[int] = None) -> MintQuote:
        return self.ledger.preview_mint(deposit, slippage_bp)

    # -------------------------------------------------------------------------
    # Allowance
    # -------------------------------------------------------------------------

    def approve(self, spender: Holder, amount: int, *, caller: Holder) -> bool:
        return self.ledger.approve(caller, spender, amount)

    def increase_allowance(self, spender: Holder, added: int, *, caller: Holder) -> bool:
        return self.ledger.increase_allowance(caller, spender, added)

    def decrease_allowance(self, spender: Holder, subtracted: int, *, caller: Holder) -> bool:
        return self.ledger.decrease_allowance(caller, spender, subtracted)

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    def transfer(self, to: Holder, amount: int, *, caller: Holder) -> bool:
        self.ledger.transfer(caller, to, amount)
        return True

    def transfer_from(self, sender: Holder, to: Holder, amount: int, *, caller: Holder) -> bool:
        self.ledger.transfer_from(sender, to, amount, caller=caller)
        return True

    def transfer_shares(self, to: Holder, shares: int, *, caller: Holder) -> int:
        return self.ledger.transfer_shares(caller, to, shares)

    # -------------------------------------------------------------------------
    # Mint / burn
    # -------------------------------------------------------------------------

    def mint(self, to: Holder, deposit: int, slippage_bp: Optional[int] = None) -> int:
        """Mint с приложенным депозитом.

        Returns:
            Количество выпущенных shares
        """
        with self.ledger.exclusive():
            try:
                self.pool.deposit(deposit)
            except UintDomainError as exc:
                raise InvalidAmount(str(exc)) from None
            try:
                return self.ledger.mint(to, deposit, slippage_bp)
            except Exception:
                self.pool.refund_deposit(deposit)
                logger.info("deposit of %d refunded after rejected mint", deposit)
                raise

    def burn(self, holder: Holder, amount: int, *, caller: Optional[Holder] = None) -> int:
        """Burn: погашение shares на amount и выплата amount держателю."""
        return self.ledger.burn(holder, amount, caller=caller)

    def receive_yield(self, amount: int) -> None:
        """Внешний inflow в пул (yield): пересчитывает балансы всех держателей."""
        with self.ledger.exclusive():
            self.pool.receive_inflow(amount)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        return self.ledger.snapshot()

    def events(self, since_seq: int = 0) -> List[AnyLedgerEvent]:
        return self.ledger.events_since(since_seq)

    def export_state(self) -> Dict[str, Any]:
        """Снапшот в JSON-совместимом виде, проверенный по ledger_snapshot контракту."""
        data = self.snapshot().model_dump(mode="json")
        validate_ledger_snapshot(data)
        return data

    def export_events(self, since_seq: int = 0) -> List[Dict[str, Any]]:
        """События в JSON-совместимом виде, проверенные по ledger_event контракту."""
        exported = []
        for event in self.events(since_seq):
            data = event.model_dump(mode="json")
            validate_ledger_event(data)
            exported.append(data)
        return exported
