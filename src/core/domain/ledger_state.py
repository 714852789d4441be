"""
LedgerSnapshot — Модель снапшота состояния share-ledger

Immutable Pydantic модель, представляющая состояние ledger в момент времени.
Полная совместимость с JSON Schema (contracts/schema/ledger_snapshot.json).
"""

from typing import Dict, List

from pydantic import BaseModel, Field, model_validator

from src.core.math.share_math import UINT256_MAX


# =============================================================================
# NESTED MODELS
# =============================================================================


class AllowanceEntry(BaseModel):
    """Запись allowance (owner → spender)."""

    owner: str = Field(..., min_length=1)
    spender: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=UINT256_MAX)

    model_config = {"frozen": True}


# =============================================================================
# SNAPSHOT MODEL
# =============================================================================


class LedgerSnapshot(BaseModel):
    """
    Снапшот share-ledger.

    Immutable модель (frozen=True). Содержит:
    - Наблюдаемую стоимость пула (pool_value)
    - Общее количество shares и распределение по держателям
    - Allowance записи (включая исчерпанные, со значением 0)
    - Номер последнего опубликованного события
    """

    schema_version: str = Field("1", pattern="^1$", description="Версия схемы")
    pool_value: int = Field(..., ge=0, le=UINT256_MAX, description="Стоимость пула")
    total_shares: int = Field(..., ge=0, le=UINT256_MAX, description="Всего shares")
    share_balances: Dict[str, int] = Field(
        default_factory=dict, description="Shares по держателям"
    )
    allowances: List[AllowanceEntry] = Field(default_factory=list)
    last_event_seq: int = Field(0, ge=0, description="seq последнего события")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_share_sum(self) -> "LedgerSnapshot":
        """Инвариант: total_shares == Σ share_balances."""
        if any(v < 0 for v in self.share_balances.values()):
            raise ValueError("share balances must be non-negative")
        share_sum = sum(self.share_balances.values())
        if share_sum != self.total_shares:
            raise ValueError(
                f"total_shares={self.total_shares} != sum of balances={share_sum}"
            )
        return self

    def balance_of(self, holder: str) -> int:
        """Claimable amount держателя по данным снапшота."""
        if self.total_shares == 0:
            return 0
        return self.share_balances.get(holder, 0) * self.pool_value // self.total_shares
