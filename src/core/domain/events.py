"""
Ledger Events — Модели событий share-ledger

Immutable Pydantic модели событий, публикуемых ledger после commit операции.
Полная совместимость с JSON Schema (contracts/schema/ledger_event.json).

Единицы:
- IssuanceEvent.shares: количество выпущенных shares
- RedemptionEvent.amount / TransferEvent.amount: amount базового актива
- ApprovalEvent.amount: allowance в единицах актива
"""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator

from src.core.domain.identity import NULL_HOLDER
from src.core.math.share_math import UINT256_MAX


# =============================================================================
# ENUMS
# =============================================================================


class EventKind(str, Enum):
    """Тип события ledger"""

    ISSUANCE = "ISSUANCE"
    REDEMPTION = "REDEMPTION"
    TRANSFER = "TRANSFER"
    APPROVAL = "APPROVAL"


# =============================================================================
# EVENT MODELS
# =============================================================================


class LedgerEvent(BaseModel):
    """
    Базовое событие ledger.

    seq — монотонный номер события внутри одного ledger (начиная с 1).
    """

    seq: int = Field(..., ge=1, description="Порядковый номер события")

    model_config = {"frozen": True}


class IssuanceEvent(LedgerEvent):
    """Выпуск shares: из "никого" (NULL_HOLDER) получателю."""

    kind: Literal[EventKind.ISSUANCE] = EventKind.ISSUANCE
    sender: str = Field(NULL_HOLDER, description="Всегда NULL_HOLDER")
    receiver: str = Field(..., min_length=1, description="Получатель shares")
    deposit: int = Field(..., ge=0, le=UINT256_MAX, description="Сумма депозита")
    shares: int = Field(..., ge=0, le=UINT256_MAX, description="Выпущено shares")

    @field_validator("sender")
    @classmethod
    def validate_sender_is_null(cls, v: str) -> str:
        if v != NULL_HOLDER:
            raise ValueError(f"issuance sender must be {NULL_HOLDER}, got {v}")
        return v


class RedemptionEvent(LedgerEvent):
    """Погашение shares: от держателя к "никому" (NULL_HOLDER)."""

    kind: Literal[EventKind.REDEMPTION] = EventKind.REDEMPTION
    sender: str = Field(..., min_length=1, description="Держатель")
    receiver: str = Field(NULL_HOLDER, description="Всегда NULL_HOLDER")
    amount: int = Field(..., ge=1, le=UINT256_MAX, description="Выплаченный amount")
    shares: int = Field(..., ge=1, le=UINT256_MAX, description="Погашено shares")

    @field_validator("receiver")
    @classmethod
    def validate_receiver_is_null(cls, v: str) -> str:
        if v != NULL_HOLDER:
            raise ValueError(f"redemption receiver must be {NULL_HOLDER}, got {v}")
        return v


class TransferEvent(LedgerEvent):
    """
    Перевод между держателями.

    amount — запрошенный amount актива; из-за floor-округления фактическая
    claimable стоимость у получателя может быть меньше на долю единицы.
    """

    kind: Literal[EventKind.TRANSFER] = EventKind.TRANSFER
    sender: str = Field(..., min_length=1)
    receiver: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=UINT256_MAX)
    shares: int = Field(..., ge=0, le=UINT256_MAX)


class ApprovalEvent(LedgerEvent):
    """Установка allowance (owner → spender)."""

    kind: Literal[EventKind.APPROVAL] = EventKind.APPROVAL
    owner: str = Field(..., min_length=1)
    spender: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=UINT256_MAX)


AnyLedgerEvent = Union[IssuanceEvent, RedemptionEvent, TransferEvent, ApprovalEvent]
