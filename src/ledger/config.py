"""Конфигурация share-ledger."""

from dataclasses import dataclass
from typing import Optional

from src.core.math.share_math import BPS_DENOMINATOR, UNLIMITED_ALLOWANCE


@dataclass(frozen=True)
class LedgerConfig:
    """Конфигурация ledger.

    - bp_denominator: знаменатель basis points (10000)
    - unlimited_allowance: sentinel безлимитного allowance (не декрементируется)
    - default_slippage_bp: tolerance для mint без явного slippage_bp
      (0 = проверка фактически отключена)
    - event_retention: сколько последних событий хранить в памяти;
      None = полный журнал (растёт без ограничения)
    """
    bp_denominator: int = BPS_DENOMINATOR
    unlimited_allowance: int = UNLIMITED_ALLOWANCE
    default_slippage_bp: int = 0
    event_retention: Optional[int] = None

    def __post_init__(self):
        if self.bp_denominator <= 0:
            raise ValueError(f"bp_denominator must be positive, got {self.bp_denominator}")
        if self.unlimited_allowance <= 0:
            raise ValueError(
                f"unlimited_allowance must be positive, got {self.unlimited_allowance}"
            )
        if not 0 <= self.default_slippage_bp <= self.bp_denominator:
            raise ValueError(
                f"default_slippage_bp must be in [0, {self.bp_denominator}], "
                f"got {self.default_slippage_bp}"
            )
        if self.event_retention is not None and self.event_retention < 1:
            raise ValueError(f"event_retention must be >= 1, got {self.event_retention}")
