"""
Core math modules для share-ledger

Целочисленные примитивы с гарантией отсутствия wrap-around и деления на ноль.
"""

from src.core.math.share_math import (
    # Constants
    BPS_DENOMINATOR,
    UINT256_MAX,
    UNLIMITED_ALLOWANCE,
    # Exceptions
    UintDomainError,
    # Checked uint256
    checked_add,
    checked_sub,
    mul_div_down,
    validate_uint,
    # Conversion
    amount_to_shares,
    shares_to_amount,
    # Deposit / slippage
    bps_of,
    is_within_slippage,
    shares_for_deposit,
)

__all__ = [
    # Constants
    "BPS_DENOMINATOR",
    "UINT256_MAX",
    "UNLIMITED_ALLOWANCE",
    # Exceptions
    "UintDomainError",
    # Checked uint256
    "checked_add",
    "checked_sub",
    "mul_div_down",
    "validate_uint",
    # Conversion
    "amount_to_shares",
    "shares_to_amount",
    # Deposit / slippage
    "bps_of",
    "is_within_slippage",
    "shares_for_deposit",
]
