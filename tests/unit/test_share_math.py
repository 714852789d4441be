"""
Тесты для модуля Share Math

Проверяет:
1. Checked uint256 арифметику (overflow / underflow)
2. Floor mul-div
3. Конверсию amount ↔ shares, включая пустой пул
4. Расчёт shares для депозита (first depositor, pre-deposit rate)
5. Slippage-предикат
"""

import pytest

from src.core.math.share_math import (
    BPS_DENOMINATOR,
    UINT256_MAX,
    UNLIMITED_ALLOWANCE,
    UintDomainError,
    amount_to_shares,
    bps_of,
    checked_add,
    checked_sub,
    is_within_slippage,
    mul_div_down,
    shares_for_deposit,
    shares_to_amount,
    validate_uint,
)

# =============================================================================
# CHECKED UINT256
# =============================================================================


class TestValidateUint:
    """Тесты для validate_uint"""

    def test_valid_values_pass_through(self) -> None:
        """Значения домена возвращаются без изменений"""
        assert validate_uint(0, "x") == 0
        assert validate_uint(42, "x") == 42
        assert validate_uint(UINT256_MAX, "x") == UINT256_MAX

    def test_negative_is_underflow(self) -> None:
        """Отрицательное значение → UintDomainError(underflow=True)"""
        with pytest.raises(UintDomainError, match="must be non-negative") as exc_info:
            validate_uint(-1, "amount")
        assert exc_info.value.underflow

    def test_above_max_is_overflow(self) -> None:
        """Значение > UINT256_MAX → UintDomainError(underflow=False)"""
        with pytest.raises(UintDomainError, match="exceeds uint256") as exc_info:
            validate_uint(UINT256_MAX + 1, "amount")
        assert not exc_info.value.underflow

    def test_non_int_rejected(self) -> None:
        """float и bool не принимаются"""
        with pytest.raises(TypeError):
            validate_uint(1.0, "amount")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            validate_uint(True, "amount")


class TestCheckedArithmetic:
    """Тесты для checked_add / checked_sub"""

    def test_add_within_domain(self) -> None:
        assert checked_add(2, 3) == 5
        assert checked_add(UINT256_MAX - 1, 1) == UINT256_MAX

    def test_add_overflow(self) -> None:
        with pytest.raises(UintDomainError, match="overflow"):
            checked_add(UINT256_MAX, 1)

    def test_sub_within_domain(self) -> None:
        assert checked_sub(5, 5) == 0
        assert checked_sub(5, 2) == 3

    def test_sub_underflow(self) -> None:
        """Уход ниже нуля — отказ, а не wrap-around"""
        with pytest.raises(UintDomainError, match="underflow") as exc_info:
            checked_sub(2, 3)
        assert exc_info.value.underflow


class TestMulDivDown:
    """Тесты для mul_div_down"""

    def test_exact_division(self) -> None:
        assert mul_div_down(10, 60, 50) == 12

    def test_floor_rounding(self) -> None:
        """Результат усекается вниз"""
        assert mul_div_down(1, 1, 3) == 0
        assert mul_div_down(2, 5, 3) == 3

    def test_large_intermediate_product(self) -> None:
        """Промежуточное произведение может превышать uint256"""
        assert mul_div_down(UINT256_MAX, UINT256_MAX, UINT256_MAX) == UINT256_MAX

    def test_result_overflow(self) -> None:
        with pytest.raises(UintDomainError, match="overflow"):
            mul_div_down(UINT256_MAX, 2, 1)

    def test_zero_denominator(self) -> None:
        with pytest.raises(ZeroDivisionError):
            mul_div_down(1, 1, 0)


# =============================================================================
# КОНВЕРСИЯ
# =============================================================================


class TestAmountToShares:
    """Тесты для amount_to_shares"""

    def test_proportional_conversion(self) -> None:
        """50 shares на пул 60: 12 актива = 10 shares"""
        assert amount_to_shares(12, 50, 60) == 10

    def test_small_amount_rounds_to_zero(self) -> None:
        """Amount меньше одной share → 0"""
        assert amount_to_shares(1, 50, 60) == 0

    def test_empty_pool_returns_zero(self) -> None:
        """Пустой пул: 0 вместо деления на ноль"""
        assert amount_to_shares(10, 50, 0) == 0

    def test_no_shares_returns_zero(self) -> None:
        assert amount_to_shares(10, 0, 60) == 0


class TestSharesToAmount:
    """Тесты для shares_to_amount"""

    def test_proportional_conversion(self) -> None:
        assert shares_to_amount(10, 50, 60) == 12
        assert shares_to_amount(40, 50, 60) == 48

    def test_no_shares_outstanding(self) -> None:
        """total_shares == 0 → 0 независимо от стоимости пула"""
        assert shares_to_amount(10, 0, 1_000) == 0

    def test_floor_rounding(self) -> None:
        assert shares_to_amount(1, 3, 10) == 3


# =============================================================================
# DEPOSIT / SLIPPAGE
# =============================================================================


class TestSharesForDeposit:
    """Тесты для shares_for_deposit"""

    def test_first_depositor_one_to_one(self) -> None:
        """Первый депозит: курс 1:1"""
        assert shares_for_deposit(10, 0, 10) == 10

    def test_first_depositor_ignores_pool_value(self) -> None:
        """Первый депозит: 1:1 даже при уже накопленном inflow"""
        assert shares_for_deposit(10, 0, 25) == 10

    def test_uses_pre_deposit_value(self) -> None:
        """Pre-deposit стоимость = pool_after - deposit"""
        # pool_before = 50 - 40 = 10, shares = 10 * 40 // 10
        assert shares_for_deposit(40, 10, 50) == 40

    def test_after_yield(self) -> None:
        # pool_before = 1015 - 15 = 1000, shares = 100 * 15 // 1000
        assert shares_for_deposit(15, 100, 1015) == 1

    def test_pool_not_including_deposit(self) -> None:
        """Пул меньше депозита → underflow"""
        with pytest.raises(UintDomainError):
            shares_for_deposit(100, 10, 50)

    def test_empty_pre_deposit_pool(self) -> None:
        """Shares существуют, а pre-deposit пул пуст → деление на ноль"""
        with pytest.raises(ZeroDivisionError):
            shares_for_deposit(10, 10, 10)


class TestIsWithinSlippage:
    """Тесты для is_within_slippage"""

    def test_exact_rate_passes_full_tolerance(self) -> None:
        assert is_within_slippage(40, 40, 10, 50, BPS_DENOMINATOR)

    def test_zero_tolerance_always_passes(self) -> None:
        assert is_within_slippage(0, 5, 100, 1005, 0)

    def test_rounding_loss_rejected(self) -> None:
        """1 share вместо ~1.48: отказ при 90% tolerance"""
        # lhs = 1 * 10000 * 1015 = 10_150_000, rhs = 9000 * 15 * 100 = 13_500_000
        assert not is_within_slippage(1, 15, 100, 1015, 9_000)

    def test_rounding_loss_within_loose_tolerance(self) -> None:
        # rhs = 6000 * 15 * 100 = 9_000_000 <= 10_150_000
        assert is_within_slippage(1, 15, 100, 1015, 6_000)

    def test_boundary_is_inclusive(self) -> None:
        """Равенство lhs == rhs допустимо"""
        # lhs = 1 * 10000 * 100 = 1_000_000; rhs = 10000 * 1 * 100
        assert is_within_slippage(1, 1, 100, 100, 10_000)


class TestConstants:
    """Тесты для констант домена"""

    def test_uint256_max(self) -> None:
        assert UINT256_MAX == 2**256 - 1

    def test_unlimited_allowance_is_max(self) -> None:
        assert UNLIMITED_ALLOWANCE == UINT256_MAX

    def test_bps_of(self) -> None:
        assert bps_of(1000, 9950) == 995
        assert bps_of(3, 5000) == 1
