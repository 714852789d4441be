"""
Share Math — Integer Primitives для долевого учёта

Модуль обеспечивает целочисленную арифметику share-ledger:
- Checked uint256 арифметика (без wrap-around)
- Floor mul-div (усечение вниз) без промежуточных float
- Конверсия amount ↔ shares относительно текущего pool value
- Расчёт shares для депозита (first depositor 1:1, далее по pre-deposit rate)
- Slippage-предикат в basis points

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все значения лежат в домене [0, UINT256_MAX]; выход за домен → exception
2. Деление на ноль никогда не происходит (пустой пул → 0 shares)
3. Округление всегда вниз (в пользу пула, против получателя)
4. Никаких float: результат детерминирован и воспроизводим

ФОРМУЛЫ:
    shares(amount)   = total_shares × amount // pool_value          (0 если pool_value == 0)
    amount(shares)   = shares × pool_value // total_shares          (0 если total_shares == 0)
    mint_shares      = deposit                                       (total_shares == 0)
                     = total_shares × deposit // (pool_after − deposit)
    slippage_ok      ⇔ shares × 10000 × pool_after ≥ bp × deposit × total_shares
"""

from typing import Final

# =============================================================================
# ДОМЕН И КОНСТАНТЫ
# =============================================================================

# Верхняя граница беззнакового 256-битного домена
UINT256_MAX: Final[int] = (1 << 256) - 1

# Знаменатель basis points: 1 bp = 1 / 10000
BPS_DENOMINATOR: Final[int] = 10_000

# Sentinel "безлимитного" allowance (никогда не декрементируется)
UNLIMITED_ALLOWANCE: Final[int] = UINT256_MAX


# =============================================================================
# EXCEPTIONS
# =============================================================================


class UintDomainError(ArithmeticError):
    """
    Значение вышло за пределы uint256 домена.

    Поднимается при переполнении сверху (add/mul) и при уходе ниже нуля (sub).
    Слой ledger переводит эту ошибку в доменные исключения
    (InsufficientShares, InsufficientAllowance, ArithmeticOverflow).
    """

    def __init__(self, message: str, underflow: bool = False):
        super().__init__(message)
        self.underflow = underflow


# =============================================================================
# CHECKED UINT256
# =============================================================================


def validate_uint(value: int, name: str) -> int:
    """
    Валидация, что значение является uint256.

    bool явно отвергается, хотя и является подклассом int.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Returns:
        value без изменений

    Raises:
        TypeError: Если value не int (или bool)
        UintDomainError: Если value < 0 или value > UINT256_MAX
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")

    if value < 0:
        raise UintDomainError(f"{name} must be non-negative, got {value}", underflow=True)

    if value > UINT256_MAX:
        raise UintDomainError(f"{name} exceeds uint256 range, got {value}")

    return value


def checked_add(a: int, b: int) -> int:
    """
    Сложение в uint256 домене.

    Raises:
        UintDomainError: При переполнении
    """
    result = a + b
    if result > UINT256_MAX:
        raise UintDomainError(f"uint256 overflow: {a} + {b}")
    return result


def checked_sub(a: int, b: int) -> int:
    """
    Вычитание в uint256 домене.

    Raises:
        UintDomainError: Если b > a (underflow=True)
    """
    if b > a:
        raise UintDomainError(f"uint256 underflow: {a} - {b}", underflow=True)
    return a - b


def mul_div_down(x: int, y: int, denominator: int) -> int:
    """
    Вычисление x × y // denominator с усечением вниз.

    Промежуточное произведение вычисляется в неограниченной точности Python int,
    поэтому переполняться может только результат.

    Args:
        x: Первый множитель
        y: Второй множитель
        denominator: Делитель (> 0)

    Returns:
        floor(x × y / denominator)

    Raises:
        ZeroDivisionError: Если denominator == 0
        UintDomainError: Если результат > UINT256_MAX

    Examples:
        >>> mul_div_down(10, 60, 50)
        12
        >>> mul_div_down(1, 1, 3)
        0
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div_down denominator is zero")

    result = (x * y) // denominator
    if result > UINT256_MAX:
        raise UintDomainError(f"uint256 overflow: {x} * {y} // {denominator}")
    return result


# =============================================================================
# КОНВЕРСИЯ AMOUNT ↔ SHARES
# =============================================================================


def amount_to_shares(amount: int, total_shares: int, pool_value: int) -> int:
    """
    Конверсия: amount базового актива → shares.

    shares = total_shares × amount // pool_value

    Пустой пул (pool_value == 0) означает "нечего конвертировать" и даёт 0,
    а не деление на ноль. Малые amount, соответствующие менее чем одной
    целой share, округляются до 0: вызывающая сторона обязана трактовать 0
    как отдельный отказ.

    Args:
        amount: Количество актива
        total_shares: Всего shares в обращении
        pool_value: Текущая стоимость пула

    Returns:
        Количество shares (floor)

    Examples:
        >>> amount_to_shares(12, 50, 60)
        10
        >>> amount_to_shares(1, 50, 60)
        0
        >>> amount_to_shares(10, 50, 0)
        0
    """
    if pool_value == 0:
        return 0
    return mul_div_down(total_shares, amount, pool_value)


def shares_to_amount(shares: int, total_shares: int, pool_value: int) -> int:
    """
    Конверсия: shares → claimable amount базового актива.

    amount = shares × pool_value // total_shares

    Args:
        shares: Количество shares
        total_shares: Всего shares в обращении
        pool_value: Текущая стоимость пула

    Returns:
        Claimable amount (floor); 0 если shares ещё не выпущены

    Examples:
        >>> shares_to_amount(10, 50, 60)
        12
        >>> shares_to_amount(10, 0, 60)
        0
    """
    if total_shares == 0:
        return 0
    return mul_div_down(shares, pool_value, total_shares)


# =============================================================================
# DEPOSIT / SLIPPAGE
# =============================================================================


def shares_for_deposit(deposit: int, total_shares: int, pool_value_after: int) -> int:
    """
    Количество shares за депозит, уже зачисленный в пул.

    Pool value измеряется ПОСЛЕ поступления средств, поэтому pre-deposit
    стоимость восстанавливается как pool_value_after − deposit.

    First depositor (total_shares == 0): курс 1:1.

    Args:
        deposit: Сумма депозита
        total_shares: Shares в обращении до выпуска
        pool_value_after: Стоимость пула после зачисления депозита

    Returns:
        Количество shares к выпуску

    Raises:
        UintDomainError: Если pool_value_after < deposit
        ZeroDivisionError: Если shares существуют, а pre-deposit пул пуст
    """
    if total_shares == 0:
        return deposit

    pool_value_before = checked_sub(pool_value_after, deposit)
    return mul_div_down(total_shares, deposit, pool_value_before)


def is_within_slippage(
    shares_issued: int,
    deposit: int,
    total_shares_before: int,
    pool_value_after: int,
    slippage_bp: int,
    bps_denominator: int = BPS_DENOMINATOR,
) -> bool:
    """
    Проверка slippage tolerance для выпуска shares.

    Условие отказа:
        shares_issued × 10000 × pool_value_after < slippage_bp × deposit × total_shares_before

    Т.е. выпущенные shares не должны быть меньше slippage_bp / 10000 от
    "справедливого" количества по post-deposit курсу. Все произведения
    считаются в неограниченной точности, без промежуточного деления.

    Args:
        shares_issued: Фактически выпускаемые shares
        deposit: Сумма депозита
        total_shares_before: Shares в обращении до выпуска
        pool_value_after: Стоимость пула после депозита
        slippage_bp: Минимально допустимая доля в basis points [0, 10000]
        bps_denominator: Знаменатель basis points (default: 10000)

    Returns:
        True если выпуск в пределах tolerance

    Examples:
        >>> is_within_slippage(40, 40, 10, 50, 10_000)
        True
        >>> is_within_slippage(10, 40, 10, 50, 10_000)
        False
    """
    lhs = shares_issued * bps_denominator * pool_value_after
    rhs = slippage_bp * deposit * total_shares_before
    return lhs >= rhs


def bps_of(value: int, bp: int, bps_denominator: int = BPS_DENOMINATOR) -> int:
    """
    Доля value в basis points с усечением вниз.

    Examples:
        >>> bps_of(1000, 9950)
        995
    """
    return mul_div_down(value, bp, bps_denominator)
