"""
Holder Identity — идентификаторы держателей shares

Единственный допустимый способ проверки "нулевой" идентичности.
Нулевая идентичность означает "никто": источник при выпуске shares
и получатель при погашении. Использовать её как реального держателя,
отправителя, получателя или spender ЗАПРЕЩЕНО.
"""

from typing import Final, Optional

# Тип идентичности держателя (адрес, account id и т.п.)
Holder = str

# Канонический null-адрес
NULL_HOLDER: Final[Holder] = "0x" + "00" * 20


def is_null_holder(holder: Optional[Holder]) -> bool:
    """
    Проверка, является ли идентичность нулевой.

    None, пустая строка и канонический NULL_HOLDER эквивалентны.

    Examples:
        >>> is_null_holder(None)
        True
        >>> is_null_holder("")
        True
        >>> is_null_holder(NULL_HOLDER)
        True
        >>> is_null_holder("alice")
        False
    """
    return holder is None or holder == "" or holder == NULL_HOLDER


def normalize_holder(holder: Optional[Holder]) -> Holder:
    """Приведение любой нулевой идентичности к NULL_HOLDER."""
    if is_null_holder(holder):
        return NULL_HOLDER
    if not isinstance(holder, str):
        raise TypeError(f"holder must be a str, got {type(holder).__name__}")
    return holder
