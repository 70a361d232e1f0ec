# mangastore/services/pricing.py
# Расчёт цен: итоговая цена за единицу со скидкой, сумма строки, сводка корзины.
# Чистые функции без состояния; все деньги — Decimal, округление half-up до копеек.
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # float через str, чтобы 0.1 стало Decimal("0.1"), а не двоичным хвостом
    return Decimal(str(value))


def round2(value: Number) -> Decimal:
    """Округление до 2 знаков по правилу half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def final_unit_price(price: Number, discount: Number) -> Decimal:
    """Цена за единицу после скидки, округлённая один раз.

    Args:
        price: Базовая цена тома (неотрицательная).
        discount: Доля скидки в диапазоне [0, 1]; вызывающий код гарантирует границы.

    Returns:
        round2(price * (1 - discount))
    """
    return round2(to_decimal(price) * (Decimal(1) - to_decimal(discount or 0)))


def line_total(unit_price: Number, quantity: int) -> Decimal:
    # цена уже округлена, повторного округления нет
    return to_decimal(unit_price) * quantity


class PricedLine(Protocol):
    """Всё, что нужно калькулятору от строки: цена, скидка и количество."""

    price: Decimal
    discount: Decimal
    quantity: int


@dataclass(frozen=True)
class LineInput:
    price: Decimal
    discount: Decimal
    quantity: int


@dataclass(frozen=True)
class CartSummary:
    total_items: int
    unique_items: int
    subtotal: Decimal
    total_discount: Decimal
    total: Decimal


def cart_summary(lines: Iterable[PricedLine]) -> CartSummary:
    lines = list(lines)
    total_items = sum(line.quantity for line in lines)
    subtotal = round2(sum(
        (to_decimal(line.price) * line.quantity for line in lines), Decimal(0)
    ))
    total_discount = round2(sum(
        (to_decimal(line.price) * to_decimal(line.discount or 0) * line.quantity for line in lines),
        Decimal(0),
    ))
    return CartSummary(
        total_items=total_items,
        unique_items=len(lines),
        subtotal=subtotal,
        total_discount=total_discount,
        # считаем от уже округлённых величин: total == subtotal - total_discount без остатка
        total=round2(subtotal - total_discount),
    )


def order_total(lines: Iterable[PricedLine]) -> Decimal:
    """Сумма заказа: Σ final_unit_price * quantity, округлённая до копеек."""
    return round2(sum(
        (line_total(final_unit_price(line.price, line.discount), line.quantity) for line in lines),
        Decimal(0),
    ))
