# mangastore/schemas/cart.py
# Схемы корзины: входные DTO и представление корзины со сводкой.
from datetime import datetime

from pydantic import Field

from mangastore.schemas.catalog import MangaBrief
from mangastore.schemas.common import CamelModel, Money


class AddToCartIn(CamelModel):
    volume_id: int = Field(gt=0)
    quantity: int = Field(default=1, gt=0, le=1000)


class UpdateCartItemIn(CamelModel):
    cart_item_id: int = Field(gt=0)
    quantity: int = Field(gt=0, le=1000)


class CartVolume(CamelModel):
    id: int
    volume_number: int
    price: Money
    discount: Money
    final_price: Money
    stock: int
    is_available: bool
    manga: MangaBrief


class CartItemView(CamelModel):
    id: int
    quantity: int
    subtotal: Money
    volume: CartVolume
    created_at: datetime
    updated_at: datetime


class CartSummaryView(CamelModel):
    total_items: int
    unique_items: int
    subtotal: Money
    total_discount: Money
    total: Money


class CartView(CamelModel):
    id: int
    user_id: int
    items: list[CartItemView]
    summary: CartSummaryView
    created_at: datetime
    updated_at: datetime
