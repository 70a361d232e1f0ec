# mangastore/schemas/order.py
# Схемы оформления заказа и чтения заказа с замороженными ценами.
from datetime import datetime

from pydantic import Field, field_validator

from mangastore.models.order import Order, OrderStatus
from mangastore.schemas.common import CamelModel, Money
from mangastore.services.pricing import line_total


class CreateOrderIn(CamelModel):
    shipping_address: str = Field(min_length=3, max_length=500)
    city: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(min_length=5, max_length=32, pattern=r"^\+?[0-9][0-9 ()-]*$")

    @field_validator("shipping_address", "city")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("Must not be blank")
        return v2


class OrderItemView(CamelModel):
    id: int
    volume_id: int
    title: str
    volume_number: int
    quantity: int
    unit_price: Money
    line_total: Money


class OrderView(CamelModel):
    id: int
    user_id: int
    total_amount: Money
    is_paid: bool
    status: OrderStatus
    shipping_address: str
    city: str
    phone_number: str
    placed_at: datetime
    items: list[OrderItemView]

    @classmethod
    def from_order(cls, order: Order) -> "OrderView":
        return cls(
            id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            is_paid=order.is_paid,
            status=order.status,
            shipping_address=order.shipping_address,
            city=order.city,
            phone_number=order.phone_number,
            placed_at=order.placed_at,
            items=[
                OrderItemView(
                    id=item.id,
                    volume_id=item.volume_id,
                    title=item.volume.manga.title,
                    volume_number=item.volume.volume_number,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=line_total(item.unit_price, item.quantity),
                )
                for item in order.items
            ],
        )
