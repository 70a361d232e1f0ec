# mangastore/models/order.py
# Модели Order и OrderItem для фиксации сумм и статусов заказа.
# Цена в OrderItem замораживается при оформлении и больше не меняется.
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
from mangastore.db.base import Base
import enum

class OrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    status = Column(Enum(OrderStatus), default=OrderStatus.pending, nullable=False)
    shipping_address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=False)
    phone_number = Column(String(32), nullable=False)
    placed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    volume_id = Column(Integer, ForeignKey("volumes.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    volume = relationship("Volume")
