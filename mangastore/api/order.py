# mangastore/api/order.py
# Роуты заказов: оформление из корзины и история заказов пользователя.
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mangastore.core import security
from mangastore.core.config import settings
from mangastore.models.user import User
from mangastore.schemas.common import ApiResponse
from mangastore.schemas.order import CreateOrderIn, OrderView
from mangastore.services import orders as order_service
from mangastore.services.audit import AuditSink, XlsxOrderAuditLog

router = APIRouter()


def get_audit_log() -> AuditSink:
    """Зависимость: журнал оформленных заказов (подменяется в тестах)."""
    return XlsxOrderAuditLog(settings.AUDIT_LOG_PATH)


@router.post("/create", response_model=ApiResponse[OrderView], status_code=status.HTTP_201_CREATED)
def create_order(
    payload: CreateOrderIn,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(security.get_db),
    audit_log: AuditSink = Depends(get_audit_log),
):
    """
    Оформление заказа из корзины.
    Цены позиций фиксируются на момент оформления, остатки списываются, корзина очищается.
    """
    order = order_service.place_order(db, current_user.id, payload, audit_log=audit_log)
    return {"success": True, "message": "Order created successfully", "data": OrderView.from_order(order)}


@router.get("", response_model=ApiResponse[list[OrderView]])
def list_orders(current_user: User = Depends(security.get_current_user), db: Session = Depends(security.get_db)):
    orders = order_service.list_orders(db, current_user.id)
    return {
        "success": True,
        "message": "Orders retrieved successfully",
        "data": [OrderView.from_order(o) for o in orders],
    }


@router.get("/{order_id}", response_model=ApiResponse[OrderView])
def get_order(
    order_id: int,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(security.get_db),
):
    order = order_service.get_order(db, current_user.id, order_id)
    return {"success": True, "message": "Order retrieved successfully", "data": OrderView.from_order(order)}
