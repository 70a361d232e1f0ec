# mangastore/services/orders.py
# Оформление заказа из корзины: проверка остатков, заморозка цен, списание со склада,
# очистка корзины — одной транзакцией. Запись в журнал заказов — после commit.
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mangastore.core.errors import CartEmpty, CartNotFound, InsufficientStock, OrderNotFound, UserNotFound
from mangastore.models.catalog import Volume
from mangastore.models.order import Order, OrderItem, OrderStatus
from mangastore.models.user import User
from mangastore.schemas.order import CreateOrderIn
from mangastore.services import cart as cart_service
from mangastore.services import inventory, pricing
from mangastore.services.audit import AuditSink, OrderAuditLine, OrderAuditRecord

logger = logging.getLogger(__name__)


def place_order(db: Session, user_id: int, shipping: CreateOrderIn, audit_log: AuditSink | None = None) -> Order:
    """Превращает корзину пользователя в заказ.

    Шаги 2–6 (проверка остатков, расчёт суммы, запись заказа и позиций,
    списание со склада, очистка корзины) выполняются в одной транзакции:
    любая ошибка откатывает всё целиком, частичного заказа не остаётся.
    Списание — условный UPDATE, поэтому проигравший гонку за последние
    единицы получает InsufficientStock, а не отрицательный остаток.
    Строка корзины блокируется на время транзакции, а удаление строк
    проверяется по числу затронутых записей: одна корзина даёт один заказ.

    Args:
        db: Сессия запроса; функция сама делает commit/rollback.
        user_id: Аутентифицированный пользователь.
        shipping: Адрес, город и телефон доставки.
        audit_log: Журнал заказов; его ошибки логируются и не влияют на заказ.

    Returns:
        Сохранённый Order со статусом pending и неоплаченный.

    Raises:
        CartNotFound: у пользователя ещё нет корзины.
        CartEmpty: корзина пуста.
        UserNotFound: пользователь исчез между запросами.
        InsufficientStock: у какого-то тома не хватает остатка (id тома и остаток в ошибке).
        Conflict: ту же корзину параллельно оформил другой запрос.
    """
    cart = cart_service.load_cart_for_checkout(db, user_id)
    if cart is None:
        logger.error(f"Cart not found for user {user_id}")
        raise CartNotFound()
    if not cart.items:
        logger.error(f"Cart is empty for user {user_id}")
        raise CartEmpty()

    user = db.get(User, user_id)
    if user is None:
        logger.error(f"User not found for ID {user_id}")
        raise UserNotFound()

    try:
        # Проверка по свежим остаткам, а не по тому, что видела корзина
        for line in cart.items:
            check = inventory.check_availability(db, line.volume_id, line.quantity)
            if not check.ok:
                raise InsufficientStock(
                    volume_id=line.volume_id, available=check.available, requested=line.quantity
                )

        lines = [
            pricing.LineInput(price=line.volume.price, discount=line.volume.discount, quantity=line.quantity)
            for line in cart.items
        ]
        order = Order(
            user_id=user_id,
            total_amount=pricing.order_total(lines),
            is_paid=False,
            status=OrderStatus.pending,
            shipping_address=shipping.shipping_address,
            city=shipping.city,
            phone_number=shipping.phone_number,
            items=[
                OrderItem(
                    volume_id=line.volume_id,
                    quantity=line.quantity,
                    unit_price=pricing.final_unit_price(line.volume.price, line.volume.discount),
                )
                for line in cart.items
            ],
        )
        db.add(order)
        db.flush()

        for line in cart.items:
            inventory.decrement(db, line.volume_id, line.quantity)

        cart_service.remove_checked_out_items(db, cart)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Order {order.id} created successfully for user {user_id}")

    order = get_order(db, user_id, order.id)
    if audit_log is not None:
        _append_audit(audit_log, user, order)
    return order


def build_audit_record(user: User, order: Order) -> OrderAuditRecord:
    return OrderAuditRecord(
        order_id=order.id,
        user_name=user.public_name,
        total_amount=order.total_amount,
        status=order.status.value,
        city=order.city,
        phone_number=order.phone_number,
        placed_at=order.placed_at,
        items=[
            OrderAuditLine(
                title=item.volume.manga.title,
                volume_number=item.volume.volume_number,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=pricing.round2(pricing.line_total(item.unit_price, item.quantity)),
            )
            for item in order.items
        ],
    )


def _append_audit(audit_log: AuditSink, user: User, order: Order) -> None:
    # заказ уже зафиксирован: сбой сборки записи или журнала только логируем
    try:
        audit_log.append_order(build_audit_record(user, order))
    except Exception:
        logger.exception(f"Failed to write order {order.id} to the audit log")


def _orders_query(user_id: int):
    return (
        select(Order)
        .where(Order.user_id == user_id)
        .options(selectinload(Order.items).selectinload(OrderItem.volume).selectinload(Volume.manga))
    )


def list_orders(db: Session, user_id: int) -> list[Order]:
    stmt = _orders_query(user_id).order_by(Order.placed_at.desc(), Order.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_order(db: Session, user_id: int, order_id: int) -> Order:
    order = db.execute(_orders_query(user_id).where(Order.id == order_id)).scalar_one_or_none()
    if order is None:
        raise OrderNotFound()
    return order
