# mangastore/services/cart.py
# Корзина пользователя: ленивое создание, добавление/изменение/удаление строк,
# представление со сводкой цен. Проверка остатка здесь рекомендательная,
# окончательная — при оформлении заказа (см. services/orders.py).
import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from mangastore.core.errors import (
    CartItemNotFound,
    Conflict,
    InsufficientStock,
    VolumeNotFound,
    VolumeUnavailable,
)
from mangastore.models.cart import Cart, CartItem
from mangastore.models.catalog import Volume
from mangastore.schemas.cart import CartItemView, CartSummaryView, CartView, CartVolume
from mangastore.schemas.catalog import MangaBrief
from mangastore.services import inventory, pricing

logger = logging.getLogger(__name__)


def _cart_query(user_id: int):
    # корзина целиком: строки -> тома -> манга
    return (
        select(Cart)
        .where(Cart.user_id == user_id)
        .options(selectinload(Cart.items).selectinload(CartItem.volume).selectinload(Volume.manga))
    )


def load_cart(db: Session, user_id: int) -> Cart | None:
    """Загружает корзину со всеми строками, томами и мангой или None."""
    return db.execute(_cart_query(user_id)).scalar_one_or_none()


def load_cart_for_checkout(db: Session, user_id: int) -> Cart | None:
    """Как load_cart, но строка корзины блокируется до конца транзакции.

    Второе оформление той же корзины ждёт commit первого и видит уже пустые строки.
    """
    stmt = _cart_query(user_id).with_for_update(of=Cart).execution_options(populate_existing=True)
    return db.execute(stmt).scalar_one_or_none()


def get_or_create_cart(db: Session, user_id: int) -> Cart:
    cart = load_cart(db, user_id)
    if cart is not None:
        return cart
    cart = Cart(user_id=user_id)
    db.add(cart)
    try:
        db.commit()
    except IntegrityError:
        # параллельный запрос успел создать корзину первым
        db.rollback()
        cart = load_cart(db, user_id)
        if cart is None:
            raise
        return cart
    logger.info(f"Cart created for user {user_id}")
    return load_cart(db, user_id)


def build_cart_view(cart: Cart) -> CartView:
    items = []
    for item in cart.items:
        volume = item.volume
        final_price = pricing.final_unit_price(volume.price, volume.discount)
        items.append(CartItemView(
            id=item.id,
            quantity=item.quantity,
            subtotal=pricing.line_total(final_price, item.quantity),
            volume=CartVolume(
                id=volume.id,
                volume_number=volume.volume_number,
                price=volume.price,
                discount=volume.discount,
                final_price=final_price,
                stock=volume.stock,
                is_available=volume.is_available,
                manga=MangaBrief.model_validate(volume.manga),
            ),
            created_at=item.created_at,
            updated_at=item.updated_at,
        ))

    summary = pricing.cart_summary(
        pricing.LineInput(price=i.volume.price, discount=i.volume.discount, quantity=i.quantity)
        for i in cart.items
    )
    return CartView(
        id=cart.id,
        user_id=cart.user_id,
        items=items,
        summary=CartSummaryView(
            total_items=summary.total_items,
            unique_items=summary.unique_items,
            subtotal=summary.subtotal,
            total_discount=summary.total_discount,
            total=summary.total,
        ),
        created_at=cart.created_at,
        updated_at=cart.updated_at,
    )


def get_cart(db: Session, user_id: int) -> CartView:
    return build_cart_view(get_or_create_cart(db, user_id))


def _refreshed_view(db: Session, user_id: int) -> CartView:
    # после commit объекты сессии просрочены — перечитываем корзину целиком
    db.expire_all()
    return get_cart(db, user_id)


def _commit(db: Session, user_id: int) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Cart update conflict for user {user_id}: {e.orig}")
        raise Conflict("Cart was modified concurrently, please retry")


def add_item(db: Session, user_id: int, volume_id: int, quantity: int) -> CartView:
    """Добавляет том в корзину или увеличивает количество существующей строки.

    Raises:
        VolumeNotFound: тома нет.
        VolumeUnavailable: том или его манга сняты с продажи.
        InsufficientStock: итоговое количество в корзине превысит остаток.
    """
    volume = db.get(Volume, volume_id)
    if volume is None:
        raise VolumeNotFound()
    if not volume.is_purchasable:
        raise VolumeUnavailable()

    cart = get_or_create_cart(db, user_id)
    existing = next((i for i in cart.items if i.volume_id == volume_id), None)
    already = existing.quantity if existing else 0

    check = inventory.check_availability(db, volume_id, already + quantity)
    if not check.ok:
        logger.info(
            f"Add to cart rejected for user {user_id}: volume {volume_id}, "
            f"in cart {already}, adding {quantity}, stock {check.available}"
        )
        raise InsufficientStock(volume_id=volume_id, available=check.available, requested=already + quantity)

    if existing:
        # прибавка внутри UPDATE: параллельное добавление того же тома не теряется
        db.execute(
            update(CartItem)
            .where(CartItem.id == existing.id)
            .values(quantity=CartItem.quantity + quantity, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
    else:
        cart.items.append(CartItem(volume_id=volume_id, quantity=quantity))
    cart.touch()
    _commit(db, user_id)

    logger.info(f"Item added to cart for user {user_id}: Volume {volume_id} x{quantity}")
    return _refreshed_view(db, user_id)


def _owned_item(db: Session, user_id: int, item_id: int) -> CartItem:
    item = db.execute(
        select(CartItem)
        .join(Cart, CartItem.cart_id == Cart.id)
        .where(CartItem.id == item_id, Cart.user_id == user_id)
    ).scalar_one_or_none()
    if item is None:
        raise CartItemNotFound()
    return item


def update_item(db: Session, user_id: int, item_id: int, quantity: int) -> CartView:
    item = _owned_item(db, user_id, item_id)

    check = inventory.check_availability(db, item.volume_id, quantity)
    if not check.ok:
        raise InsufficientStock(volume_id=item.volume_id, available=check.available, requested=quantity)

    item.quantity = quantity
    item.updated_at = datetime.utcnow()
    item.cart.touch()
    _commit(db, user_id)

    logger.info(f"Cart item updated for user {user_id}: Item {item_id} quantity changed to {quantity}")
    return _refreshed_view(db, user_id)


def remove_item(db: Session, user_id: int, item_id: int) -> CartView:
    item = _owned_item(db, user_id, item_id)
    cart = item.cart
    db.delete(item)
    cart.touch()
    _commit(db, user_id)

    logger.info(f"Item removed from cart for user {user_id}: Item {item_id}")
    return _refreshed_view(db, user_id)


def clear_items(cart: Cart) -> None:
    """Удаляет все строки корзины, сама корзина остаётся. Без commit."""
    cart.items.clear()
    cart.touch()


def remove_checked_out_items(db: Session, cart: Cart) -> None:
    """Удаляет оформленные строки одним DELETE и проверяет, что удалены все. Без commit.

    Если часть строк уже удалена параллельным оформлением, бросает Conflict,
    и вызывающий откатывает транзакцию целиком.
    """
    ids = [item.id for item in cart.items]
    result = db.execute(
        delete(CartItem).where(CartItem.id.in_(ids)).execution_options(synchronize_session=False)
    )
    if result.rowcount != len(ids):
        logger.warning(
            f"Cart {cart.id} of user {cart.user_id} changed during checkout: "
            f"expected to remove {len(ids)} lines, removed {result.rowcount}"
        )
        raise Conflict("Cart has already been checked out")
    db.expire(cart, ["items"])
    cart.touch()


def clear_cart(db: Session, user_id: int) -> CartView:
    cart = get_or_create_cart(db, user_id)
    clear_items(cart)
    _commit(db, user_id)

    logger.info(f"Cart cleared for user {user_id}")
    return _refreshed_view(db, user_id)


def item_count(db: Session, user_id: int) -> int:
    """Сумма количеств по строкам; 0, если корзины ещё нет."""
    cart = load_cart(db, user_id)
    if cart is None:
        return 0
    return sum(item.quantity for item in cart.items)
