# mangastore/api/cart.py
# Роуты корзины текущего пользователя. Ошибки сервиса (StoreError) рендерит обработчик в main.py.
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mangastore.core import security
from mangastore.models.user import User
from mangastore.schemas.cart import AddToCartIn, CartView, UpdateCartItemIn
from mangastore.schemas.common import ApiResponse, CountOut
from mangastore.services import cart as cart_service

router = APIRouter()


@router.get("", response_model=ApiResponse[CartView])
def get_cart(current_user: User = Depends(security.get_current_user), db: Session = Depends(security.get_db)):
    """Корзина со всеми строками и сводкой; создаётся при первом обращении."""
    cart = cart_service.get_cart(db, current_user.id)
    return {"success": True, "message": "Cart retrieved successfully", "data": cart}


@router.post("/add", response_model=ApiResponse[CartView], status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: AddToCartIn,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(security.get_db),
):
    cart = cart_service.add_item(db, current_user.id, payload.volume_id, payload.quantity)
    return {"success": True, "message": "Item added to cart successfully", "data": cart}


@router.put("/update", response_model=ApiResponse[CartView])
def update_cart_item(
    payload: UpdateCartItemIn,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(security.get_db),
):
    cart = cart_service.update_item(db, current_user.id, payload.cart_item_id, payload.quantity)
    return {"success": True, "message": "Cart item updated successfully", "data": cart}


@router.delete("/remove/{cart_item_id}", response_model=ApiResponse[CartView])
def remove_from_cart(
    cart_item_id: int,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(security.get_db),
):
    cart = cart_service.remove_item(db, current_user.id, cart_item_id)
    return {"success": True, "message": "Item removed from cart successfully", "data": cart}


@router.delete("/clear", response_model=ApiResponse[CartView])
def clear_cart(current_user: User = Depends(security.get_current_user), db: Session = Depends(security.get_db)):
    cart = cart_service.clear_cart(db, current_user.id)
    return {"success": True, "message": "Cart cleared successfully", "data": cart}


@router.get("/count", response_model=ApiResponse[CountOut])
def get_cart_item_count(current_user: User = Depends(security.get_current_user), db: Session = Depends(security.get_db)):
    count = cart_service.item_count(db, current_user.id)
    return {"success": True, "message": "Cart count retrieved successfully", "data": {"count": count}}
