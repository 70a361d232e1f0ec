# mangastore/services/inventory.py
# Складской учёт томов: проверка остатка и атомарное списание.
# Списание — один условный UPDATE (stock >= qty) с проверкой числа затронутых строк,
# поэтому две параллельные покупки не уведут остаток ниже нуля.
import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from mangastore.core.errors import InsufficientStock, VolumeNotFound
from mangastore.models.catalog import Volume

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockCheck:
    ok: bool
    available: int


def current_stock(db: Session, volume_id: int) -> int:
    """Свежий остаток из БД (мимо identity map сессии)."""
    stock = db.execute(select(Volume.stock).where(Volume.id == volume_id)).scalar_one_or_none()
    if stock is None:
        raise VolumeNotFound()
    return stock


def check_availability(db: Session, volume_id: int, requested_qty: int) -> StockCheck:
    available = current_stock(db, volume_id)
    return StockCheck(ok=requested_qty <= available, available=available)


def decrement(db: Session, volume_id: int, qty: int) -> None:
    """Списать qty единиц тома в рамках текущей транзакции.

    Коммит делает вызывающий код. Если строк не затронуто — остатка не хватило
    (или том исчез), и бросается InsufficientStock с актуальным остатком.
    """
    stmt = (
        update(Volume)
        .where(Volume.id == volume_id, Volume.stock >= qty)
        .values(stock=Volume.stock - qty)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        available = current_stock(db, volume_id)
        logger.warning(
            f"Stock decrement rejected for volume {volume_id}: requested {qty}, available {available}"
        )
        raise InsufficientStock(volume_id=volume_id, available=available, requested=qty)
    logger.debug(f"Volume {volume_id} stock decremented by {qty}")
