# mangastore/schemas/catalog.py
# Схемы чтения каталога: тайтлы и тома с рассчитанной ценой со скидкой.
from typing import Optional

from mangastore.models.catalog import Manga, Volume
from mangastore.schemas.common import CamelModel, Money
from mangastore.services.pricing import final_unit_price


class MangaBrief(CamelModel):
    id: int
    title: str
    author: Optional[str] = None


class VolumeOut(CamelModel):
    id: int
    manga_id: int
    volume_number: int
    price: Money
    discount: Money
    final_price: Money
    stock: int
    is_available: bool
    manga: Optional[MangaBrief] = None

    @classmethod
    def from_volume(cls, volume: Volume, with_manga: bool = True) -> "VolumeOut":
        return cls(
            id=volume.id,
            manga_id=volume.manga_id,
            volume_number=volume.volume_number,
            price=volume.price,
            discount=volume.discount,
            final_price=final_unit_price(volume.price, volume.discount),
            stock=volume.stock,
            is_available=volume.is_available,
            manga=MangaBrief.model_validate(volume.manga) if with_manga else None,
        )


class MangaOut(CamelModel):
    id: int
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    is_available: bool
    volumes: list[VolumeOut] = []

    @classmethod
    def from_manga(cls, manga: Manga) -> "MangaOut":
        return cls(
            id=manga.id,
            title=manga.title,
            author=manga.author,
            description=manga.description,
            is_available=manga.is_available,
            volumes=[VolumeOut.from_volume(v, with_manga=False) for v in manga.volumes if v.is_available],
        )
