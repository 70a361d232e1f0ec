# mangastore/api/catalog.py
# Публичное чтение каталога: доступные тайтлы с томами и карточка тома.
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from mangastore.core import security
from mangastore.core.errors import VolumeNotFound
from mangastore.models.catalog import Manga, Volume
from mangastore.schemas.catalog import MangaOut, VolumeOut
from mangastore.schemas.common import ApiResponse

router = APIRouter()


@router.get("/manga", response_model=ApiResponse[list[MangaOut]])
def list_manga(db: Session = Depends(security.get_db)):
    stmt = (
        select(Manga)
        .where(Manga.is_available.is_(True))
        .options(selectinload(Manga.volumes))
        .order_by(Manga.title)
    )
    manga = db.execute(stmt).scalars().all()
    return {"success": True, "message": "Manga retrieved successfully", "data": [MangaOut.from_manga(m) for m in manga]}


@router.get("/volumes/{volume_id}", response_model=ApiResponse[VolumeOut])
def get_volume(volume_id: int, db: Session = Depends(security.get_db)):
    volume = db.execute(
        select(Volume).where(Volume.id == volume_id).options(selectinload(Volume.manga))
    ).scalar_one_or_none()
    if volume is None:
        raise VolumeNotFound()
    return {"success": True, "message": "Volume retrieved successfully", "data": VolumeOut.from_volume(volume)}
