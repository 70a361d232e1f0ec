# mangastore/models/catalog.py
# Модели каталога: тайтл манги (Manga) и его тома (Volume) с ценой, скидкой и остатком.
from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from mangastore.db.base import Base

class Manga(Base):
    __tablename__ = "manga"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    volumes = relationship("Volume", back_populates="manga", order_by="Volume.volume_number")

class Volume(Base):
    __tablename__ = "volumes"
    __table_args__ = (
        UniqueConstraint("manga_id", "volume_number", name="uq_volumes_manga_volume_number"),
        CheckConstraint("stock >= 0", name="ck_volumes_stock_non_negative"),
        CheckConstraint("discount >= 0 AND discount <= 1", name="ck_volumes_discount_fraction"),
    )

    id = Column(Integer, primary_key=True, index=True)
    manga_id = Column(Integer, ForeignKey("manga.id", ondelete="CASCADE"), nullable=False)
    volume_number = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    # доля скидки в [0, 1], например 0.10 = 10%
    discount = Column(Numeric(5, 4), default=0, nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    manga = relationship("Manga", back_populates="volumes")

    @property
    def is_purchasable(self) -> bool:
        return bool(self.is_available and self.manga is not None and self.manga.is_available)
