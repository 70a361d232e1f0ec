# scripts/seed_catalog.py
# Проверяет подключение к DATABASE_URL, создаёт таблицы и заполняет демо-каталог.
# Повторный запуск безопасен: существующие тайтлы и тома пропускаются.
from decimal import Decimal

from sqlalchemy import select, text
from sqlalchemy.orm import Session

from mangastore.core.config import settings
from mangastore.db.base import Base
from mangastore.db.session import engine
from mangastore.models.catalog import Manga, Volume

# Регистрируем остальные таблицы в Base.metadata
import mangastore.models.user
import mangastore.models.verification
import mangastore.models.cart
import mangastore.models.order

DEMO_CATALOG = [
    {
        "title": "One Piece",
        "author": "Eiichiro Oda",
        "volumes": [(1, "9.99", "0", 25), (2, "9.99", "0.10", 12), (3, "10.99", "0", 5)],
    },
    {
        "title": "Berserk",
        "author": "Kentaro Miura",
        "volumes": [(1, "14.99", "0.15", 8), (2, "14.99", "0", 3)],
    },
    {
        "title": "Yotsuba&!",
        "author": "Kiyohiko Azuma",
        "volumes": [(1, "11.00", "0.05", 10)],
    },
]


def seed(session: Session) -> None:
    for entry in DEMO_CATALOG:
        manga = session.execute(select(Manga).where(Manga.title == entry["title"])).scalar_one_or_none()
        if manga is None:
            manga = Manga(title=entry["title"], author=entry["author"])
            session.add(manga)
            session.flush()
            print(f"✅ Created manga: {manga.title}")
        else:
            print(f"⏭️  Manga already exists: {manga.title}")

        existing = {v.volume_number for v in manga.volumes}
        for number, price, discount, stock in entry["volumes"]:
            if number in existing:
                continue
            session.add(Volume(
                manga_id=manga.id,
                volume_number=number,
                price=Decimal(price),
                discount=Decimal(discount),
                stock=stock,
            ))
            print(f"   + volume {number} ({price}, stock {stock})")
    session.commit()


def main():
    print('Trying to connect to:', settings.DATABASE_URL)
    with engine.connect() as conn:
        print('Connection OK, SELECT 1 ->', conn.execute(text("SELECT 1")).scalar())
    Base.metadata.create_all(bind=engine)
    with Session(engine) as session:
        seed(session)
    print('🎉 Seeding completed!')

if __name__ == '__main__':
    main()
