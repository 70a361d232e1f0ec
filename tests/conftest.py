# tests/conftest.py
# Общие фикстуры: SQLite в памяти вместо Postgres, фабрики каталога/пользователей,
# TestClient с подменёнными зависимостями get_db и журнала заказов.
import os

# До импорта пакета: engine в mangastore.db.session создаётся при импорте
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "development")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mangastore.main import app
from mangastore.api.order import get_audit_log
from mangastore.core import security
from mangastore.db.base import Base
from mangastore.db.session import enable_sqlite_foreign_keys
from mangastore.models.catalog import Manga, Volume
from mangastore.models.user import User, UserStatus
from mangastore.services.audit import XlsxOrderAuditLog

# Одно соединение на все сессии, иначе у каждого потока TestClient будет своя пустая БД
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Чистая схема на каждый тест."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


class RecordingAuditLog:
    """Журнал заказов в памяти для проверок."""

    def __init__(self):
        self.records = []

    def append_order(self, record):
        self.records.append(record)


@pytest.fixture
def second_db(db):
    """Вторая сессия на той же БД: ещё один параллельный запрос."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def audit_log():
    return RecordingAuditLog()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(email=None, status=UserStatus.active, display_name=None, first_name=None, last_name=None,
              password=None):
        counter["n"] += 1
        user = User(
            email=email or f"reader{counter['n']}@example.com",
            # хеш bcrypt нужен только тем тестам, которые логинятся
            hashed_password=security.get_password_hash(password) if password else "not-a-real-hash",
            display_name=display_name,
            first_name=first_name,
            last_name=last_name,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_volume(db):
    """Создаёт том (и мангу, если не передана) с ценой, скидкой и остатком."""
    counter = {"n": 0}

    def _make(price="10.00", discount="0", stock=5, manga=None, title=None, is_available=True):
        counter["n"] += 1
        if manga is None:
            manga = Manga(title=title or f"Test Manga {counter['n']}", author="Author")
            db.add(manga)
            db.flush()
        volume = Volume(
            manga_id=manga.id,
            volume_number=counter["n"],
            price=Decimal(price),
            discount=Decimal(discount),
            stock=stock,
            is_available=is_available,
        )
        db.add(volume)
        db.commit()
        db.refresh(volume)
        return volume

    return _make


@pytest.fixture
def client(db, tmp_path):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    xlsx_log = XlsxOrderAuditLog(tmp_path / "orders.xlsx")
    app.dependency_overrides[security.get_db] = override_get_db
    app.dependency_overrides[get_audit_log] = lambda: xlsx_log
    # без with: lifespan не запускается и не лезет в боевую БД
    test_client = TestClient(app)
    test_client.audit_path = xlsx_log.path
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = security.create_access_token(subject=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers
