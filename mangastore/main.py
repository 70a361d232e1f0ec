# mangastore/main.py
# Точка входа FastAPI. Создание таблиц выполняется в событии startup с обработкой ошибок.

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import OperationalError

from mangastore.db.session import engine
from mangastore.db.base import Base
from mangastore.core.config import settings
from mangastore.core.errors import StoreError
from mangastore.api import auth as auth_router
from mangastore.api import catalog as catalog_router
from mangastore.api import cart as cart_router
from mangastore.api import order as order_router

# Импорт моделей, чтобы SQLAlchemy видел их определения
import mangastore.models.user
import mangastore.models.verification
import mangastore.models.catalog
import mangastore.models.cart
import mangastore.models.order

# Настройка логирования
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def init_schema(attempts: int = 5, delay: int = 2) -> bool:
    """
    Создаёт недостающие таблицы магазина (users, catalog, carts, orders).
    База может подниматься дольше приложения, поэтому
    ошибки подключения повторяются attempts раз с паузой delay секунд.

    Returns:
        True, если схема на месте; False, если база так и не ответила.
    """
    for attempt in range(1, attempts + 1):
        try:
            Base.metadata.create_all(bind=engine)
        except OperationalError as e:
            logger.warning(f"❌ Database not ready (attempt {attempt}/{attempts}): {e.orig}")
            if attempt < attempts:
                time.sleep(delay)
            continue
        logger.info(f"✅ Schema ready: {len(Base.metadata.tables)} tables")
        return True

    logger.error(f"❌ Database unreachable after {attempts} attempts, schema not created")
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Управление жизненным циклом приложения.
    Запускается при старте и завершении приложения.
    """
    # Startup
    logger.info("🚀 FastAPI starting up...")
    if not init_schema(attempts=5, delay=2):
        logger.error("⚠️ Failed to create database tables. Application may not work correctly.")
        if settings.ENVIRONMENT in ("production", "prod"):
            raise RuntimeError("Cannot start application: database tables creation failed")

    yield

    # Shutdown
    logger.info("🛑 FastAPI shutting down...")
    engine.dispose()
    logger.info("✅ Database connection closed")


# Создаём FastAPI приложение с управлением жизненным циклом
app = FastAPI(
    title="Manga Store API",
    description="API магазина манги: каталог, корзина и заказы",
    version="1.0.0",
    lifespan=lifespan
)

# CORS: в development открыт для всех, иначе — только домены из настроек
if settings.ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

# Подключаем роутеры
app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(catalog_router.router, prefix="/api/catalog", tags=["catalog"])
app.include_router(cart_router.router, prefix="/api/cart", tags=["cart"])
app.include_router(order_router.router, prefix="/api/order", tags=["order"])


# Базовые health check endpoints
@app.get("/", tags=["health"])
async def root():
    """Базовый health check."""
    return {
        "status": "ok",
        "service": "Manga Store API",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["health"])
async def health():
    """Детальный health check."""
    return {
        "status": "healthy",
        "version": "1.0.0"
    }


def _failure(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": None},
        headers=headers,
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Бизнес-ошибки: сообщение безопасно отдавать клиенту как есть."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return _failure(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _failure(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return _failure(422, message)


# Глобальный обработчик исключений
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик ошибок."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _failure(500, "Internal server error")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mangastore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
