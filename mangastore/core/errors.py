# mangastore/core/errors.py
# Типизированные ошибки бизнес-логики. Сервисы бросают их, а обработчик в main.py
# превращает в ответ {"success": false, "message": ...} с нужным HTTP-статусом.


class StoreError(Exception):
    """Базовая ошибка магазина: сообщение безопасно показывать клиенту."""

    status_code = 400
    message = "Request failed"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotFound(StoreError):
    status_code = 404
    message = "Not found"


class UserNotFound(NotFound):
    message = "User not found"


class VolumeNotFound(NotFound):
    message = "Volume not found"


class CartNotFound(NotFound):
    message = "Cart not found"


class CartItemNotFound(NotFound):
    message = "Cart item not found"


class OrderNotFound(NotFound):
    message = "Order not found"


class CartEmpty(StoreError):
    message = "Cart is empty"


class Conflict(StoreError):
    status_code = 409
    message = "Conflict"


class Unavailable(StoreError):
    message = "Item is not available"


class VolumeUnavailable(Unavailable):
    message = "Volume is not available for purchase"


class InvalidVerificationToken(StoreError):
    message = "Invalid or expired verification token"


class Unauthorized(StoreError):
    status_code = 401
    message = "Could not validate credentials"


class InsufficientStock(StoreError):
    """Запрошено больше, чем есть на складе. Всегда несёт id тома и доступный остаток."""

    status_code = 409

    def __init__(self, volume_id: int, available: int, requested: int):
        self.volume_id = volume_id
        self.available = available
        self.requested = requested
        super().__init__(
            f'Volume "{volume_id}" does not have enough stock. '
            f"Available: {available}, Requested: {requested}"
        )
