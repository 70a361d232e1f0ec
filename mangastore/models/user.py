# mangastore/models/user.py
# Модель пользователя: email, hashed_password, имя, роль и статус аккаунта.
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from datetime import datetime
from mangastore.db.base import Base
import enum

class RoleEnum(str, enum.Enum):
    user = "user"
    admin = "admin"

class UserStatus(str, enum.Enum):
    pending_verification = "pending_verification"
    active = "active"
    suspended = "suspended"
    inactive = "inactive"

# Статусы, с которыми можно войти и работать с корзиной/заказами
LOGIN_ALLOWED_STATUSES = (UserStatus.active, UserStatus.pending_verification)

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    display_name = Column(String(150), nullable=True)
    role = Column(Enum(RoleEnum), default=RoleEnum.user, nullable=False)
    status = Column(Enum(UserStatus), default=UserStatus.pending_verification, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def public_name(self) -> str:
        """Имя для выгрузок: display_name, затем «имя фамилия», затем Unknown."""
        return self.display_name or self.full_name or "Unknown"
