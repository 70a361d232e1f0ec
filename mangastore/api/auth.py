# mangastore/api/auth.py
# Роуты для регистрации, получения JWT токена и профиля текущего пользователя.
import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mangastore.core import security
from mangastore.core.config import settings
from mangastore.core.errors import Conflict, InvalidVerificationToken, Unauthorized
from mangastore.models.user import User, RoleEnum, UserStatus, LOGIN_ALLOWED_STATUSES
from mangastore.models.verification import EmailVerification
from mangastore.schemas.common import ApiResponse
from mangastore.schemas.user import RegisterIn, TokenOut, UserOut

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(security.get_db)):
    """
    Регистрация пользователя: email + password.
    Новый аккаунт ждёт подтверждения email, роль = user.
    Почта не отправляется: токен подтверждения пишется в лог.
    """
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise Conflict("User with this email already exists")

    full_name = f"{payload.first_name or ''} {payload.last_name or ''}".strip()
    user = User(
        email=payload.email,
        hashed_password=security.get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        display_name=payload.display_name or full_name or None,
        role=RoleEnum.user,
        status=UserStatus.pending_verification,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict("User with this email already exists")

    verification = EmailVerification(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        email=user.email,
        expires_at=datetime.utcnow() + timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
    )
    db.add(verification)
    db.commit()
    db.refresh(user)

    logger.info(f"New user registered: {user.email}")
    logger.info(f"Email verification token for {user.email}: {verification.token}")
    return {
        "success": True,
        "message": "Registration successful. Please verify your email to activate the account.",
        "data": UserOut.model_validate(user),
    }


@router.get("/verify-email", response_model=ApiResponse[UserOut])
def verify_email(token: str = Query(..., min_length=1), db: Session = Depends(security.get_db)):
    """
    Подтверждение email по одноразовому токену.
    Аккаунт в статусе pending_verification становится active; заблокированный остаётся заблокированным.
    """
    now = datetime.utcnow()
    verification = db.query(EmailVerification).filter(EmailVerification.token == token).first()
    if verification is None or not verification.is_valid(now):
        logger.info("Rejected email verification token")
        raise InvalidVerificationToken()

    user = verification.user
    verification.is_used = True
    verification.used_at = now
    user.is_email_verified = True
    user.email_verified_at = now
    if user.status == UserStatus.pending_verification:
        user.status = UserStatus.active
    db.commit()
    db.refresh(user)

    logger.info(f"Email verified for user: {user.email}")
    return {
        "success": True,
        "message": "Email verified successfully. Welcome to Manga Store!",
        "data": UserOut.model_validate(user),
    }


@router.post("/token", response_model=TokenOut)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(security.get_db)):
    """
    Логин: возвращает access_token (JWT).
    OAuth2PasswordRequestForm ожидает username и password — используем email как username.
    """
    email = form_data.username.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not security.verify_password(form_data.password, user.hashed_password):
        logger.info(f"Failed login attempt for {email}")
        raise Unauthorized("Invalid credentials")
    if user.status not in LOGIN_ALLOWED_STATUSES:
        logger.info(f"Login refused for {email}: account {user.status.value}")
        raise Unauthorized("Account is suspended or inactive")

    user.last_login_at = datetime.utcnow()
    db.commit()

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = security.create_access_token(subject=str(user.id), expires_delta=access_token_expires)
    logger.info(f"User logged in: {email}")
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=ApiResponse[UserOut])
def me(current_user: User = Depends(security.get_current_user)):
    return {"success": True, "message": "User retrieved successfully", "data": UserOut.model_validate(current_user)}
