from datetime import datetime, timezone
from typing import Optional

from fastapi import status
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from app.auth.security import create_access_token, hash_password, verify_password
from app.core.enums import UserStatus
from app.core.exceptions import ServiceError


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, payload: RegisterRequest) -> RegisterResponse:
    email = payload.email.strip().lower()
    if await get_user_by_email(db, email):
        raise ServiceError("Email is already in use", status.HTTP_409_CONFLICT)

    user = User(
        email=email,
        full_name=payload.full_name.strip() if payload.full_name else None,
        password_hash=hash_password(payload.password),
        status=UserStatus.ACTIVE.value,
    )
    try:
        db.add(user)
        await db.commit()
        await db.refresh(user)
    except IntegrityError as e:
        await db.rollback()
        raise ServiceError("Email is already in use", status.HTTP_409_CONFLICT) from e

    logger.info("Registered user {}", user.id)
    return RegisterResponse(success=True, message="Account created successfully", user_id=user.id)


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    user = await get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    if user.status != UserStatus.ACTIVE.value:
        raise ServiceError("User is inactive", status.HTTP_403_FORBIDDEN)

    issued_at = datetime.now(timezone.utc)
    access_token = create_access_token(user.id, user.email)
    return LoginResponse(
        access_token=access_token,
        user=UserInfo(id=user.id, email=user.email, full_name=user.full_name),
        issued_at=issued_at,
    )
