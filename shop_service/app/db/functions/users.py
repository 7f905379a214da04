# shop_service/app/db/functions/users.py
import logging

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from shop_service.app.auth_utils import create_access_token, hash_password, verify_password
from shop_service.app.db.models import User
from shop_service.app.db.schemas import AuthResponse, LoginUserInput, RegisterUserInput, UserPublic

logger = logging.getLogger(__name__)


# Функция для получения пользователя по ID
async def get_user_by_id(db: AsyncSession, user_id: int):
    result = await db.execute(select(User).filter(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).filter(User.email == email))
    return result.scalar_one_or_none()


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(user=UserPublic.model_validate(user), token=create_access_token(user.id))


# Регистрация нового пользователя
async def register_user(db: AsyncSession, user_data: RegisterUserInput) -> AuthResponse:
    logger.debug("register_user email=%s", user_data.email)
    existing_user = await get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(status_code=400, detail="User with this email already exists")

    db_user = User(
        email=user_data.email,
        password_hash=hash_password(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
    )
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)
    logger.info("Registered user id=%s", db_user.id)
    return _auth_response(db_user)


# Вход по email и паролю
async def login_user(db: AsyncSession, credentials: LoginUserInput) -> AuthResponse:
    user = await get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.debug("login_user rejected email=%s", credentials.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _auth_response(user)
