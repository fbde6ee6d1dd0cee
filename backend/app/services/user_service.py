import logging
from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import DomainError, NotFoundError
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

async def find_by_user_id(db: AsyncSession, user_id: str) -> User | None:
    res = await db.execute(select(User).where(User.user_id == user_id))
    return res.scalar_one_or_none()

async def get_by_user_id(db: AsyncSession, user_id: str | None) -> User:
    user = await find_by_user_id(db, user_id) if user_id else None
    if user is None:
        raise NotFoundError(f"user not found: {user_id}")
    return user

async def _taken(db: AsyncSession, column, value: str) -> bool:
    return bool((await db.execute(select(exists().where(column == value)))).scalar())

async def user_id_taken(db: AsyncSession, user_id: str) -> bool:
    return await _taken(db, User.user_id, user_id)

async def nickname_taken(db: AsyncSession, nickname: str) -> bool:
    return await _taken(db, User.nickname, nickname)

async def email_taken(db: AsyncSession, email: str) -> bool:
    return await _taken(db, User.email, email)

async def register(db: AsyncSession, user_id: str, password: str, nickname: str, email: str,
                   gender: str | None = None, age: int | None = None) -> User:
    if await user_id_taken(db, user_id):
        raise DomainError("userId already in use")
    if await nickname_taken(db, nickname):
        raise DomainError("nickname already in use")
    if await email_taken(db, email):
        raise DomainError("email already in use")
    user = User(user_id=user_id, password=hash_password(password), nickname=nickname,
                email=email, gender=gender, age=age, token_count=5)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("registered user %s", user_id)
    return user

async def authenticate(db: AsyncSession, user_id: str, password: str) -> User:
    user = await find_by_user_id(db, user_id)
    if user is None or not verify_password(password, user.password):
        raise DomainError("invalid userId or password")
    return user

async def change_nickname(db: AsyncSession, user_id: str, nickname: str) -> User:
    user = await get_by_user_id(db, user_id)
    nickname = nickname.strip()
    if not nickname:
        raise DomainError("nickname is required")
    if nickname != user.nickname and await nickname_taken(db, nickname):
        raise DomainError("nickname already in use")
    user.nickname = nickname
    await db.commit()
    return user

async def change_password(db: AsyncSession, user_id: str, current: str, new: str) -> None:
    user = await get_by_user_id(db, user_id)
    if not verify_password(current, user.password):
        raise DomainError("current password does not match")
    user.password = hash_password(new)
    await db.commit()

async def update_profile_image(db: AsyncSession, user_id: str, image_key: str | None) -> User:
    user = await get_by_user_id(db, user_id)
    user.profile_image = image_key
    await db.commit()
    return user
