from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gympulse.core.conversions import coerce_int
from gympulse.core.errors import ConflictError, NotFoundError, ValidationError
from gympulse.core.logging_config import get_logger
from gympulse.core.validation import (
    is_valid_password,
    password_strength_message,
    sanitize,
    validate_user_fields,
)
from gympulse.crud.bookingsCrud import release_member_bookings
from gympulse.models import ROLES, GymClass, Member, Trainer, User
from gympulse.security.hashing import hash_password, verify_password

logger = get_logger("crud.users")


@dataclass
class UserData:
    id: int
    username: str
    email: str
    role: str
    first_name: str
    last_name: str
    phone: Optional[str]
    created_at: Optional[datetime]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


def _user_to_data(user: User) -> UserData:
    return UserData(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        created_at=user.created_at,
    )


def _normalize_role(role: str) -> str:
    normalized = (role or "").strip().upper()
    if normalized not in ROLES:
        raise ValidationError([f"Role must be one of {', '.join(ROLES)}"])
    return normalized


async def username_exists(db: AsyncSession, username: str, exclude_user_id: Optional[int] = None) -> bool:
    stmt = select(User.id).where(func.lower(User.username) == username.strip().lower())
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def email_exists(db: AsyncSession, email: str, exclude_user_id: Optional[int] = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.strip().lower())
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    email: str,
    first_name: str,
    last_name: str,
    role: str = "MEMBER",
    phone: Optional[str] = None,
    commit: bool = True,
) -> User:
    """Validate and insert a user. With commit=False the row is only flushed."""
    errors = validate_user_fields(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        password=password,
    )
    if errors:
        raise ValidationError(errors)

    role = _normalize_role(role)
    if await username_exists(db, username):
        raise ConflictError(f"Username '{username.strip()}' is already taken")
    if await email_exists(db, email):
        raise ConflictError(f"Email '{email.strip()}' is already registered")

    user = User(
        username=username.strip(),
        password=hash_password(password),
        email=email.strip().lower(),
        role=role,
        first_name=sanitize(first_name),
        last_name=sanitize(last_name),
        phone=sanitize(phone) or None,
    )
    db.add(user)

    if commit:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise
        await db.refresh(user)
    else:
        await db.flush()

    logger.info("User created: id=%s username=%s role=%s", user.id, user.username, user.role)
    return user


async def get_user_by_id(db: AsyncSession, user_id: object) -> Optional[User]:
    user_id = coerce_int(user_id)
    if user_id is None:
        return None
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    res = await db.execute(
        select(User).where(func.lower(User.username) == username.strip().lower())
    )
    return res.scalar_one_or_none()


async def get_user_data(db: AsyncSession, user_id: int) -> Optional[UserData]:
    user = await get_user_by_id(db, user_id)
    return _user_to_data(user) if user else None


async def list_users(db: AsyncSession, role: Optional[str] = None) -> List[UserData]:
    """All users, newest first."""
    stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
    if role:
        stmt = stmt.where(User.role == role.strip().upper())
    res = await db.execute(stmt)
    return [_user_to_data(u) for u in res.scalars().all()]


async def update_user(
    db: AsyncSession,
    user_id: int,
    *,
    username: str,
    email: str,
    first_name: str,
    last_name: str,
    role: Optional[str] = None,
    phone: Optional[str] = None,
    password: Optional[str] = None,
    commit: bool = True,
) -> UserData:
    """Update profile fields; the password only changes when a non-empty one is given."""
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")

    errors = validate_user_fields(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        password=password,
        require_password=False,
    )
    if errors:
        raise ValidationError(errors)
    if await username_exists(db, username, exclude_user_id=user.id):
        raise ConflictError(f"Username '{username.strip()}' is already taken")
    if await email_exists(db, email, exclude_user_id=user.id):
        raise ConflictError(f"Email '{email.strip()}' is already registered")

    user.username = username.strip()
    user.email = email.strip().lower()
    user.first_name = sanitize(first_name)
    user.last_name = sanitize(last_name)
    user.phone = sanitize(phone) or None
    if role:
        user.role = _normalize_role(role)
    if password and password.strip():
        user.password = hash_password(password)

    if commit:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise
        await db.refresh(user)
    else:
        await db.flush()

    logger.info("User updated: id=%s", user.id)
    return _user_to_data(user)


async def change_password(
    db: AsyncSession,
    user_id: int,
    *,
    current_password: str,
    new_password: str,
) -> bool:
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    if not verify_password(current_password, user.password):
        raise ValueError("Current password is incorrect")
    if not is_valid_password(new_password):
        raise ValidationError([password_strength_message(new_password)])

    user.password = hash_password(new_password)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Password changed for user id=%s", user.id)
    return True


async def delete_user(db: AsyncSession, user_id: int) -> bool:
    """Hard delete; the member or trainer profile goes with it."""
    user = await get_user_by_id(db, user_id)
    if not user:
        return False

    class_count = await db.scalar(
        select(func.count(GymClass.id))
        .join(Trainer, Trainer.id == GymClass.trainer_id)
        .where(Trainer.user_id == user.id)
    )
    if class_count:
        raise ConflictError("Trainer still has classes assigned; reassign or delete them first")

    member_id = await db.scalar(select(Member.id).where(Member.user_id == user.id))
    if member_id is not None:
        await release_member_bookings(db, member_id)

    # profiles and their children must be loaded before an async cascade delete
    res = await db.execute(
        select(User)
        .options(
            selectinload(User.member).selectinload(Member.bookings),
            selectinload(User.member).selectinload(Member.payments),
            selectinload(User.trainer).selectinload(Trainer.classes),
        )
        .where(User.id == user.id)
        .execution_options(populate_existing=True)
    )
    user = res.scalar_one()
    await db.delete(user)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("User deleted: id=%s", user_id)
    return True
