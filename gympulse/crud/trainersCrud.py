from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gympulse.core.conversions import coerce_decimal, coerce_int, money
from gympulse.core.errors import ConflictError, NotFoundError, ValidationError
from gympulse.core.logging_config import get_logger
from gympulse.core.validation import sanitize, validate_trainer_fields
from gympulse.crud.usersCrud import create_user
from gympulse.models import GymClass, Trainer, User

logger = get_logger("crud.trainers")


@dataclass
class TrainerData:
    id: int
    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    specialization: str
    certifications: Optional[str]
    hourly_rate: float
    availability: Optional[str]
    total_classes: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_available(self) -> bool:
        return bool(self.availability and self.availability.strip())


@dataclass
class TrainerStats:
    total: int = 0
    average_rate: float = 0.0
    min_rate: float = 0.0
    max_rate: float = 0.0


def _trainer_to_data(trainer: Trainer, user: User, total_classes: int = 0) -> TrainerData:
    return TrainerData(
        id=trainer.id,
        user_id=trainer.user_id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        specialization=trainer.specialization,
        certifications=trainer.certifications,
        hourly_rate=float(trainer.hourly_rate or 0),
        availability=trainer.availability,
        total_classes=total_classes or 0,
    )


def _class_count():
    return (
        select(func.count(GymClass.id))
        .where(GymClass.trainer_id == Trainer.id)
        .correlate(Trainer)
        .scalar_subquery()
    )


def _trainer_query():
    """Trainer, its user and the number of classes it teaches."""
    return (
        select(Trainer, User, _class_count().label("total_classes"))
        .join(User, User.id == Trainer.user_id)
    )


async def _fetch(db: AsyncSession, stmt) -> List[TrainerData]:
    res = await db.execute(stmt)
    return [_trainer_to_data(t, u, c) for t, u, c in res.all()]


async def create_trainer(
    db: AsyncSession,
    *,
    user_id: int,
    specialization: str,
    hourly_rate: object,
    certifications: Optional[str] = None,
    availability: Optional[str] = None,
    commit: bool = True,
) -> Trainer:
    """Attach a trainer profile to an existing user."""
    errors = validate_trainer_fields(specialization=specialization, hourly_rate=hourly_rate)
    if errors:
        raise ValidationError(errors)

    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    existing = await db.execute(select(Trainer.id).where(Trainer.user_id == user_id))
    if existing.first():
        raise ConflictError("This user already has a trainer profile")

    trainer = Trainer(
        user_id=user_id,
        specialization=sanitize(specialization),
        certifications=certifications,
        hourly_rate=money(hourly_rate),
        availability=availability,
    )
    db.add(trainer)

    if commit:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise
        await db.refresh(trainer)
    else:
        await db.flush()

    logger.info("Trainer created: id=%s user=%s", trainer.id, user_id)
    return trainer


async def create_trainer_with_user(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    email: str,
    first_name: str,
    last_name: str,
    specialization: str,
    hourly_rate: object,
    phone: Optional[str] = None,
    certifications: Optional[str] = None,
    availability: Optional[str] = None,
) -> TrainerData:
    """Create the TRAINER user and its trainer profile in one transaction."""
    try:
        user = await create_user(
            db,
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role="TRAINER",
            commit=False,
        )
        trainer = await create_trainer(
            db,
            user_id=user.id,
            specialization=specialization,
            hourly_rate=hourly_rate,
            certifications=certifications,
            availability=availability,
            commit=False,
        )
        await db.commit()
    except (ValueError, SQLAlchemyError):
        await db.rollback()
        raise

    return await get_trainer_by_id(db, trainer.id)


async def get_trainer_by_id(db: AsyncSession, trainer_id: object) -> Optional[TrainerData]:
    trainer_id = coerce_int(trainer_id)
    if trainer_id is None:
        return None
    rows = await _fetch(db, _trainer_query().where(Trainer.id == trainer_id))
    return rows[0] if rows else None


async def get_trainer_by_user_id(db: AsyncSession, user_id: int) -> Optional[TrainerData]:
    rows = await _fetch(db, _trainer_query().where(Trainer.user_id == user_id))
    return rows[0] if rows else None


async def list_trainers(db: AsyncSession) -> List[TrainerData]:
    return await _fetch(db, _trainer_query().order_by(User.first_name, User.last_name, Trainer.id))


async def search_trainers(db: AsyncSession, term: str) -> List[TrainerData]:
    pattern = f"%{term.strip().lower()}%"
    stmt = _trainer_query().where(or_(
        func.lower(User.first_name).like(pattern),
        func.lower(User.last_name).like(pattern),
        func.lower(User.email).like(pattern),
        func.lower(Trainer.specialization).like(pattern),
    )).order_by(User.first_name, User.last_name)
    return await _fetch(db, stmt)


async def get_trainers_by_specialization(db: AsyncSession, specialization: str) -> List[TrainerData]:
    stmt = (
        _trainer_query()
        .where(func.lower(Trainer.specialization) == specialization.strip().lower())
        .order_by(User.first_name, User.last_name)
    )
    return await _fetch(db, stmt)


async def get_trainers_by_rate_range(db: AsyncSession, min_rate: object, max_rate: object) -> List[TrainerData]:
    low, high = coerce_decimal(min_rate), coerce_decimal(max_rate)
    if low is None or high is None or low > high:
        raise ValidationError(["Rate range is not valid"])
    stmt = (
        _trainer_query()
        .where(and_(Trainer.hourly_rate >= low, Trainer.hourly_rate <= high))
        .order_by(Trainer.hourly_rate.asc())
    )
    return await _fetch(db, stmt)


async def get_available_trainers(db: AsyncSession) -> List[TrainerData]:
    """Trainers with a non-empty availability note."""
    stmt = (
        _trainer_query()
        .where(and_(Trainer.availability.is_not(None), func.trim(Trainer.availability) != ""))
        .order_by(User.first_name, User.last_name)
    )
    return await _fetch(db, stmt)


async def get_top_trainers(db: AsyncSession, limit: int = 5) -> List[TrainerData]:
    stmt = _trainer_query().order_by(_class_count().desc(), Trainer.id.asc()).limit(limit)
    return await _fetch(db, stmt)


async def update_trainer(
    db: AsyncSession,
    trainer_id: int,
    *,
    specialization: str,
    hourly_rate: object,
    certifications: Optional[str] = None,
    availability: Optional[str] = None,
) -> TrainerData:
    trainer = await db.get(Trainer, trainer_id)
    if not trainer:
        raise NotFoundError(f"Trainer {trainer_id} not found")

    errors = validate_trainer_fields(specialization=specialization, hourly_rate=hourly_rate)
    if errors:
        raise ValidationError(errors)

    trainer.specialization = sanitize(specialization)
    trainer.hourly_rate = money(hourly_rate)
    trainer.certifications = certifications
    trainer.availability = availability

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Trainer updated: id=%s", trainer_id)
    return await get_trainer_by_id(db, trainer_id)


async def delete_trainer(db: AsyncSession, trainer_id: int) -> bool:
    """Remove the trainer profile. Refused while classes still reference it."""
    trainer = await db.get(Trainer, trainer_id)
    if not trainer:
        return False

    class_count = await db.scalar(
        select(func.count(GymClass.id)).where(GymClass.trainer_id == trainer_id)
    )
    if class_count:
        raise ConflictError(
            f"Trainer {trainer_id} still has {class_count} classes; reassign or delete them first"
        )

    res = await db.execute(
        select(Trainer)
        .options(selectinload(Trainer.classes))
        .where(Trainer.id == trainer_id)
        .execution_options(populate_existing=True)
    )
    await db.delete(res.scalar_one())
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Trainer deleted: id=%s", trainer_id)
    return True


async def get_trainer_stats(db: AsyncSession) -> TrainerStats:
    res = await db.execute(
        select(
            func.count(Trainer.id),
            func.avg(Trainer.hourly_rate),
            func.min(Trainer.hourly_rate),
            func.max(Trainer.hourly_rate),
        )
    )
    total, avg_rate, min_rate, max_rate = res.one()
    return TrainerStats(
        total=total or 0,
        average_rate=float(money(avg_rate or Decimal("0"))),
        min_rate=float(min_rate or 0),
        max_rate=float(max_rate or 0),
    )


async def get_specialization_distribution(db: AsyncSession) -> Dict[str, int]:
    """Specialization -> trainer count, most common first."""
    count = func.count(Trainer.id).label("count")
    res = await db.execute(
        select(Trainer.specialization, count)
        .where(and_(Trainer.specialization.is_not(None), Trainer.specialization != ""))
        .group_by(Trainer.specialization)
        .order_by(count.desc(), Trainer.specialization.asc())
    )
    return {spec: total for spec, total in res.all()}
