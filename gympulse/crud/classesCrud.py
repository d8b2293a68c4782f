"""
CRUD operations for gym classes: scheduling, conflict detection, listings and
time-driven status refresh.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gympulse.core.conversions import coerce_int
from gympulse.core.errors import ConflictError, NotFoundError, ValidationError
from gympulse.core.logging_config import get_logger
from gympulse.core.validation import (
    duration_minutes,
    format_duration,
    sanitize,
    validate_class_fields,
)
from gympulse.models import CLASS_STATUSES, ClassBooking, GymClass, Trainer, User

logger = get_logger("crud.classes")


@dataclass
class ClassData:
    """Class with trainer info and availability figures"""
    id: int
    class_name: str
    description: Optional[str]
    trainer_id: int
    trainer_name: Optional[str]
    trainer_specialization: Optional[str]
    start_time: datetime
    end_time: datetime
    max_capacity: int
    current_bookings: int
    status: str

    @property
    def available_spots(self) -> int:
        return max(self.max_capacity - self.current_bookings, 0)

    @property
    def is_full(self) -> bool:
        return self.current_bookings >= self.max_capacity

    @property
    def occupancy_rate(self) -> float:
        if self.max_capacity <= 0:
            return 0.0
        return round(self.current_bookings * 100.0 / self.max_capacity, 2)

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    @property
    def duration_text(self) -> str:
        return format_duration(self.duration_minutes)

    @property
    def booking_summary(self) -> str:
        return f"{self.current_bookings}/{self.max_capacity} booked"


@dataclass
class ClassStats:
    total: int = 0
    scheduled: int = 0
    completed: int = 0
    cancelled: int = 0
    average_occupancy: float = 0.0
    total_bookings: int = 0


def _class_to_data(gym_class: GymClass) -> ClassData:
    trainer = gym_class.trainer
    user = trainer.user if trainer else None
    return ClassData(
        id=gym_class.id,
        class_name=gym_class.class_name,
        description=gym_class.description,
        trainer_id=gym_class.trainer_id,
        trainer_name=user.full_name if user else None,
        trainer_specialization=trainer.specialization if trainer else None,
        start_time=gym_class.start_time,
        end_time=gym_class.end_time,
        max_capacity=gym_class.max_capacity,
        current_bookings=gym_class.current_bookings,
        status=gym_class.status,
    )


def _class_query():
    return (
        select(GymClass)
        .options(selectinload(GymClass.trainer).selectinload(Trainer.user))
        .execution_options(populate_existing=True)
    )


async def _fetch(db: AsyncSession, stmt) -> List[ClassData]:
    res = await db.execute(stmt)
    return [_class_to_data(c) for c in res.scalars().all()]


async def has_trainer_conflict(
    db: AsyncSession,
    trainer_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_class_id: Optional[int] = None,
) -> bool:
    """True when a non-cancelled class of the trainer overlaps [start_time, end_time)."""
    stmt = select(func.count(GymClass.id)).where(
        and_(
            GymClass.trainer_id == trainer_id,
            GymClass.status != "CANCELLED",
            GymClass.start_time < end_time,
            GymClass.end_time > start_time,
        )
    )
    if exclude_class_id is not None:
        stmt = stmt.where(GymClass.id != exclude_class_id)
    return bool(await db.scalar(stmt))


async def _validate_schedule(
    db: AsyncSession,
    *,
    class_name: Optional[str],
    trainer_id: Optional[int],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    max_capacity: Optional[int],
    exclude_class_id: Optional[int] = None,
) -> None:
    errors = validate_class_fields(
        class_name=class_name,
        start_time=start_time,
        end_time=end_time,
        max_capacity=max_capacity,
        trainer_id=trainer_id,
    )
    if errors:
        raise ValidationError(errors)

    if not await db.get(Trainer, trainer_id):
        raise NotFoundError(f"Trainer {trainer_id} not found")

    if await has_trainer_conflict(db, trainer_id, start_time, end_time, exclude_class_id):
        raise ConflictError("Trainer already has a class scheduled during this time")


async def create_class(
    db: AsyncSession,
    *,
    class_name: str,
    trainer_id: int,
    start_time: datetime,
    end_time: datetime,
    max_capacity: int,
    description: Optional[str] = None,
) -> ClassData:
    await _validate_schedule(
        db,
        class_name=class_name,
        trainer_id=trainer_id,
        start_time=start_time,
        end_time=end_time,
        max_capacity=max_capacity,
    )

    gym_class = GymClass(
        class_name=sanitize(class_name),
        description=description,
        trainer_id=trainer_id,
        start_time=start_time,
        end_time=end_time,
        max_capacity=max_capacity,
        current_bookings=0,
        status="SCHEDULED",
    )
    db.add(gym_class)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(
        "Class created: id=%s name=%s trainer=%s start=%s",
        gym_class.id, gym_class.class_name, trainer_id, start_time,
    )
    return await get_class_by_id(db, gym_class.id)


async def update_class(
    db: AsyncSession,
    class_id: int,
    *,
    class_name: str,
    trainer_id: int,
    start_time: datetime,
    end_time: datetime,
    max_capacity: int,
    description: Optional[str] = None,
    status: Optional[str] = None,
) -> ClassData:
    """Reschedule or edit a class. Capacity cannot drop below the bookings already taken."""
    gym_class = await db.get(GymClass, class_id)
    if not gym_class:
        raise NotFoundError(f"Class {class_id} not found")
    await db.refresh(gym_class)

    await _validate_schedule(
        db,
        class_name=class_name,
        trainer_id=trainer_id,
        start_time=start_time,
        end_time=end_time,
        max_capacity=max_capacity,
        exclude_class_id=class_id,
    )
    if max_capacity < gym_class.current_bookings:
        raise ValidationError([
            f"Capacity cannot be lower than the {gym_class.current_bookings} bookings already made"
        ])

    if status is not None:
        status = status.strip().upper()
        if status not in CLASS_STATUSES:
            raise ValidationError([f"Status must be one of {', '.join(CLASS_STATUSES)}"])
    else:
        status = gym_class.status

    # keep FULL and SCHEDULED consistent with the new capacity
    if status == "FULL" and gym_class.current_bookings < max_capacity:
        status = "SCHEDULED"
    elif status == "SCHEDULED" and gym_class.current_bookings >= max_capacity:
        status = "FULL"

    gym_class.class_name = sanitize(class_name)
    gym_class.description = description
    gym_class.trainer_id = trainer_id
    gym_class.start_time = start_time
    gym_class.end_time = end_time
    gym_class.max_capacity = max_capacity
    gym_class.status = status

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Class updated: id=%s status=%s", class_id, status)
    return await get_class_by_id(db, class_id)


async def cancel_class(db: AsyncSession, class_id: int) -> ClassData:
    """Mark a class CANCELLED. Bookings stay on record; the class can no longer be booked."""
    gym_class = await db.get(GymClass, class_id)
    if not gym_class:
        raise NotFoundError(f"Class {class_id} not found")
    if gym_class.status == "COMPLETED":
        raise ValueError("Cannot cancel a completed class")

    gym_class.status = "CANCELLED"
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Class cancelled: id=%s", class_id)
    return await get_class_by_id(db, class_id)


async def delete_class(db: AsyncSession, class_id: int) -> bool:
    """Hard delete; the class bookings go with it."""
    res = await db.execute(
        select(GymClass)
        .options(selectinload(GymClass.bookings))
        .where(GymClass.id == class_id)
        .execution_options(populate_existing=True)
    )
    gym_class = res.scalar_one_or_none()
    if not gym_class:
        return False
    await db.delete(gym_class)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Class deleted: id=%s", class_id)
    return True


async def get_class_by_id(db: AsyncSession, class_id: object) -> Optional[ClassData]:
    class_id = coerce_int(class_id)
    if class_id is None:
        return None
    res = await db.execute(
        _class_query()
        .where(GymClass.id == class_id)
    )
    gym_class = res.scalar_one_or_none()
    return _class_to_data(gym_class) if gym_class else None


async def list_classes(db: AsyncSession, status: Optional[str] = None) -> List[ClassData]:
    """All classes, most recent start first."""
    stmt = _class_query().order_by(GymClass.start_time.desc())
    if status:
        stmt = stmt.where(GymClass.status == status.strip().upper())
    return await _fetch(db, stmt)


async def get_classes_by_trainer(db: AsyncSession, trainer_id: int) -> List[ClassData]:
    return await _fetch(
        db,
        _class_query().where(GymClass.trainer_id == trainer_id).order_by(GymClass.start_time.desc()),
    )


async def get_upcoming_classes(db: AsyncSession, limit: Optional[int] = None) -> List[ClassData]:
    stmt = (
        _class_query()
        .where(and_(GymClass.start_time > datetime.now(), GymClass.status == "SCHEDULED"))
        .order_by(GymClass.start_time.asc())
    )
    if limit:
        stmt = stmt.limit(limit)
    return await _fetch(db, stmt)


async def get_classes_by_date_range(db: AsyncSession, start_date: date, end_date: date) -> List[ClassData]:
    """Classes starting on any day from start_date to end_date, both inclusive."""
    if end_date < start_date:
        raise ValidationError(["End date must not be before start date"])
    window_start = datetime.combine(start_date, time.min)
    window_end = datetime.combine(end_date + timedelta(days=1), time.min)
    stmt = (
        _class_query()
        .where(and_(GymClass.start_time >= window_start, GymClass.start_time < window_end))
        .order_by(GymClass.start_time.asc())
    )
    return await _fetch(db, stmt)


async def get_classes_by_date(db: AsyncSession, day: date) -> List[ClassData]:
    return await get_classes_by_date_range(db, day, day)


async def search_classes(db: AsyncSession, term: str) -> List[ClassData]:
    pattern = f"%{term.strip().lower()}%"
    trainer_name = func.lower(User.first_name + " " + User.last_name)
    stmt = (
        _class_query()
        .join(Trainer, Trainer.id == GymClass.trainer_id)
        .join(User, User.id == Trainer.user_id)
        .where(or_(
            func.lower(GymClass.class_name).like(pattern),
            func.lower(func.coalesce(GymClass.description, "")).like(pattern),
            trainer_name.like(pattern),
        ))
        .order_by(GymClass.start_time.desc())
    )
    return await _fetch(db, stmt)


async def get_classes_booked_by_member(db: AsyncSession, member_id: int) -> List[ClassData]:
    stmt = (
        _class_query()
        .join(ClassBooking, ClassBooking.class_id == GymClass.id)
        .where(ClassBooking.member_id == member_id)
        .order_by(GymClass.start_time.asc())
    )
    return await _fetch(db, stmt)


async def get_available_classes_for_member(db: AsyncSession, member_id: int) -> List[ClassData]:
    """Future SCHEDULED classes the member has not booked yet."""
    booked = select(ClassBooking.class_id).where(ClassBooking.member_id == member_id)
    stmt = (
        _class_query()
        .where(and_(
            GymClass.id.not_in(booked),
            GymClass.status == "SCHEDULED",
            GymClass.start_time > datetime.now(),
        ))
        .order_by(GymClass.start_time.asc())
    )
    return await _fetch(db, stmt)


async def get_most_popular_classes(db: AsyncSession, limit: int = 5) -> List[ClassData]:
    stmt = (
        _class_query()
        .order_by(GymClass.current_bookings.desc(), GymClass.start_time.desc())
        .limit(limit)
    )
    return await _fetch(db, stmt)


async def get_class_stats(db: AsyncSession) -> ClassStats:
    res = await db.execute(
        select(
            func.count(GymClass.id),
            func.sum(case((GymClass.status == "SCHEDULED", 1), else_=0)),
            func.sum(case((GymClass.status == "COMPLETED", 1), else_=0)),
            func.sum(case((GymClass.status == "CANCELLED", 1), else_=0)),
            func.avg(GymClass.current_bookings * 100.0 / GymClass.max_capacity),
            func.sum(GymClass.current_bookings),
        )
    )
    total, scheduled, completed, cancelled, avg_occupancy, total_bookings = res.one()
    return ClassStats(
        total=total or 0,
        scheduled=scheduled or 0,
        completed=completed or 0,
        cancelled=cancelled or 0,
        average_occupancy=round(float(avg_occupancy or 0), 2),
        total_bookings=int(total_bookings or 0),
    )


async def update_class_statuses(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Move classes along the timeline; CANCELLED and COMPLETED rows are never touched.

    ended -> COMPLETED, running SCHEDULED -> IN_PROGRESS,
    SCHEDULED at capacity -> FULL.
    """
    now = now or datetime.now()
    result = await db.execute(
        update(GymClass)
        .where(GymClass.status.in_(("SCHEDULED", "IN_PROGRESS", "FULL")))
        .values(status=case(
            (GymClass.end_time < now, "COMPLETED"),
            (and_(GymClass.start_time <= now, GymClass.end_time > now, GymClass.status == "SCHEDULED"), "IN_PROGRESS"),
            (and_(GymClass.current_bookings >= GymClass.max_capacity, GymClass.status == "SCHEDULED"), "FULL"),
            else_=GymClass.status,
        ))
        .execution_options(synchronize_session=False)
    )
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Class statuses refreshed (%s rows matched)", result.rowcount)
    return result.rowcount or 0
