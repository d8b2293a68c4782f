"""
Class booking operations.

The booking counter on ``classes.current_bookings`` is maintained here, inside
the same transaction as the booking row, with a conditional UPDATE so the
counter can never pass ``max_capacity`` even when two members race for the
last spot.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, case, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gympulse.core.errors import ConflictError, NotFoundError
from gympulse.core.logging_config import get_logger
from gympulse.models import ClassBooking, GymClass, Member, Trainer

logger = get_logger("crud.bookings")

UNBOOKABLE_CLASS_STATUSES = ("CANCELLED", "COMPLETED")


@dataclass
class BookingData:
    id: int
    class_id: int
    member_id: int
    booking_date: datetime
    status: str
    class_name: Optional[str] = None
    class_start: Optional[datetime] = None
    class_end: Optional[datetime] = None
    class_status: Optional[str] = None
    trainer_name: Optional[str] = None
    member_name: Optional[str] = None

    @property
    def can_be_cancelled(self) -> bool:
        if self.status != "CONFIRMED":
            return False
        return self.class_start is None or self.class_start > datetime.now()


def _booking_to_data(booking: ClassBooking) -> BookingData:
    gym_class = booking.gym_class
    trainer_user = gym_class.trainer.user if gym_class and gym_class.trainer else None
    member_user = booking.member.user if booking.member else None
    return BookingData(
        id=booking.id,
        class_id=booking.class_id,
        member_id=booking.member_id,
        booking_date=booking.booking_date,
        status=booking.status,
        class_name=gym_class.class_name if gym_class else None,
        class_start=gym_class.start_time if gym_class else None,
        class_end=gym_class.end_time if gym_class else None,
        class_status=gym_class.status if gym_class else None,
        trainer_name=trainer_user.full_name if trainer_user else None,
        member_name=member_user.full_name if member_user else None,
    )


def _booking_query():
    return select(ClassBooking).options(
        selectinload(ClassBooking.gym_class)
        .selectinload(GymClass.trainer)
        .selectinload(Trainer.user),
        selectinload(ClassBooking.member).selectinload(Member.user),
    ).execution_options(populate_existing=True)


async def _release_spot(db: AsyncSession, class_id: int) -> None:
    """Decrement the counter (never below zero) and reopen a FULL class."""
    await db.execute(
        update(GymClass)
        .where(GymClass.id == class_id)
        .values(
            current_bookings=case(
                (GymClass.current_bookings > 0, GymClass.current_bookings - 1),
                else_=0,
            ),
            status=case(
                (GymClass.status == "FULL", "SCHEDULED"),
                else_=GymClass.status,
            ),
        )
        .execution_options(synchronize_session=False)
    )


async def is_class_booked_by_member(db: AsyncSession, class_id: int, member_id: int) -> bool:
    res = await db.execute(
        select(ClassBooking.id).where(
            and_(ClassBooking.class_id == class_id, ClassBooking.member_id == member_id)
        )
    )
    return res.first() is not None


async def book_class(
    db: AsyncSession,
    *,
    class_id: int,
    member_id: int,
    commit: bool = True,
) -> ClassBooking:
    """Book a spot for a member. Raises ValueError subclasses when a rule rejects it."""
    try:
        res = await db.execute(
            select(GymClass)
            .where(GymClass.id == class_id)
            .execution_options(populate_existing=True)
        )
        gym_class = res.scalar_one_or_none()
        if not gym_class:
            raise NotFoundError(f"Class {class_id} not found")
        if gym_class.status in UNBOOKABLE_CLASS_STATUSES:
            raise ValueError(f"Cannot book a {gym_class.status.lower()} class")
        if gym_class.current_bookings >= gym_class.max_capacity:
            raise ConflictError("Class is full")

        member = await db.get(Member, member_id)
        if not member:
            raise NotFoundError(f"Member {member_id} not found")

        if await is_class_booked_by_member(db, class_id, member_id):
            raise ConflictError("Member has already booked this class")

        claimed = await db.execute(
            update(GymClass)
            .where(
                and_(
                    GymClass.id == class_id,
                    GymClass.current_bookings < GymClass.max_capacity,
                    GymClass.status.notin_(UNBOOKABLE_CLASS_STATUSES),
                )
            )
            .values(
                current_bookings=GymClass.current_bookings + 1,
                status=case(
                    (
                        and_(
                            GymClass.current_bookings + 1 >= GymClass.max_capacity,
                            GymClass.status == "SCHEDULED",
                        ),
                        "FULL",
                    ),
                    else_=GymClass.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise ConflictError("Class is full")

        booking = ClassBooking(
            class_id=class_id,
            member_id=member_id,
            booking_date=datetime.now(),
            status="CONFIRMED",
        )
        db.add(booking)
        await db.flush()
        await db.refresh(gym_class)

        if commit:
            await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Duplicate booking rejected: class=%s member=%s", class_id, member_id)
        raise ConflictError("Member has already booked this class")
    except (ValueError, SQLAlchemyError) as e:
        if commit:
            await db.rollback()
        logger.warning("Booking rejected: class=%s member=%s reason=%s", class_id, member_id, e)
        raise

    logger.info(
        "Class booked: class=%s member=%s bookings=%s/%s",
        class_id, member_id, gym_class.current_bookings, gym_class.max_capacity,
    )
    return booking


async def cancel_booking(
    db: AsyncSession,
    *,
    class_id: int,
    member_id: int,
    commit: bool = True,
) -> bool:
    """Delete the member's booking and give the spot back to the class."""
    try:
        res = await db.execute(
            select(ClassBooking).where(
                and_(ClassBooking.class_id == class_id, ClassBooking.member_id == member_id)
            )
        )
        booking = res.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking not found")

        await db.delete(booking)
        await _release_spot(db, class_id)
        await db.flush()

        gym_class = await db.get(GymClass, class_id)
        if gym_class is not None:
            await db.refresh(gym_class)

        if commit:
            await db.commit()
    except (ValueError, SQLAlchemyError) as e:
        if commit:
            await db.rollback()
        logger.warning("Cancellation rejected: class=%s member=%s reason=%s", class_id, member_id, e)
        raise

    logger.info("Booking cancelled: class=%s member=%s", class_id, member_id)
    return True


async def release_member_bookings(db: AsyncSession, member_id: int) -> int:
    """Drop every booking of a member and release their spots. Does not commit."""
    res = await db.execute(
        select(ClassBooking.class_id).where(ClassBooking.member_id == member_id)
    )
    class_ids = [row[0] for row in res.all()]
    for class_id in class_ids:
        await _release_spot(db, class_id)
    if class_ids:
        await db.execute(
            delete(ClassBooking)
            .where(ClassBooking.member_id == member_id)
            .execution_options(synchronize_session=False)
        )
    return len(class_ids)


async def get_booking_by_id(db: AsyncSession, booking_id: int) -> Optional[BookingData]:
    res = await db.execute(_booking_query().where(ClassBooking.id == booking_id))
    booking = res.scalar_one_or_none()
    return _booking_to_data(booking) if booking else None


async def get_booking(db: AsyncSession, class_id: int, member_id: int) -> Optional[BookingData]:
    res = await db.execute(
        _booking_query().where(
            and_(ClassBooking.class_id == class_id, ClassBooking.member_id == member_id)
        )
    )
    booking = res.scalar_one_or_none()
    return _booking_to_data(booking) if booking else None


async def list_bookings_for_class(db: AsyncSession, class_id: int) -> List[BookingData]:
    """Class roster in booking order."""
    res = await db.execute(
        _booking_query()
        .where(ClassBooking.class_id == class_id)
        .order_by(ClassBooking.booking_date.asc(), ClassBooking.id.asc())
    )
    return [_booking_to_data(b) for b in res.scalars().all()]


async def list_bookings_for_member(
    db: AsyncSession,
    member_id: int,
    *,
    upcoming_only: bool = False,
) -> List[BookingData]:
    stmt = (
        _booking_query()
        .join(GymClass, GymClass.id == ClassBooking.class_id)
        .where(ClassBooking.member_id == member_id)
        .order_by(GymClass.start_time.asc())
    )
    if upcoming_only:
        stmt = stmt.where(GymClass.start_time > datetime.now())
    res = await db.execute(stmt)
    return [_booking_to_data(b) for b in res.scalars().all()]


async def mark_attendance(
    db: AsyncSession,
    booking_id: int,
    *,
    attended: bool,
) -> BookingData:
    """Record ATTENDED or NO_SHOW for a confirmed booking of a class that has started."""
    res = await db.execute(
        select(ClassBooking)
        .options(selectinload(ClassBooking.gym_class))
        .where(ClassBooking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = res.scalar_one_or_none()
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    if booking.status != "CONFIRMED":
        raise ValueError(f"Cannot mark attendance for a booking with status {booking.status}")
    if booking.gym_class.start_time > datetime.now():
        raise ValueError("Attendance can only be recorded once the class has started")

    booking.status = "ATTENDED" if attended else "NO_SHOW"
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Attendance recorded: booking=%s status=%s", booking_id, booking.status)
    return await get_booking_by_id(db, booking_id)
