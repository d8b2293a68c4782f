from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gympulse.db.postgresql import Base, fk

if TYPE_CHECKING:
    from gympulse.models.membersModel import Member
    from gympulse.models.trainersModel import Trainer

CLASS_STATUSES = ("SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELLED", "FULL")
BOOKING_STATUSES = ("CONFIRMED", "CANCELLED", "ATTENDED", "NO_SHOW")


class GymClass(Base):
    """A scheduled class with a capacity-bounded booking counter."""

    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("current_bookings >= 0", name="ck_classes_bookings_non_negative"),
        CheckConstraint("current_bookings <= max_capacity", name="ck_classes_bookings_capacity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    class_name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    trainer_id: Mapped[int] = mapped_column(ForeignKey(fk("trainers.id")), index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime)
    max_capacity: Mapped[int] = mapped_column(Integer)
    current_bookings: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="SCHEDULED", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    trainer: Mapped["Trainer"] = relationship(back_populates="classes")
    bookings: Mapped[list["ClassBooking"]] = relationship(
        back_populates="gym_class", cascade="all, delete-orphan"
    )


class ClassBooking(Base):
    __tablename__ = "class_bookings"
    __table_args__ = (
        UniqueConstraint("class_id", "member_id", name="uq_class_bookings_class_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    class_id: Mapped[int] = mapped_column(ForeignKey(fk("classes.id"), ondelete="CASCADE"))
    member_id: Mapped[int] = mapped_column(ForeignKey(fk("members.id"), ondelete="CASCADE"), index=True)
    booking_date: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    status: Mapped[str] = mapped_column(String(20), default="CONFIRMED")

    gym_class: Mapped[GymClass] = relationship(back_populates="bookings")
    member: Mapped["Member"] = relationship(back_populates="bookings")
