from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gympulse.db.postgresql import Base, fk

if TYPE_CHECKING:
    from gympulse.models.classModel import ClassBooking
    from gympulse.models.paymentsModel import Payment
    from gympulse.models.usersModel import User

MEMBERSHIP_STATUSES = ("ACTIVE", "EXPIRED", "SUSPENDED")


class MembershipPlan(Base):
    """Plan a member subscribes to; duration drives membership extension."""

    __tablename__ = "membership_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    plan_name: Mapped[str] = mapped_column(String(100), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    duration_in_months: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    members: Mapped[list["Member"]] = relationship(back_populates="plan")


class Member(Base):
    __tablename__ = "members"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey(fk("users.id"), ondelete="CASCADE"), unique=True
    )
    emergency_contact: Mapped[Optional[str]] = mapped_column(String(100))
    medical_conditions: Mapped[Optional[str]] = mapped_column(Text)
    membership_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey(fk("membership_plans.id"), ondelete="SET NULL")
    )
    membership_start_date: Mapped[date] = mapped_column(Date)
    membership_end_date: Mapped[date] = mapped_column(Date, index=True)
    membership_status: Mapped[str] = mapped_column(String(20), default="ACTIVE", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="member")
    plan: Mapped[Optional[MembershipPlan]] = relationship(back_populates="members")
    bookings: Mapped[list["ClassBooking"]] = relationship(
        back_populates="member", cascade="all, delete-orphan"
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="member", cascade="all, delete-orphan"
    )
