from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gympulse.db.postgresql import Base

if TYPE_CHECKING:
    from gympulse.models.membersModel import Member
    from gympulse.models.trainersModel import Trainer

ROLES = ("ADMIN", "TRAINER", "MEMBER")


class User(Base):
    """Login account; a member or trainer profile hangs off it one-to-one."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    # bcrypt hash
    password: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), default="MEMBER")
    first_name: Mapped[str] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(50))
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, onupdate=func.now())

    member: Mapped[Optional["Member"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    trainer: Mapped[Optional["Trainer"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
