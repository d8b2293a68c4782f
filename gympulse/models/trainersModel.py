from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gympulse.db.postgresql import Base, fk

if TYPE_CHECKING:
    from gympulse.models.classModel import GymClass
    from gympulse.models.usersModel import User


class Trainer(Base):
    __tablename__ = "trainers"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey(fk("users.id"), ondelete="CASCADE"), unique=True
    )
    specialization: Mapped[str] = mapped_column(String(100), index=True)
    certifications: Mapped[Optional[str]] = mapped_column(Text)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    # free text, e.g. "Mon-Fri 06:00-14:00"
    availability: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="trainer")
    classes: Mapped[list["GymClass"]] = relationship(back_populates="trainer")
