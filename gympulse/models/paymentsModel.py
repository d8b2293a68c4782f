from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gympulse.db.postgresql import Base, fk

if TYPE_CHECKING:
    from gympulse.models.membersModel import Member

PAYMENT_METHODS = ("CASH", "CARD", "ONLINE", "UPI", "WALLET")
PAYMENT_TYPES = ("MEMBERSHIP", "RENEWAL", "CLASS", "OTHER")
PAYMENT_STATUSES = ("COMPLETED", "PENDING", "FAILED", "REFUNDED", "CANCELLED")
# Payment types that extend the member's end date when recorded
EXTENDING_TYPES = ("MEMBERSHIP", "RENEWAL")


class Payment(Base):
    """Payment ledger row. Never hard-deleted; cancelling sets status CANCELLED."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    member_id: Mapped[int] = mapped_column(ForeignKey(fk("members.id"), ondelete="CASCADE"), index=True)
    transaction_id: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    invoice_number: Mapped[str] = mapped_column(String(50), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    final_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[str] = mapped_column(String(20))
    payment_type: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), default="COMPLETED", index=True)
    # True once this payment has pushed the member's end date
    membership_extended: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    coupon_code: Mapped[Optional[str]] = mapped_column(String(50))
    refund_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    refund_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    refund_reason: Mapped[Optional[str]] = mapped_column(Text)
    processed_by: Mapped[Optional[int]] = mapped_column(Integer)
    payment_date: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)

    member: Mapped["Member"] = relationship(back_populates="payments")
