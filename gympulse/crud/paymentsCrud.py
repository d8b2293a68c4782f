"""
Payment ledger operations.

Recording a MEMBERSHIP or RENEWAL payment extends the member's membership in
the same transaction. Payments are never deleted: cancelling flips the status
to CANCELLED so revenue history stays intact.
"""
import random
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gympulse.core.config import get_settings
from gympulse.core.conversions import coerce_decimal, coerce_int, money
from gympulse.core.errors import NotFoundError, ValidationError
from gympulse.core.logging_config import get_logger
from gympulse.core.validation import validate_payment_fields
from gympulse.crud.bookingsCrud import book_class
from gympulse.crud.membersCrud import extend_membership, month_bounds
from gympulse.models import (
    EXTENDING_TYPES,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    PAYMENT_TYPES,
    GymClass,
    Member,
    Payment,
    User,
)

logger = get_logger("crud.payments")

# No status change leaves these
FINAL_STATUSES = ("REFUNDED", "CANCELLED")


@dataclass
class PaymentData:
    id: int
    member_id: int
    member_name: Optional[str]
    member_email: Optional[str]
    plan_name: Optional[str]
    transaction_id: str
    invoice_number: str
    amount: Decimal
    discount: Decimal
    final_amount: Decimal
    payment_method: str
    payment_type: str
    status: str
    description: Optional[str]
    coupon_code: Optional[str]
    refund_amount: Decimal
    refund_date: Optional[datetime]
    refund_reason: Optional[str]
    processed_by: Optional[int]
    payment_date: datetime

    @property
    def is_refundable(self) -> bool:
        return self.status == "COMPLETED" and (self.refund_amount or 0) < self.final_amount


@dataclass
class PaymentStats:
    total_payments: int = 0
    completed_count: int = 0
    completed_revenue: Decimal = Decimal("0.00")
    pending_count: int = 0
    pending_revenue: Decimal = Decimal("0.00")
    failed_count: int = 0
    refunded_count: int = 0
    total_refunds: Decimal = Decimal("0.00")

    @property
    def total_revenue(self) -> Decimal:
        return self.completed_revenue


@dataclass
class MonthlyPaymentSummary:
    month: int
    year: int
    completed_count: int = 0
    failed_count: int = 0
    refunded_count: int = 0
    revenue: Decimal = Decimal("0.00")
    refunds: Decimal = Decimal("0.00")
    by_method: Dict[str, int] = field(default_factory=dict)


def generate_transaction_id() -> str:
    return f"TXN{int(time.time() * 1000)}{random.randint(0, 999):03d}"


def generate_invoice_number() -> str:
    return f"INV{int(time.time() * 1000)}"


def calculate_discount(amount: Decimal, percentage: object) -> Decimal:
    """Discount for a percentage in (0, 100]; anything else yields no discount."""
    pct = coerce_decimal(percentage)
    if pct is None or pct <= 0 or pct > 100:
        return Decimal("0.00")
    return money(amount * pct / Decimal("100"))


def _payment_to_data(payment: Payment) -> PaymentData:
    member = payment.member
    user = member.user if member else None
    plan = member.plan if member else None
    return PaymentData(
        id=payment.id,
        member_id=payment.member_id,
        member_name=user.full_name if user else None,
        member_email=user.email if user else None,
        plan_name=plan.plan_name if plan else None,
        transaction_id=payment.transaction_id,
        invoice_number=payment.invoice_number,
        amount=money(payment.amount),
        discount=money(payment.discount),
        final_amount=money(payment.final_amount),
        payment_method=payment.payment_method,
        payment_type=payment.payment_type,
        status=payment.status,
        description=payment.description,
        coupon_code=payment.coupon_code,
        refund_amount=money(payment.refund_amount),
        refund_date=payment.refund_date,
        refund_reason=payment.refund_reason,
        processed_by=payment.processed_by,
        payment_date=payment.payment_date,
    )


def _payment_query():
    return (
        select(Payment)
        .join(Member, Member.id == Payment.member_id)
        .join(User, User.id == Member.user_id)
        .options(selectinload(Payment.member).selectinload(Member.user),
                 selectinload(Payment.member).selectinload(Member.plan))
        .execution_options(populate_existing=True)
    )


async def _fetch(db: AsyncSession, stmt) -> List[PaymentData]:
    res = await db.execute(stmt)
    return [_payment_to_data(p) for p in res.scalars().all()]


def _check_choice(value: str, choices: tuple, label: str) -> str:
    normalized = (value or "").strip().upper()
    if normalized not in choices:
        raise ValidationError([f"{label} must be one of {', '.join(choices)}"])
    return normalized


async def _unique_transaction_id(db: AsyncSession) -> str:
    for _ in range(5):
        candidate = generate_transaction_id()
        taken = await db.execute(select(Payment.id).where(Payment.transaction_id == candidate))
        if not taken.first():
            return candidate
    raise RuntimeError("Could not generate a unique transaction id")


async def _apply_membership_extension(db: AsyncSession, payment: Payment, member: Member) -> None:
    if payment.membership_extended:
        return
    if member.plan is None:
        logger.warning("Member %s has no membership plan; membership not extended", member.id)
        return
    await extend_membership(db, member, member.plan.duration_in_months)
    payment.membership_extended = True


async def create_payment(
    db: AsyncSession,
    *,
    member_id: int,
    amount: object,
    payment_method: str,
    payment_type: str,
    discount: object = None,
    discount_percentage: object = None,
    status: str = "COMPLETED",
    description: Optional[str] = None,
    coupon_code: Optional[str] = None,
    processed_by: Optional[int] = None,
    commit: bool = True,
) -> Payment:
    """Record a payment; completed MEMBERSHIP/RENEWAL payments extend the membership."""
    errors = validate_payment_fields(amount=amount, discount=discount)
    if errors:
        raise ValidationError(errors)
    method = _check_choice(payment_method, PAYMENT_METHODS, "Payment method")
    ptype = _check_choice(payment_type, PAYMENT_TYPES, "Payment type")
    status = _check_choice(status, PAYMENT_STATUSES, "Payment status")

    gross = money(amount)
    off = money(discount) if discount is not None else Decimal("0.00")
    if discount_percentage is not None:
        off = calculate_discount(gross, discount_percentage)

    try:
        res = await db.execute(
            select(Member)
            .options(selectinload(Member.plan))
            .where(Member.id == member_id)
            .execution_options(populate_existing=True)
        )
        member = res.scalar_one_or_none()
        if not member:
            raise NotFoundError(f"Member {member_id} not found")

        payment = Payment(
            member_id=member_id,
            transaction_id=await _unique_transaction_id(db),
            invoice_number=generate_invoice_number(),
            amount=gross,
            discount=off,
            final_amount=gross - off,
            payment_method=method,
            payment_type=ptype,
            status=status,
            description=description,
            coupon_code=coupon_code or None,
            refund_amount=Decimal("0.00"),
            membership_extended=False,
            processed_by=processed_by,
            payment_date=datetime.now(),
        )
        db.add(payment)
        await db.flush()

        if ptype in EXTENDING_TYPES and status == "COMPLETED":
            await _apply_membership_extension(db, payment, member)

        if commit:
            await db.commit()
    except (ValueError, SQLAlchemyError) as e:
        if commit:
            await db.rollback()
        logger.warning("Payment rejected for member %s: %s", member_id, e)
        raise

    logger.info(
        "Payment recorded: txn=%s member=%s type=%s final=%s status=%s",
        payment.transaction_id, member_id, ptype, payment.final_amount, status,
    )
    return payment


async def pay_and_book_class(
    db: AsyncSession,
    *,
    member_id: int,
    class_id: int,
    payment_method: str,
    processed_by: Optional[int] = None,
) -> PaymentData:
    """Charge the class fee and book the class in a single transaction."""
    try:
        await book_class(db, class_id=class_id, member_id=member_id, commit=False)
        gym_class = await db.get(GymClass, class_id)
        payment = await create_payment(
            db,
            member_id=member_id,
            amount=get_settings().class_fee,
            payment_method=payment_method,
            payment_type="CLASS",
            description=f"Class booking: {gym_class.class_name}",
            processed_by=processed_by,
            commit=False,
        )
        await db.commit()
    except (ValueError, SQLAlchemyError):
        await db.rollback()
        raise

    logger.info("Class %s paid and booked by member %s", class_id, member_id)
    return await get_payment_by_id(db, payment.id)


async def get_payment_by_id(db: AsyncSession, payment_id: object) -> Optional[PaymentData]:
    payment_id = coerce_int(payment_id)
    if payment_id is None:
        return None
    rows = await _fetch(db, _payment_query().where(Payment.id == payment_id))
    return rows[0] if rows else None


async def get_payment_by_transaction_id(db: AsyncSession, transaction_id: str) -> Optional[PaymentData]:
    rows = await _fetch(db, _payment_query().where(Payment.transaction_id == transaction_id.strip()))
    return rows[0] if rows else None


async def list_payments(db: AsyncSession, status: Optional[str] = None) -> List[PaymentData]:
    """Newest first."""
    stmt = _payment_query().order_by(Payment.payment_date.desc(), Payment.id.desc())
    if status:
        stmt = stmt.where(Payment.status == status.strip().upper())
    return await _fetch(db, stmt)


async def get_payments_by_member(db: AsyncSession, member_id: int) -> List[PaymentData]:
    return await _fetch(
        db,
        _payment_query()
        .where(Payment.member_id == member_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc()),
    )


async def get_payments_by_date_range(db: AsyncSession, start_date: date, end_date: date) -> List[PaymentData]:
    """Payments dated from start_date through end_date inclusive."""
    if end_date < start_date:
        raise ValidationError(["End date must not be before start date"])
    window_start = datetime.combine(start_date, datetime.min.time())
    window_end = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
    return await _fetch(
        db,
        _payment_query()
        .where(and_(Payment.payment_date >= window_start, Payment.payment_date < window_end))
        .order_by(Payment.payment_date.desc()),
    )


async def search_payments(db: AsyncSession, term: str) -> List[PaymentData]:
    """Match member first/last name, transaction id or invoice number."""
    pattern = f"%{term.strip().lower()}%"
    return await _fetch(
        db,
        _payment_query()
        .where(or_(
            func.lower(User.first_name).like(pattern),
            func.lower(User.last_name).like(pattern),
            func.lower(Payment.transaction_id).like(pattern),
            func.lower(Payment.invoice_number).like(pattern),
        ))
        .order_by(Payment.payment_date.desc()),
    )


async def update_payment_status(db: AsyncSession, payment_id: int, status: str) -> PaymentData:
    """Change status. A MEMBERSHIP/RENEWAL payment that becomes COMPLETED extends the
    membership, once per payment. Refunds go through process_refund, and refunded or
    cancelled payments are final.
    """
    status = _check_choice(status, PAYMENT_STATUSES, "Payment status")
    if status == "REFUNDED":
        raise ValueError("Use process_refund to refund a payment")
    try:
        payment = await db.get(Payment, payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")

        previous = payment.status
        if previous in FINAL_STATUSES and status != previous:
            raise ValueError(f"Payment with status {previous} cannot be changed")
        payment.status = status
        if status == "COMPLETED" and payment.payment_type in EXTENDING_TYPES:
            res = await db.execute(
                select(Member)
                .options(selectinload(Member.plan))
                .where(Member.id == payment.member_id)
                .execution_options(populate_existing=True)
            )
            await _apply_membership_extension(db, payment, res.scalar_one())
        await db.commit()
    except (ValueError, SQLAlchemyError):
        await db.rollback()
        raise

    logger.info("Payment status updated: id=%s %s -> %s", payment_id, previous, status)
    return await get_payment_by_id(db, payment_id)


async def process_refund(
    db: AsyncSession,
    payment_id: int,
    *,
    refund_amount: object,
    reason: Optional[str] = None,
) -> PaymentData:
    """Refund a COMPLETED payment, up to its final amount. The payment becomes REFUNDED."""
    payment = await db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found")

    refund = coerce_decimal(refund_amount)
    if refund is None or refund <= 0:
        raise ValidationError(["Refund amount must be a positive number"])
    refund = money(refund)
    if payment.status != "COMPLETED" or (payment.refund_amount or 0) >= payment.final_amount:
        raise ValueError(f"Payment with status {payment.status} cannot be refunded")
    if refund > payment.final_amount:
        raise ValidationError(["Refund cannot exceed the amount paid"])

    payment.refund_amount = refund
    payment.refund_reason = reason
    payment.refund_date = datetime.now()
    payment.status = "REFUNDED"
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Refund processed: id=%s amount=%s", payment_id, refund)
    return await get_payment_by_id(db, payment_id)


async def cancel_payment(db: AsyncSession, payment_id: int) -> bool:
    payment = await db.get(Payment, payment_id)
    if not payment:
        return False
    if payment.status == "REFUNDED":
        raise ValueError("A refunded payment cannot be cancelled")
    payment.status = "CANCELLED"
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Payment cancelled: id=%s", payment_id)
    return True


async def get_payment_statistics(db: AsyncSession) -> PaymentStats:
    res = await db.execute(
        select(
            Payment.status,
            func.count(Payment.id),
            func.coalesce(func.sum(Payment.final_amount), 0),
            func.coalesce(func.sum(Payment.refund_amount), 0),
        ).group_by(Payment.status)
    )
    stats = PaymentStats()
    for status, count, final_total, refund_total in res.all():
        stats.total_payments += count
        if status == "COMPLETED":
            stats.completed_count = count
            stats.completed_revenue = money(final_total)
        elif status == "PENDING":
            stats.pending_count = count
            stats.pending_revenue = money(final_total)
        elif status == "FAILED":
            stats.failed_count = count
        elif status == "REFUNDED":
            stats.refunded_count = count
            stats.total_refunds = money(refund_total)
    return stats


def _month_filter(month: int, year: int):
    start, end = month_bounds(month, year)
    return and_(
        Payment.payment_date >= datetime.combine(start, datetime.min.time()),
        Payment.payment_date < datetime.combine(end, datetime.min.time()),
    )


async def _count_for_month(db: AsyncSession, month: int, year: int, status: str) -> int:
    return await db.scalar(
        select(func.count(Payment.id)).where(_month_filter(month, year), Payment.status == status)
    ) or 0


async def get_completed_payments_count(db: AsyncSession, month: int, year: int) -> int:
    return await _count_for_month(db, month, year, "COMPLETED")


async def get_failed_payments_count(db: AsyncSession, month: int, year: int) -> int:
    return await _count_for_month(db, month, year, "FAILED")


async def get_refunded_payments_count(db: AsyncSession, month: int, year: int) -> int:
    return await _count_for_month(db, month, year, "REFUNDED")


async def get_monthly_revenue(db: AsyncSession, month: int, year: int) -> Decimal:
    total = await db.scalar(
        select(func.coalesce(func.sum(Payment.final_amount), 0))
        .where(_month_filter(month, year), Payment.status == "COMPLETED")
    )
    return money(total)


async def get_total_refunds_for_month(db: AsyncSession, month: int, year: int) -> Decimal:
    total = await db.scalar(
        select(func.coalesce(func.sum(Payment.refund_amount), 0))
        .where(_month_filter(month, year), Payment.status == "REFUNDED")
    )
    return money(total)


async def get_payment_count_by_method(db: AsyncSession, method: str, month: int, year: int) -> int:
    return await db.scalar(
        select(func.count(Payment.id)).where(
            _month_filter(month, year),
            Payment.status == "COMPLETED",
            Payment.payment_method == method.strip().upper(),
        )
    ) or 0


async def get_pending_payments_count(db: AsyncSession) -> int:
    return await db.scalar(
        select(func.count(Payment.id)).where(Payment.status == "PENDING")
    ) or 0


async def get_monthly_summary(db: AsyncSession, month: int, year: int) -> MonthlyPaymentSummary:
    return MonthlyPaymentSummary(
        month=month,
        year=year,
        completed_count=await get_completed_payments_count(db, month, year),
        failed_count=await get_failed_payments_count(db, month, year),
        refunded_count=await get_refunded_payments_count(db, month, year),
        revenue=await get_monthly_revenue(db, month, year),
        refunds=await get_total_refunds_for_month(db, month, year),
        by_method={
            method: await get_payment_count_by_method(db, method, month, year)
            for method in PAYMENT_METHODS
        },
    )
