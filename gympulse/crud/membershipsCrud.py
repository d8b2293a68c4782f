from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.conversions import coerce_decimal, coerce_int
from gympulse.core.errors import ConflictError, NotFoundError, ValidationError
from gympulse.core.logging_config import get_logger
from gympulse.core.validation import is_not_empty, sanitize
from gympulse.models import MembershipPlan

logger = get_logger("crud.memberships")

DEFAULT_PLANS = (
    ("Monthly", "Full gym access for one month", Decimal("1500.00"), 1),
    ("Quarterly", "Full gym access for three months", Decimal("4000.00"), 3),
    ("Half-Yearly", "Full gym access for six months", Decimal("7500.00"), 6),
    ("Annual", "Full gym access for twelve months", Decimal("14000.00"), 12),
)


@dataclass
class MembershipPlanData:
    id: int
    plan_name: str
    description: Optional[str]
    price: float
    duration_in_months: int
    is_active: bool
    created_at: Optional[datetime]


def _plan_to_data(plan: MembershipPlan) -> MembershipPlanData:
    """Map MembershipPlan model to MembershipPlanData DTO."""
    return MembershipPlanData(
        id=plan.id,
        plan_name=plan.plan_name,
        description=plan.description,
        price=float(plan.price),
        duration_in_months=plan.duration_in_months,
        is_active=plan.is_active,
        created_at=plan.created_at,
    )


def calculate_end_date(start: date, months: int) -> date:
    """Add calendar months; Jan 31 + 1 month clamps to the last day of February."""
    return start + relativedelta(months=months)


def _validate_plan(plan_name: Optional[str], price: object, duration_in_months: object) -> List[str]:
    errors = []
    if not is_not_empty(plan_name):
        errors.append("Plan name is required")
    amount = coerce_decimal(price)
    if amount is None or amount < 0:
        errors.append("Price must be zero or a positive number")
    months = coerce_int(duration_in_months)
    if months is None or months < 1:
        errors.append("Duration must be at least one month")
    return errors


async def get_membership_plans(db: AsyncSession, include_inactive: bool = False) -> List[MembershipPlanData]:
    """Plans ordered by price, active ones only unless asked otherwise."""
    stmt = select(MembershipPlan).order_by(MembershipPlan.price.asc(), MembershipPlan.id.asc())
    if not include_inactive:
        stmt = stmt.where(MembershipPlan.is_active.is_(True))
    result = await db.execute(stmt)
    return [_plan_to_data(plan) for plan in result.scalars().all()]


async def get_plan_model(db: AsyncSession, plan_id: object) -> Optional[MembershipPlan]:
    plan_id = coerce_int(plan_id)
    if plan_id is None:
        return None
    return await db.get(MembershipPlan, plan_id)


async def get_membership_plan_by_id(db: AsyncSession, plan_id: object) -> Optional[MembershipPlanData]:
    plan = await get_plan_model(db, plan_id)
    return _plan_to_data(plan) if plan else None


async def get_default_plan(db: AsyncSession) -> Optional[MembershipPlan]:
    """Plan assigned on self-registration: the oldest active plan."""
    result = await db.execute(
        select(MembershipPlan)
        .where(MembershipPlan.is_active.is_(True))
        .order_by(MembershipPlan.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_membership_plan(
    db: AsyncSession,
    *,
    plan_name: str,
    price: float,
    duration_in_months: int,
    description: Optional[str] = None,
    is_active: bool = True,
) -> MembershipPlanData:
    errors = _validate_plan(plan_name, price, duration_in_months)
    if errors:
        raise ValidationError(errors)

    existing = await db.execute(
        select(MembershipPlan.id).where(MembershipPlan.plan_name == sanitize(plan_name))
    )
    if existing.first():
        raise ConflictError(f"A plan named '{sanitize(plan_name)}' already exists")

    plan = MembershipPlan(
        plan_name=sanitize(plan_name),
        description=description,
        price=coerce_decimal(price),
        duration_in_months=coerce_int(duration_in_months),
        is_active=is_active,
    )
    db.add(plan)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    await db.refresh(plan)

    logger.info("Membership plan created: id=%s name=%s", plan.id, plan.plan_name)
    return _plan_to_data(plan)


async def update_membership_plan(
    db: AsyncSession,
    plan_id: int,
    *,
    plan_name: str,
    price: float,
    duration_in_months: int,
    description: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> MembershipPlanData:
    plan = await get_plan_model(db, plan_id)
    if not plan:
        raise NotFoundError(f"Membership plan {plan_id} not found")

    errors = _validate_plan(plan_name, price, duration_in_months)
    if errors:
        raise ValidationError(errors)

    plan.plan_name = sanitize(plan_name)
    plan.price = coerce_decimal(price)
    plan.duration_in_months = coerce_int(duration_in_months)
    plan.description = description
    if is_active is not None:
        plan.is_active = is_active

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    await db.refresh(plan)

    logger.info("Membership plan updated: id=%s", plan.id)
    return _plan_to_data(plan)


async def deactivate_membership_plan(db: AsyncSession, plan_id: int) -> bool:
    """Hide a plan from new sign-ups; existing members keep it."""
    plan = await get_plan_model(db, plan_id)
    if not plan:
        return False
    plan.is_active = False
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Membership plan deactivated: id=%s", plan_id)
    return True


async def seed_default_plans(db: AsyncSession) -> int:
    """Insert the stock plans when the table is empty. Returns how many were added."""
    existing = await db.execute(select(MembershipPlan.id).limit(1))
    if existing.first():
        return 0

    for name, description, price, months in DEFAULT_PLANS:
        db.add(MembershipPlan(
            plan_name=name,
            description=description,
            price=price,
            duration_in_months=months,
            is_active=True,
        ))
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Seeded %s default membership plans", len(DEFAULT_PLANS))
    return len(DEFAULT_PLANS)
