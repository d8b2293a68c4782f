from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gympulse.core.config import get_settings
from gympulse.core.conversions import coerce_int
from gympulse.core.errors import ConflictError, NotFoundError, ValidationError
from gympulse.core.logging_config import get_logger
from gympulse.crud.bookingsCrud import release_member_bookings
from gympulse.crud.membershipsCrud import calculate_end_date, get_plan_model
from gympulse.crud.usersCrud import create_user
from gympulse.models import MEMBERSHIP_STATUSES, Member, User

logger = get_logger("crud.members")


@dataclass
class MemberData:
    id: int
    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    emergency_contact: Optional[str]
    medical_conditions: Optional[str]
    membership_plan_id: Optional[int]
    membership_plan_name: Optional[str]
    membership_plan_price: Optional[float]
    membership_start_date: date
    membership_end_date: date
    membership_status: str
    days_remaining: int
    display_status: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class MembershipStats:
    total: int = 0
    active: int = 0
    expired: int = 0
    suspended: int = 0


def derive_membership_status(end_date: date, current_status: Optional[str] = None, today: Optional[date] = None) -> str:
    """Persisted status from the end date. SUSPENDED is an admin decision and is kept."""
    if current_status == "SUSPENDED":
        return "SUSPENDED"
    today = today or date.today()
    return "EXPIRED" if end_date < today else "ACTIVE"


def display_membership_status(end_date: date, current_status: str, today: Optional[date] = None) -> str:
    """Like the persisted status, with EXPIRING_SOON for active memberships close to their end."""
    if current_status == "SUSPENDED":
        return "SUSPENDED"
    today = today or date.today()
    if end_date < today:
        return "EXPIRED"
    if end_date <= today + timedelta(days=get_settings().expiring_soon_days):
        return "EXPIRING_SOON"
    return "ACTIVE"


def _member_to_data(member: Member, today: Optional[date] = None) -> MemberData:
    today = today or date.today()
    user = member.user
    plan = member.plan
    end_date = member.membership_end_date
    return MemberData(
        id=member.id,
        user_id=member.user_id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        emergency_contact=member.emergency_contact,
        medical_conditions=member.medical_conditions,
        membership_plan_id=member.membership_plan_id,
        membership_plan_name=plan.plan_name if plan else None,
        membership_plan_price=float(plan.price) if plan else None,
        membership_start_date=member.membership_start_date,
        membership_end_date=end_date,
        membership_status=member.membership_status,
        days_remaining=max((end_date - today).days, 0),
        display_status=display_membership_status(end_date, member.membership_status, today),
    )


def _member_query():
    return (
        select(Member)
        .join(User, User.id == Member.user_id)
        .options(selectinload(Member.user), selectinload(Member.plan))
        .execution_options(populate_existing=True)
    )


def _normalize_status(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    normalized = status.strip().upper()
    if normalized not in MEMBERSHIP_STATUSES:
        raise ValidationError([f"Membership status must be one of {', '.join(MEMBERSHIP_STATUSES)}"])
    return normalized


async def create_member(
    db: AsyncSession,
    *,
    user_id: int,
    membership_plan_id: Optional[int] = None,
    membership_start_date: Optional[date] = None,
    membership_end_date: Optional[date] = None,
    emergency_contact: Optional[str] = None,
    medical_conditions: Optional[str] = None,
    membership_status: Optional[str] = None,
    commit: bool = True,
) -> Member:
    """Attach a member profile to an existing user.

    Without an explicit end date the membership runs for the plan's duration
    from the start date.
    """
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    existing = await db.execute(select(Member.id).where(Member.user_id == user_id))
    if existing.first():
        raise ConflictError("This user already has a member profile")

    plan = None
    if membership_plan_id is not None:
        plan = await get_plan_model(db, membership_plan_id)
        if not plan:
            raise NotFoundError(f"Membership plan {membership_plan_id} not found")

    start = membership_start_date or date.today()
    if membership_end_date is None:
        if plan is None:
            raise ValidationError(["Either a membership plan or an end date is required"])
        membership_end_date = calculate_end_date(start, plan.duration_in_months)
    if membership_end_date < start:
        raise ValidationError(["Membership end date cannot be before the start date"])

    member = Member(
        user_id=user_id,
        membership_plan_id=plan.id if plan else None,
        membership_start_date=start,
        membership_end_date=membership_end_date,
        membership_status=derive_membership_status(
            membership_end_date, _normalize_status(membership_status)
        ),
        emergency_contact=emergency_contact,
        medical_conditions=medical_conditions,
    )
    db.add(member)

    if commit:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise
        await db.refresh(member)
    else:
        await db.flush()

    logger.info("Member created: id=%s user=%s", member.id, user_id)
    return member


async def create_member_with_user(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    email: str,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
    membership_plan_id: Optional[int] = None,
    membership_start_date: Optional[date] = None,
    membership_end_date: Optional[date] = None,
    emergency_contact: Optional[str] = None,
    medical_conditions: Optional[str] = None,
) -> MemberData:
    """Create the MEMBER user and its member profile in one transaction."""
    try:
        user = await create_user(
            db,
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role="MEMBER",
            commit=False,
        )
        member = await create_member(
            db,
            user_id=user.id,
            membership_plan_id=membership_plan_id,
            membership_start_date=membership_start_date,
            membership_end_date=membership_end_date,
            emergency_contact=emergency_contact,
            medical_conditions=medical_conditions,
            commit=False,
        )
        await db.commit()
    except (ValueError, SQLAlchemyError):
        await db.rollback()
        raise

    return await get_member_by_id(db, member.id)


async def get_member_model(db: AsyncSession, member_id: object) -> Optional[Member]:
    member_id = coerce_int(member_id)
    if member_id is None:
        return None
    res = await db.execute(_member_query().where(Member.id == member_id))
    return res.scalar_one_or_none()


async def get_member_by_id(db: AsyncSession, member_id: object) -> Optional[MemberData]:
    member = await get_member_model(db, member_id)
    return _member_to_data(member) if member else None


async def get_member_id_by_user_id(db: AsyncSession, user_id: int) -> Optional[int]:
    res = await db.execute(select(Member.id).where(Member.user_id == user_id))
    return res.scalar_one_or_none()


async def list_members(
    db: AsyncSession,
    *,
    limit: int = 100,
    offset: int = 0,
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    """Members ordered by name, with optional search and status filters."""
    filters = []
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        filters.append(or_(
            func.lower(User.first_name).like(pattern),
            func.lower(User.last_name).like(pattern),
            func.lower(User.email).like(pattern),
            User.phone.like(f"%{search.strip()}%"),
        ))
    if status:
        filters.append(Member.membership_status == _normalize_status(status))

    total = await db.scalar(
        select(func.count(Member.id)).join(User, User.id == Member.user_id).where(*filters)
    )
    res = await db.execute(
        _member_query()
        .where(*filters)
        .order_by(User.first_name.asc(), User.last_name.asc(), Member.id.asc())
        .limit(limit)
        .offset(offset)
    )
    today = date.today()
    return {
        "items": [_member_to_data(m, today) for m in res.scalars().all()],
        "total": total or 0,
    }


async def search_members(db: AsyncSession, term: str) -> List[MemberData]:
    result = await list_members(db, search=term, limit=1000)
    return result["items"]


async def get_members_by_status(db: AsyncSession, status: str) -> List[MemberData]:
    result = await list_members(db, status=status, limit=1000)
    return result["items"]


async def get_expiring_memberships(db: AsyncSession, days_ahead: Optional[int] = None) -> List[MemberData]:
    """ACTIVE members whose end date falls between today and today + days_ahead."""
    if days_ahead is None:
        days_ahead = get_settings().expiring_soon_days
    today = date.today()
    res = await db.execute(
        _member_query()
        .where(and_(
            Member.membership_status == "ACTIVE",
            Member.membership_end_date >= today,
            Member.membership_end_date <= today + timedelta(days=days_ahead),
        ))
        .order_by(Member.membership_end_date.asc())
    )
    members = [_member_to_data(m, today) for m in res.scalars().all()]
    logger.info("Found %s expiring memberships", len(members))
    return members


async def update_member(
    db: AsyncSession,
    member_id: int,
    *,
    emergency_contact: Optional[str] = None,
    medical_conditions: Optional[str] = None,
    membership_plan_id: Optional[int] = None,
    membership_start_date: Optional[date] = None,
    membership_end_date: Optional[date] = None,
    membership_status: Optional[str] = None,
) -> MemberData:
    member = await get_member_model(db, member_id)
    if not member:
        raise NotFoundError(f"Member {member_id} not found")

    if membership_plan_id is not None and membership_plan_id != member.membership_plan_id:
        plan = await get_plan_model(db, membership_plan_id)
        if not plan:
            raise NotFoundError(f"Membership plan {membership_plan_id} not found")
        member.membership_plan_id = plan.id

    start = membership_start_date or member.membership_start_date
    end = membership_end_date or member.membership_end_date
    if end < start:
        raise ValidationError(["Membership end date cannot be before the start date"])

    requested = _normalize_status(membership_status)
    if requested is None and member.membership_status == "SUSPENDED":
        requested = "SUSPENDED"

    member.emergency_contact = emergency_contact
    member.medical_conditions = medical_conditions
    member.membership_start_date = start
    member.membership_end_date = end
    member.membership_status = derive_membership_status(end, requested)

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info("Member updated: id=%s status=%s", member.id, member.membership_status)
    return await get_member_by_id(db, member.id)


async def set_member_suspended(db: AsyncSession, member_id: int, suspended: bool) -> MemberData:
    member = await get_member_model(db, member_id)
    if not member:
        raise NotFoundError(f"Member {member_id} not found")
    member.membership_status = "SUSPENDED" if suspended else derive_membership_status(member.membership_end_date)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Member %s status set to %s", member_id, member.membership_status)
    return await get_member_by_id(db, member_id)


async def delete_member(db: AsyncSession, member_id: int) -> bool:
    """Hard delete. Bookings are released and payments removed with the member."""
    member = await db.get(Member, member_id)
    if not member:
        return False
    try:
        await release_member_bookings(db, member_id)
        res = await db.execute(
            select(Member)
            .options(selectinload(Member.bookings), selectinload(Member.payments))
            .where(Member.id == member_id)
            .execution_options(populate_existing=True)
        )
        await db.delete(res.scalar_one())
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    logger.info("Member deleted: id=%s", member_id)
    return True


async def extend_membership(db: AsyncSession, member: Member, months: int, today: Optional[date] = None) -> date:
    """Push the end date by `months`, from the current end if still in the future,
    otherwise from today, and mark the membership ACTIVE. Does not commit."""
    today = today or date.today()
    base = member.membership_end_date if member.membership_end_date > today else today
    member.membership_end_date = base + relativedelta(months=months)
    member.membership_status = "ACTIVE"
    await db.flush()
    logger.info("Membership extended: member=%s new_end=%s", member.id, member.membership_end_date)
    return member.membership_end_date


async def update_expired_memberships(db: AsyncSession) -> int:
    """ACTIVE members past their end date become EXPIRED. Returns rows changed."""
    result = await db.execute(
        update(Member)
        .where(and_(
            Member.membership_status == "ACTIVE",
            Member.membership_end_date < date.today(),
        ))
        .values(membership_status="EXPIRED")
        .execution_options(synchronize_session=False)
    )
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
    if result.rowcount:
        logger.info("Marked %s memberships as expired", result.rowcount)
    return result.rowcount or 0


async def get_membership_stats(db: AsyncSession) -> MembershipStats:
    res = await db.execute(
        select(
            func.count(Member.id),
            func.sum(case((Member.membership_status == "ACTIVE", 1), else_=0)),
            func.sum(case((Member.membership_status == "EXPIRED", 1), else_=0)),
            func.sum(case((Member.membership_status == "SUSPENDED", 1), else_=0)),
        )
    )
    total, active, expired, suspended = res.one()
    return MembershipStats(
        total=total or 0,
        active=active or 0,
        expired=expired or 0,
        suspended=suspended or 0,
    )


def month_bounds(month: int, year: int) -> tuple:
    """[first day of month, first day of next month)."""
    start = date(year, month, 1)
    return start, start + relativedelta(months=1)


async def get_new_members_for_month(db: AsyncSession, month: int, year: int) -> int:
    start, end = month_bounds(month, year)
    count = await db.scalar(
        select(func.count(Member.id)).where(and_(
            Member.membership_start_date >= start,
            Member.membership_start_date < end,
        ))
    )
    return count or 0


async def get_total_members_count(db: AsyncSession) -> int:
    return await db.scalar(select(func.count(Member.id))) or 0


async def get_active_members_count(db: AsyncSession) -> int:
    return await db.scalar(
        select(func.count(Member.id)).where(Member.membership_status == "ACTIVE")
    ) or 0
