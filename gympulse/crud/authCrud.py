from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.errors import NotFoundError
from gympulse.core.logging_config import get_logger, log_auth_event
from gympulse.crud.membersCrud import MemberData, create_member_with_user
from gympulse.crud.membershipsCrud import get_default_plan
from gympulse.crud.usersCrud import get_user_by_username
from gympulse.models import User
from gympulse.security.hashing import verify_password

logger = get_logger("auth")

# self-registered members start with a 30 day membership
REGISTRATION_TRIAL_DAYS = 30


async def authenticate(db: AsyncSession, username: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, otherwise None."""
    if not username or not password:
        return None
    user = await get_user_by_username(db, username)
    if not user or not verify_password(password, user.password):
        log_auth_event("login", username=username, success=False)
        return None
    return user


async def register_member(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    email: str,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
) -> MemberData:
    """Self sign-up: a MEMBER user on the default plan with a 30 day membership."""
    plan = await get_default_plan(db)
    if plan is None:
        raise NotFoundError("No active membership plan is available for registration")

    today = date.today()
    member = await create_member_with_user(
        db,
        username=username,
        password=password,
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        membership_plan_id=plan.id,
        membership_start_date=today,
        membership_end_date=today + timedelta(days=REGISTRATION_TRIAL_DAYS),
    )
    log_auth_event("register", username=member.username)
    return member
