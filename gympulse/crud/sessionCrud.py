from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.models.sessionModel import Session


async def create_session(
    db: AsyncSession,
    *,
    user_id: int,
    session_id: str,
    refresh_token: str,
    expires_at: Optional[datetime] = None,
    device_name: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Session:
    """Creates a new session for the given user."""
    session_row = Session(
        user_id=user_id,
        session=session_id,
        refresh_token=refresh_token,
        expires_at=expires_at,
        device_name=device_name,
        ip_address=ip_address,
        user_agent=user_agent,
        last_active_at=datetime.now(),
    )

    db.add(session_row)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    await db.refresh(session_row)
    return session_row


async def verify_session(db: AsyncSession, session_id: str) -> Optional[Session]:
    """Return the session if it exists and has not been revoked."""
    res = await db.execute(select(Session).where(Session.session == session_id))
    session_row = res.scalar_one_or_none()
    if session_row is None or session_row.revoked_at is not None:
        return None
    return session_row


async def update_last_active_at(db: AsyncSession, session_id: str) -> None:
    stmt = update(Session).where(Session.session == session_id).values(last_active_at=datetime.now())
    try:
        await db.execute(stmt)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise


async def revoke_session(db: AsyncSession, session_id: str) -> None:
    """Marks the session as revoked."""
    try:
        await db.execute(
            update(Session)
            .where(Session.session == session_id)
            .values(revoked_at=datetime.now())
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise
