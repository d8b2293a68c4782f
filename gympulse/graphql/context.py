from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext

from gympulse.core.logging_config import get_logger, log_security_event
from gympulse.crud.sessionCrud import update_last_active_at, verify_session
from gympulse.crud.usersCrud import get_user_by_id
from gympulse.db.postgresql import get_db
from gympulse.models import User
from gympulse.security.jwt import create_access_token, verify_refresh_token, verify_token

logger = get_logger("graphql.context")


@dataclass
class Context(BaseContext):
    db: AsyncSession
    request: Optional[Request] = None
    response: Optional[Response] = None
    user: Optional[User] = None
    session_id: Optional[str] = None


async def _user_from_refresh_cookie(db: AsyncSession, refresh_token: str, response: Response):
    """Issue a fresh access token from a live refresh session."""
    payload = verify_refresh_token(refresh_token)
    if payload is None:
        return None, None

    session_id = str(payload.get("session_id"))
    if await verify_session(db, session_id) is None:
        log_security_event("refresh_rejected", "refresh token presented for a revoked or unknown session")
        return None, None

    user = await get_user_by_id(db, payload.get("user_id"))
    if user is None:
        return None, None

    new_access_token = create_access_token(
        {"user_id": str(user.id), "username": user.username, "role": user.role, "session_id": session_id}
    )
    await update_last_active_at(db, session_id)
    logger.debug("Access token refreshed for user %s", user.id)
    response.headers["x-access-token"] = new_access_token
    return user, session_id


async def build_context(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Context:
    access_token = request.headers.get("x-access-token")
    if not access_token:
        authorization = request.headers.get("authorization", "")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            access_token = token
    refresh_token = request.cookies.get("refresh_token")

    user = None
    session_id = None

    if access_token:
        payload = verify_token(access_token)
        if payload:
            session_id = payload.get("session_id")
            if session_id and await verify_session(db, str(session_id)) is None:
                session_id = None
            else:
                user = await get_user_by_id(db, payload.get("user_id"))

    if user is None and refresh_token:
        user, session_id = await _user_from_refresh_cookie(db, refresh_token, response)

    return Context(db=db, request=request, response=response, user=user, session_id=session_id)
