import datetime
import uuid

import strawberry
from fastapi import Request, Response
from user_agents import parse

from gympulse.core.logging_config import get_logger, log_auth_event
from gympulse.crud.authCrud import authenticate, register_member
from gympulse.crud.membersCrud import get_member_id_by_user_id
from gympulse.crud.sessionCrud import create_session, revoke_session
from gympulse.crud.trainersCrud import get_trainer_by_user_id
from gympulse.crud.usersCrud import change_password
from gympulse.graphql.auth.permissions import IsAuthenticated
from gympulse.graphql.auth.types import (
    AuthMessage,
    ChangePasswordInput,
    LoginInput,
    RegisterInput,
    TokenResponse,
)
from gympulse.graphql.common import error_messages
from gympulse.graphql.users.types import UserType
from gympulse.security.jwt import (
    create_access_token,
    create_refresh_token,
    get_cookie_samesite_setting,
    get_cookie_secure_setting,
    get_refresh_cookie_max_age_seconds,
    verify_refresh_token,
)

logger = get_logger("graphql.auth")


def _device_info(request: Request):
    if request is None:
        return None, None, None
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None
    device_name = None
    if user_agent:
        ua = parse(user_agent)
        device_name = f"{ua.device.family} - {ua.os.family} {ua.os.version_string}".strip()
    return device_name, ip_address, user_agent


@strawberry.type
class AuthMutation:
    @strawberry.mutation
    async def login(self, data: LoginInput, info: strawberry.Info) -> TokenResponse:
        db = info.context.db
        request: Request = info.context.request
        response: Response = info.context.response

        user = await authenticate(db, data.identifier, data.password)
        if not user:
            log_auth_event("login", username=data.identifier, success=False)
            return TokenResponse(success=False, message="Invalid username or password")

        device_name, ip_address, user_agent = _device_info(request)

        session_id = f"session-id{uuid.uuid4().hex}"
        claims = {"user_id": str(user.id), "username": user.username, "role": user.role, "session_id": session_id}
        refresh_token = create_refresh_token(claims)
        access_token = create_access_token(claims)

        payload_refresh = verify_refresh_token(refresh_token)
        expires_at = datetime.datetime.fromtimestamp(payload_refresh.get("exp"))

        await create_session(
            db,
            user_id=user.id,
            session_id=session_id,
            refresh_token=refresh_token,
            expires_at=expires_at,
            device_name=device_name,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        if response is not None:
            response.set_cookie(
                key="refresh_token",
                value=refresh_token,
                httponly=True,
                secure=get_cookie_secure_setting(),
                samesite=get_cookie_samesite_setting(),
                max_age=get_refresh_cookie_max_age_seconds(),
            )
            response.headers["x-access-token"] = access_token

        member_id = await get_member_id_by_user_id(db, user.id) if user.role == "MEMBER" else None
        trainer = await get_trainer_by_user_id(db, user.id) if user.role == "TRAINER" else None

        log_auth_event("login", username=user.username, session_id=session_id)
        return TokenResponse(
            success=True,
            message="Login successful",
            access_token=access_token,
            role=user.role,
            user=UserType.from_data(user),
            member_id=member_id,
            trainer_id=trainer.id if trainer else None,
        )

    @strawberry.mutation(permission_classes=[IsAuthenticated])
    async def logout(self, info: strawberry.Info) -> AuthMessage:
        session_id = info.context.session_id
        if session_id:
            await revoke_session(info.context.db, session_id)
        if info.context.response is not None:
            info.context.response.delete_cookie("refresh_token")
        log_auth_event("logout", username=info.context.user.username, session_id=session_id)
        return AuthMessage(success=True, message="Logged out")

    @strawberry.mutation
    async def register(self, data: RegisterInput, info: strawberry.Info) -> AuthMessage:
        db = info.context.db
        try:
            await register_member(
                db,
                username=data.username,
                password=data.password,
                email=data.email,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
            )
            return AuthMessage(success=True, message="Registration successful. You can now log in.")
        except ValueError as e:
            await db.rollback()
            return AuthMessage(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error during registration")
            return AuthMessage(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAuthenticated])
    async def change_password(self, data: ChangePasswordInput, info: strawberry.Info) -> AuthMessage:
        db = info.context.db
        try:
            await change_password(
                db,
                info.context.user.id,
                current_password=data.current_password,
                new_password=data.new_password,
            )
            return AuthMessage(success=True, message="Password updated")
        except ValueError as e:
            await db.rollback()
            return AuthMessage(success=False, message=str(e), errors=error_messages(e))
