from datetime import timedelta

import pytest

from gympulse.core.errors import ConflictError, ValidationError
from gympulse.crud.authCrud import REGISTRATION_TRIAL_DAYS, authenticate, register_member
from gympulse.crud.sessionCrud import create_session, revoke_session, verify_session
from gympulse.crud.usersCrud import (
    change_password,
    create_user,
    delete_user,
    email_exists,
    get_user_data,
    list_users,
    update_user,
    username_exists,
)
from gympulse.security.hashing import hash_password, verify_password
from gympulse.security.jwt import (
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
    verify_token,
)

from conftest import PASSWORD


async def _user(db, username="coach_amy", email="amy@example.com", role="ADMIN"):
    return await create_user(
        db,
        username=username,
        password=PASSWORD,
        email=email,
        first_name="Amy",
        last_name="Stone",
        role=role,
    )


def test_password_hashing():
    hashed = hash_password("Secret123", rounds=4)
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)
    assert not verify_password("Secret123", "plaintext")
    assert not verify_password("", hashed)


def test_long_passwords_are_truncated_consistently():
    base = "A1b" + "x" * 80
    hashed = hash_password(base, rounds=4)
    assert verify_password(base[:72] + "different tail", hashed)


def test_jwt_round_trip_and_type_separation():
    claims = {"user_id": "7", "session_id": "session-idabc"}
    access = create_access_token(claims)
    refresh = create_refresh_token(claims)
    assert verify_token(access)["user_id"] == "7"
    assert verify_refresh_token(refresh)["type"] == "refresh"
    # tokens are signed with different keys
    assert verify_token(refresh) is None
    assert verify_token(create_access_token(claims, expires_delta=timedelta(seconds=-5))) is None


async def test_create_user_hashes_password_and_normalizes(db):
    user = await _user(db, email="Amy@Example.com", role="admin")
    assert user.role == "ADMIN"
    assert user.email == "amy@example.com"
    assert user.password != PASSWORD
    assert verify_password(PASSWORD, user.password)


async def test_create_user_rejects_invalid_fields(db):
    with pytest.raises(ValidationError) as exc:
        await create_user(
            db, username="x", password="weak", email="bad", first_name="A", last_name="B",
        )
    assert len(exc.value.errors) == 5


async def test_duplicate_username_and_email_are_case_insensitive(db):
    await _user(db)
    assert await username_exists(db, "COACH_AMY")
    assert await email_exists(db, "AMY@example.com")
    with pytest.raises(ConflictError):
        await _user(db, username="Coach_Amy", email="other@example.com")
    with pytest.raises(ConflictError):
        await _user(db, username="someone_else", email="AMY@EXAMPLE.COM")


async def test_email_exists_can_exclude_the_user_being_edited(db):
    user = await _user(db)
    assert not await email_exists(db, "amy@example.com", exclude_user_id=user.id)


async def test_update_user_keeps_password_when_blank(db):
    user = await _user(db)
    old_hash = user.password
    data = await update_user(
        db, user.id,
        username="coach_amy", email="amy@example.com",
        first_name="Amelia", last_name="Stone", password="",
    )
    assert data.first_name == "Amelia"
    assert user.password == old_hash

    await update_user(
        db, user.id,
        username="coach_amy", email="amy@example.com",
        first_name="Amelia", last_name="Stone", password="Newpass123",
    )
    assert verify_password("Newpass123", user.password)


async def test_change_password_requires_current_password(db):
    user = await _user(db)
    with pytest.raises(ValueError):
        await change_password(db, user.id, current_password="Wrong1234", new_password="Another123")
    with pytest.raises(ValidationError):
        await change_password(db, user.id, current_password=PASSWORD, new_password="short")
    assert await change_password(db, user.id, current_password=PASSWORD, new_password="Another123")
    assert await authenticate(db, "coach_amy", "Another123") is not None


async def test_list_users_filters_by_role(db):
    await _user(db)
    await _user(db, username="member_one", email="m1@example.com", role="MEMBER")
    assert [u.username for u in await list_users(db, role="member")] == ["member_one"]
    assert len(await list_users(db)) == 2


async def test_authenticate(db):
    await _user(db)
    user = await authenticate(db, "coach_amy", PASSWORD)
    assert user is not None and user.role == "ADMIN"
    assert await authenticate(db, "coach_amy", "Wrong1234") is None
    assert await authenticate(db, "nobody", PASSWORD) is None
    assert await authenticate(db, "", "") is None


async def test_register_member_uses_default_plan_and_trial(db, plans, today):
    member = await register_member(
        db,
        username="new_member",
        password=PASSWORD,
        email="new@example.com",
        first_name="New",
        last_name="Member",
    )
    assert member.membership_plan_name == "Monthly"
    assert member.membership_status == "ACTIVE"
    assert member.membership_start_date == today
    assert member.membership_end_date == today + timedelta(days=REGISTRATION_TRIAL_DAYS)


async def test_register_member_is_atomic(db, plans):
    await _user(db, username="taken_name", email="taken@example.com")
    with pytest.raises(ConflictError):
        await register_member(
            db,
            username="taken_name",
            password=PASSWORD,
            email="fresh@example.com",
            first_name="New",
            last_name="Member",
        )
    assert not await email_exists(db, "fresh@example.com")


async def test_delete_user_removes_member_profile(db, make_member):
    member = await make_member()
    assert await delete_user(db, member.user_id)
    assert await get_user_data(db, member.user_id) is None
    assert not await delete_user(db, member.user_id)


async def test_sessions_can_be_revoked(db):
    user = await _user(db)
    await create_session(db, user_id=user.id, session_id="session-id1", refresh_token="token")
    assert await verify_session(db, "session-id1") is not None
    await revoke_session(db, "session-id1")
    assert await verify_session(db, "session-id1") is None
    assert await verify_session(db, "missing") is None
