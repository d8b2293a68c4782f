from datetime import date, timedelta

import pytest
from dateutil.relativedelta import relativedelta

from gympulse.core.errors import ConflictError, ValidationError
from gympulse.crud.membersCrud import (
    delete_member,
    derive_membership_status,
    display_membership_status,
    extend_membership,
    get_active_members_count,
    get_expiring_memberships,
    get_member_by_id,
    get_member_id_by_user_id,
    get_member_model,
    get_members_by_status,
    get_membership_stats,
    get_new_members_for_month,
    get_total_members_count,
    list_members,
    search_members,
    set_member_suspended,
    update_expired_memberships,
    update_member,
)
from gympulse.crud.usersCrud import get_user_data


def test_derive_membership_status(today):
    assert derive_membership_status(today, today=today) == "ACTIVE"
    assert derive_membership_status(today - timedelta(days=1), today=today) == "EXPIRED"
    assert derive_membership_status(today - timedelta(days=1), "SUSPENDED", today) == "SUSPENDED"


def test_display_status_flags_expiring_soon(today):
    assert display_membership_status(today + timedelta(days=3), "ACTIVE", today) == "EXPIRING_SOON"
    assert display_membership_status(today + timedelta(days=30), "ACTIVE", today) == "ACTIVE"
    assert display_membership_status(today - timedelta(days=1), "ACTIVE", today) == "EXPIRED"


async def test_create_member_defaults_to_plan_duration(make_member, today):
    member = await make_member()
    assert member.membership_plan_name == "Monthly"
    assert member.membership_start_date == today
    assert member.membership_end_date > today
    assert member.membership_status == "ACTIVE"
    assert member.full_name == "Alice Walker"


async def test_member_with_past_end_date_is_expired(make_member, today):
    member = await make_member(
        membership_start_date=today - timedelta(days=60),
        membership_end_date=today - timedelta(days=1),
    )
    assert member.membership_status == "EXPIRED"
    assert member.days_remaining == 0


async def test_create_member_rejects_reversed_dates(db, make_member, today):
    with pytest.raises(ValidationError):
        await make_member(
            membership_start_date=today,
            membership_end_date=today - timedelta(days=1),
        )
    # the user row was rolled back with the member
    assert (await list_members(db))["total"] == 0


async def test_duplicate_username_fails_whole_registration(make_member):
    await make_member(username="same_name")
    with pytest.raises(ConflictError):
        await make_member(username="same_name")


async def test_list_and_search_members(db, make_member):
    await make_member(first_name="Zoe", last_name="Adams", phone="5551234567")
    await make_member(first_name="Bob", last_name="Brown")
    await make_member(first_name="Bob", last_name="Adams")

    result = await list_members(db)
    assert result["total"] == 3
    assert [m.full_name for m in result["items"]] == ["Bob Adams", "Bob Brown", "Zoe Adams"]

    assert {m.full_name for m in await search_members(db, "adams")} == {"Zoe Adams", "Bob Adams"}
    assert [m.full_name for m in await search_members(db, "555123")] == ["Zoe Adams"]

    page = await list_members(db, limit=1, offset=1)
    assert page["total"] == 3
    assert [m.full_name for m in page["items"]] == ["Bob Brown"]


async def test_get_member_id_by_user_id(db, make_member):
    member = await make_member()
    assert await get_member_id_by_user_id(db, member.user_id) == member.id
    assert await get_member_id_by_user_id(db, 9999) is None


async def test_update_member_keeps_suspension(db, make_member, today):
    member = await make_member()
    await set_member_suspended(db, member.id, True)
    updated = await update_member(db, member.id, emergency_contact="Mum 5550001111")
    assert updated.membership_status == "SUSPENDED"
    assert updated.emergency_contact == "Mum 5550001111"

    reinstated = await set_member_suspended(db, member.id, False)
    assert reinstated.membership_status == "ACTIVE"


async def test_update_member_rederives_status_from_end_date(db, make_member, today):
    member = await make_member()
    updated = await update_member(
        db, member.id,
        membership_start_date=today - timedelta(days=40),
        membership_end_date=today - timedelta(days=10),
    )
    assert updated.membership_status == "EXPIRED"


async def test_expiring_and_expired_memberships(db, make_member, today):
    soon = await make_member(membership_end_date=today + timedelta(days=3))
    await make_member(membership_end_date=today + timedelta(days=60))
    lapsed = await make_member(
        membership_start_date=today - timedelta(days=40),
        membership_end_date=today + timedelta(days=1),
    )
    # simulate time passing for the third member
    model = await get_member_model(db, lapsed.id)
    model.membership_end_date = today - timedelta(days=2)
    await db.commit()

    expiring = await get_expiring_memberships(db)
    assert [m.id for m in expiring] == [soon.id]
    assert expiring[0].display_status == "EXPIRING_SOON"

    assert await update_expired_memberships(db) == 1
    assert [m.id for m in await get_members_by_status(db, "EXPIRED")] == [lapsed.id]


async def test_extend_membership_from_future_end_or_today(db, make_member, today):
    member = await make_member(membership_end_date=today + timedelta(days=10))
    model = await get_member_model(db, member.id)
    new_end = await extend_membership(db, model, 1, today=today)
    assert new_end == today + timedelta(days=10) + relativedelta(months=1)

    expired = await make_member(
        membership_start_date=today - timedelta(days=90),
        membership_end_date=today - timedelta(days=30),
    )
    model = await get_member_model(db, expired.id)
    new_end = await extend_membership(db, model, 1, today=date(2026, 1, 15))
    assert new_end == date(2026, 2, 15)
    assert model.membership_status == "ACTIVE"


async def test_membership_statistics(db, make_member, today):
    await make_member()
    await make_member(
        membership_start_date=today - timedelta(days=60),
        membership_end_date=today - timedelta(days=1),
    )
    suspended = await make_member()
    await set_member_suspended(db, suspended.id, True)

    stats = await get_membership_stats(db)
    assert (stats.total, stats.active, stats.expired, stats.suspended) == (3, 1, 1, 1)
    assert await get_total_members_count(db) == 3
    assert await get_active_members_count(db) == 1
    assert await get_new_members_for_month(db, today.month, today.year) == 2


async def test_delete_member_removes_user_link_only(db, make_member):
    member = await make_member()
    assert await delete_member(db, member.id)
    assert await get_member_by_id(db, member.id) is None
    # the login account survives a profile delete
    assert await get_user_data(db, member.user_id) is not None
    assert not await delete_member(db, member.id)
