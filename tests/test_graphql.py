from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request
from starlette.responses import Response

from conftest import PASSWORD
from gympulse.crud.paymentsCrud import create_payment
from gympulse.crud.sessionCrud import verify_session
from gympulse.crud.usersCrud import create_user
from gympulse.db.postgresql import get_db
from gympulse.graphql.bookings import mutations as booking_mutations
from gympulse.graphql.context import Context, build_context
from gympulse.graphql.payments import mutations as payment_mutations
from gympulse.graphql.schema import schema
from gympulse.main import app
from gympulse.models import User
from gympulse.security.jwt import verify_token


@pytest.fixture
async def admin(db):
    return await create_user(
        db, username="boss", password=PASSWORD, email="boss@example.com",
        first_name="Grace", last_name="Hopper", role="ADMIN",
    )


async def run(db, query, user=None, **variables):
    return await schema.execute(query, variable_values=variables, context_value=Context(db=db, user=user))


def make_request(headers):
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "POST", "path": "/graphql", "headers": raw})


async def test_hello(db):
    result = await run(db, "{ hello }")
    assert result.errors is None
    assert result.data == {"hello": "Hello from GymPulse!"}


async def test_admin_queries_need_an_admin(db, make_member):
    member = await make_member()
    member_user = await db.get(User, member.user_id)

    anonymous = await run(db, "{ membershipStats { total } }")
    assert anonymous.errors[0].message == "Staff access required."

    as_member = await run(db, "{ users { id } }", user=member_user)
    assert as_member.errors[0].message == "Administrator access required."


async def test_create_member_mutation(db, admin, plans):
    mutation = """
        mutation Create($input: CreateMemberInput!) {
            createMember(input: $input) {
                success message errors
                member { username fullName membershipPlanName membershipStatus }
            }
        }
    """
    ok = await run(db, mutation, user=admin, input={
        "username": "newbie", "password": PASSWORD, "email": "newbie@example.com",
        "firstName": "Nina", "lastName": "Simone", "membershipPlanId": plans["Annual"].id,
    })
    payload = ok.data["createMember"]
    assert payload["success"], payload["errors"]
    assert payload["member"] == {
        "username": "newbie",
        "fullName": "Nina Simone",
        "membershipPlanName": "Annual",
        "membershipStatus": "ACTIVE",
    }

    duplicate = await run(db, mutation, user=admin, input={
        "username": "newbie", "password": PASSWORD, "email": "other@example.com",
        "firstName": "Nina", "lastName": "Simone", "membershipPlanId": plans["Annual"].id,
    })
    assert duplicate.data["createMember"]["success"] is False
    assert duplicate.data["createMember"]["member"] is None


async def test_member_books_for_themselves(db, make_member, make_trainer, make_class):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id, capacity=2)
    alice = await make_member()
    bob = await make_member(first_name="Bob")
    alice_user = await db.get(User, alice.user_id)

    mutation = """
        mutation Book($classId: Int!, $memberId: Int) {
            bookClass(classId: $classId, memberId: $memberId) {
                success message
                booking { memberId }
                gymClass { currentBookings status }
            }
        }
    """
    booked = await run(db, mutation, user=alice_user, classId=gym_class.id, memberId=bob.id)
    payload = booked.data["bookClass"]
    assert payload["success"]
    assert payload["booking"]["memberId"] == alice.id
    assert payload["gymClass"] == {"currentBookings": 1, "status": "SCHEDULED"}

    again = await run(db, mutation, user=alice_user, classId=gym_class.id)
    assert again.data["bookClass"]["success"] is False
    assert "already booked" in again.data["bookClass"]["message"]


async def test_class_scheduling_conflict_is_reported(db, admin, make_trainer, make_class):
    trainer = await make_trainer()
    existing = await make_class(trainer.id)
    mutation = """
        mutation Create($input: ClassInput!) {
            createClass(input: $input) { success errors gymClass { id } }
        }
    """
    start = existing.start_time + timedelta(minutes=30)
    result = await run(db, mutation, user=admin, input={
        "className": "Spin",
        "trainerId": trainer.id,
        "startTime": start.isoformat(),
        "endTime": (start + timedelta(hours=1)).isoformat(),
        "maxCapacity": 12,
    })
    assert result.errors is None
    assert result.data["createClass"]["success"] is False
    assert result.data["createClass"]["gymClass"] is None


async def test_login_creates_session(db, make_member):
    member = await make_member()
    mutation = """
        mutation Login($data: LoginInput!) {
            login(data: $data) { success accessToken role memberId user { username } }
        }
    """
    failed = await run(db, mutation, data={"identifier": "member1", "password": "wrong"})
    assert failed.data["login"]["success"] is False

    result = await run(db, mutation, data={"identifier": "member1", "password": PASSWORD})
    payload = result.data["login"]
    assert payload["success"]
    assert payload["role"] == "MEMBER"
    assert payload["memberId"] == member.id

    claims = verify_token(payload["accessToken"])
    assert claims["username"] == "member1"
    assert await verify_session(db, claims["session_id"]) is not None


async def test_build_context_reads_bearer_token(db, make_member):
    await make_member()
    login = await run(
        db,
        'mutation { login(data: {identifier: "member1", password: "%s"}) { accessToken } }' % PASSWORD,
    )
    token = login.data["login"]["accessToken"]

    context = await build_context(make_request({"Authorization": f"Bearer {token}"}), Response(), db=db)
    assert context.user.username == "member1"
    assert context.session_id == verify_token(token)["session_id"]

    anonymous = await build_context(make_request({}), Response(), db=db)
    assert anonymous.user is None


@pytest.fixture
async def client(db):
    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


async def test_login_over_http_sets_refresh_cookie(client, make_member):
    await make_member()
    response = await client.post("/graphql", json={
        "query": 'mutation { login(data: {identifier: "member1", password: "%s"}) '
                 '{ success accessToken } }' % PASSWORD,
    })
    assert response.status_code == 200
    assert response.json()["data"]["login"]["success"]
    assert response.headers["x-access-token"] == response.json()["data"]["login"]["accessToken"]
    assert "refresh_token" in response.cookies

    refresh_token = response.cookies["refresh_token"]
    client.cookies.clear()
    me = await client.post(
        "/graphql",
        json={"query": "{ currentUser { username } }"},
        headers={"cookie": f"refresh_token={refresh_token}"},
    )
    assert me.json()["data"]["currentUser"]["username"] == "member1"
    assert "x-access-token" in me.headers


async def test_root_health(client):
    response = await client.get("/")
    assert response.json() == {"status": "ok", "service": "gympulse"}


UPDATE_STATUS = """
    mutation Update($paymentId: Int!, $status: String!) {
        updatePaymentStatus(paymentId: $paymentId, status: $status) { success message payment { status } }
    }
"""


async def test_status_mutation_points_refunds_elsewhere(db, admin, make_member):
    member = await make_member()
    payment = await create_payment(db, member_id=member.id, amount=300, payment_method="CASH",
                                   payment_type="OTHER")
    result = await run(db, UPDATE_STATUS, user=admin, paymentId=payment.id, status="REFUNDED")
    payload = result.data["updatePaymentStatus"]
    assert payload["success"] is False
    assert "process_refund" in payload["message"]


async def test_unexpected_errors_are_reported(db, admin, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(payment_mutations, "update_payment_status", broken)
    monkeypatch.setattr(payment_mutations, "process_refund", broken)
    monkeypatch.setattr(booking_mutations, "mark_attendance", broken)

    status = await run(db, UPDATE_STATUS, user=admin, paymentId=1, status="PENDING")
    assert status.data["updatePaymentStatus"] == {
        "success": False, "message": "Unexpected error: database went away", "payment": None,
    }

    refund = await run(
        db,
        "mutation { processRefund(input: {paymentId: 1, refundAmount: 10}) { success message } }",
        user=admin,
    )
    assert refund.data["processRefund"]["message"] == "Unexpected error: database went away"

    attendance = await run(
        db, "mutation { markAttendance(bookingId: 1, attended: true) { success message } }", user=admin,
    )
    assert attendance.data["markAttendance"] == {
        "success": False, "message": "Unexpected error: database went away",
    }
