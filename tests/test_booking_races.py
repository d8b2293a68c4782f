import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from gympulse.core.errors import ConflictError
from gympulse.crud import bookingsCrud
from gympulse.crud.bookingsCrud import book_class, list_bookings_for_class
from gympulse.crud.classesCrud import get_class_by_id
from gympulse.db.postgresql import Base


@pytest.fixture
async def engine(tmp_path):
    # a file database gives each session its own connection
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gympulse.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def booking_lands_during_check(monkeypatch, session_factory):
    """The next duplicate-booking check lets another session book and commit first,
    then answers as if it had run before that commit."""
    original_check = bookingsCrud.is_class_booked_by_member

    def arrange(class_id, member_id):
        async def check(db, cid, mid):
            monkeypatch.setattr(bookingsCrud, "is_class_booked_by_member", original_check)
            async with session_factory() as other:
                await book_class(other, class_id=class_id, member_id=member_id)
            return False

        monkeypatch.setattr(bookingsCrud, "is_class_booked_by_member", check)

    return arrange


async def test_last_spot_goes_to_one_of_two_racing_bookings(
    db, make_trainer, make_class, make_member, booking_lands_during_check
):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id, capacity=1)
    winner = await make_member()
    loser = await make_member(first_name="Bob")
    booking_lands_during_check(gym_class.id, winner.id)

    with pytest.raises(ConflictError, match="full"):
        await book_class(db, class_id=gym_class.id, member_id=loser.id)

    refreshed = await get_class_by_id(db, gym_class.id)
    assert refreshed.current_bookings == refreshed.max_capacity == 1
    assert refreshed.status == "FULL"
    assert [b.member_id for b in await list_bookings_for_class(db, gym_class.id)] == [winner.id]


async def test_duplicate_committed_after_check_is_rejected(
    db, make_trainer, make_class, make_member, booking_lands_during_check
):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id, capacity=5)
    member = await make_member()
    booking_lands_during_check(gym_class.id, member.id)

    with pytest.raises(ConflictError, match="already booked"):
        await book_class(db, class_id=gym_class.id, member_id=member.id)

    refreshed = await get_class_by_id(db, gym_class.id)
    assert refreshed.current_bookings == 1
    assert refreshed.status == "SCHEDULED"
    assert len(await list_bookings_for_class(db, gym_class.id)) == 1
