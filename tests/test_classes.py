from datetime import datetime, timedelta

import pytest

from gympulse.core.errors import ConflictError, NotFoundError, ValidationError
from gympulse.crud.bookingsCrud import book_class
from gympulse.crud.classesCrud import (
    cancel_class,
    delete_class,
    get_available_classes_for_member,
    get_class_by_id,
    get_class_stats,
    get_classes_booked_by_member,
    get_classes_by_date,
    get_classes_by_date_range,
    get_most_popular_classes,
    get_upcoming_classes,
    has_trainer_conflict,
    list_classes,
    search_classes,
    update_class,
    update_class_statuses,
)


def _tomorrow_at(hour, minute=0):
    return (datetime.now() + timedelta(days=1)).replace(hour=hour, minute=minute, second=0, microsecond=0)


async def test_create_class_derived_fields(make_trainer, make_class):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id, start=_tomorrow_at(9), minutes=90, capacity=20)
    assert gym_class.status == "SCHEDULED"
    assert gym_class.trainer_name == "Tom Hardy"
    assert gym_class.available_spots == 20
    assert gym_class.occupancy_rate == 0.0
    assert gym_class.duration_text == "1h 30m"
    assert gym_class.booking_summary == "0/20 booked"


async def test_create_class_validation(make_trainer, make_class):
    trainer = await make_trainer()
    with pytest.raises(ValidationError):
        await make_class(trainer.id, capacity=0)
    with pytest.raises(ValidationError):
        await make_class(trainer.id, minutes=-30)
    with pytest.raises(NotFoundError):
        await make_class(9999)


async def test_trainer_cannot_teach_overlapping_classes(db, make_trainer, make_class):
    trainer = await make_trainer()
    other = await make_trainer()
    await make_class(trainer.id, start=_tomorrow_at(9), minutes=60)

    with pytest.raises(ConflictError):
        await make_class(trainer.id, start=_tomorrow_at(9, 30), minutes=60)

    # back-to-back is fine, and so is another trainer at the same time
    await make_class(trainer.id, start=_tomorrow_at(10), minutes=60, class_name="Spin")
    await make_class(other.id, start=_tomorrow_at(9, 30), minutes=60, class_name="Boxing")

    assert await has_trainer_conflict(db, trainer.id, _tomorrow_at(9, 15), _tomorrow_at(9, 45))
    assert not await has_trainer_conflict(db, trainer.id, _tomorrow_at(11), _tomorrow_at(12))


async def test_cancelled_classes_do_not_block_the_slot(db, make_trainer, make_class):
    trainer = await make_trainer()
    first = await make_class(trainer.id, start=_tomorrow_at(9))
    await cancel_class(db, first.id)
    replacement = await make_class(trainer.id, start=_tomorrow_at(9), class_name="Replacement")
    assert replacement.status == "SCHEDULED"


async def test_update_class_excludes_itself_from_conflicts(db, make_trainer, make_class):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id, start=_tomorrow_at(9))
    updated = await update_class(
        db, gym_class.id,
        class_name="Morning Yoga Plus",
        trainer_id=trainer.id,
        start_time=_tomorrow_at(9, 30),
        end_time=_tomorrow_at(10, 30),
        max_capacity=15,
    )
    assert updated.class_name == "Morning Yoga Plus"
    assert updated.max_capacity == 15


async def test_capacity_cannot_drop_below_bookings(db, make_trainer, make_class, make_member):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id, capacity=5)
    for _ in range(3):
        member = await make_member()
        await book_class(db, class_id=gym_class.id, member_id=member.id)

    with pytest.raises(ValidationError):
        await update_class(
            db, gym_class.id,
            class_name=gym_class.class_name, trainer_id=trainer.id,
            start_time=gym_class.start_time, end_time=gym_class.end_time,
            max_capacity=2,
        )

    shrunk = await update_class(
        db, gym_class.id,
        class_name=gym_class.class_name, trainer_id=trainer.id,
        start_time=gym_class.start_time, end_time=gym_class.end_time,
        max_capacity=3,
    )
    assert shrunk.status == "FULL"


async def test_cannot_cancel_completed_class(db, make_trainer, make_class):
    trainer = await make_trainer()
    past = await make_class(trainer.id, start=datetime.now() - timedelta(days=2))
    await update_class_statuses(db)
    assert (await get_class_by_id(db, past.id)).status == "COMPLETED"
    with pytest.raises(ValueError):
        await cancel_class(db, past.id)


async def test_update_class_statuses(db, make_trainer, make_class):
    trainer = await make_trainer()
    now = datetime.now().replace(second=0, microsecond=0)
    finished = await make_class(trainer.id, start=now - timedelta(hours=3))
    running = await make_class(trainer.id, start=now - timedelta(minutes=30), minutes=60, class_name="Running")
    future = await make_class(trainer.id, start=now + timedelta(hours=5), class_name="Later")
    cancelled = await make_class(trainer.id, start=now - timedelta(days=3), class_name="Called off")
    await cancel_class(db, cancelled.id)

    await update_class_statuses(db, now=now)

    assert (await get_class_by_id(db, finished.id)).status == "COMPLETED"
    assert (await get_class_by_id(db, running.id)).status == "IN_PROGRESS"
    assert (await get_class_by_id(db, future.id)).status == "SCHEDULED"
    assert (await get_class_by_id(db, cancelled.id)).status == "CANCELLED"


async def test_class_listings(db, make_trainer, make_class, make_member):
    trainer = await make_trainer(first_name="Nina", last_name="Lopez")
    yoga = await make_class(trainer.id, start=_tomorrow_at(8), class_name="Sunrise Yoga", description="Gentle flow")
    hiit = await make_class(trainer.id, start=_tomorrow_at(18), class_name="HIIT")
    past = await make_class(trainer.id, start=datetime.now() - timedelta(days=5), class_name="Old Class")

    assert [c.id for c in await get_upcoming_classes(db)] == [yoga.id, hiit.id]
    assert [c.id for c in await get_upcoming_classes(db, limit=1)] == [yoga.id]
    assert [c.id for c in await list_classes(db)][0] == hiit.id

    tomorrow = _tomorrow_at(0).date()
    assert {c.id for c in await get_classes_by_date(db, tomorrow)} == {yoga.id, hiit.id}
    window = await get_classes_by_date_range(db, tomorrow - timedelta(days=10), tomorrow)
    assert {c.id for c in window} == {yoga.id, hiit.id, past.id}
    with pytest.raises(ValidationError):
        await get_classes_by_date_range(db, tomorrow, tomorrow - timedelta(days=1))

    assert [c.id for c in await search_classes(db, "gentle")] == [yoga.id]
    assert {c.id for c in await search_classes(db, "nina lopez")} == {yoga.id, hiit.id, past.id}

    member = await make_member()
    await book_class(db, class_id=yoga.id, member_id=member.id)
    assert [c.id for c in await get_classes_booked_by_member(db, member.id)] == [yoga.id]
    assert [c.id for c in await get_available_classes_for_member(db, member.id)] == [hiit.id]
    assert (await get_most_popular_classes(db, limit=1))[0].id == yoga.id


async def test_class_stats(db, make_trainer, make_class, make_member):
    trainer = await make_trainer()
    first = await make_class(trainer.id, start=_tomorrow_at(8), capacity=4)
    second = await make_class(trainer.id, start=_tomorrow_at(10), capacity=10)
    await cancel_class(db, second.id)
    member = await make_member()
    await book_class(db, class_id=first.id, member_id=member.id)

    stats = await get_class_stats(db)
    assert stats.total == 2
    assert stats.scheduled == 1
    assert stats.cancelled == 1
    assert stats.total_bookings == 1
    assert stats.average_occupancy == 12.5


async def test_delete_class_removes_bookings(db, make_trainer, make_class, make_member):
    trainer = await make_trainer()
    gym_class = await make_class(trainer.id)
    member = await make_member()
    await book_class(db, class_id=gym_class.id, member_id=member.id)
    assert await delete_class(db, gym_class.id)
    assert await get_class_by_id(db, gym_class.id) is None
    assert await get_classes_booked_by_member(db, member.id) == []
