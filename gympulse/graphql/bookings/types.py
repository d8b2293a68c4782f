from datetime import datetime
from typing import List, Optional

import strawberry

from gympulse.crud.bookingsCrud import BookingData
from gympulse.graphql.classes.types import GymClass


@strawberry.type
class Booking:
    id: int
    class_id: int
    member_id: int
    booking_date: datetime
    status: str
    class_name: Optional[str]
    class_start: Optional[datetime]
    class_end: Optional[datetime]
    class_status: Optional[str]
    trainer_name: Optional[str]
    member_name: Optional[str]
    can_be_cancelled: bool

    @classmethod
    def from_data(cls, data: BookingData) -> "Booking":
        return cls(
            id=data.id,
            class_id=data.class_id,
            member_id=data.member_id,
            booking_date=data.booking_date,
            status=data.status,
            class_name=data.class_name,
            class_start=data.class_start,
            class_end=data.class_end,
            class_status=data.class_status,
            trainer_name=data.trainer_name,
            member_name=data.member_name,
            can_be_cancelled=data.can_be_cancelled,
        )


@strawberry.type
class BookingResponse:
    success: bool
    message: str
    booking: Optional[Booking] = None
    gym_class: Optional[GymClass] = None
    errors: List[str] = strawberry.field(default_factory=list)
