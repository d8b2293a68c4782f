from datetime import datetime
from typing import List, Optional

import strawberry

from gympulse.crud.classesCrud import ClassData, ClassStats as ClassStatsData


@strawberry.type
class GymClass:
    id: int
    class_name: str
    description: Optional[str]
    trainer_id: int
    trainer_name: Optional[str]
    trainer_specialization: Optional[str]
    start_time: datetime
    end_time: datetime
    max_capacity: int
    current_bookings: int
    available_spots: int
    is_full: bool
    occupancy_rate: float
    duration_minutes: int
    duration_text: str
    booking_summary: str
    status: str

    @classmethod
    def from_data(cls, data: ClassData) -> "GymClass":
        return cls(
            id=data.id,
            class_name=data.class_name,
            description=data.description,
            trainer_id=data.trainer_id,
            trainer_name=data.trainer_name,
            trainer_specialization=data.trainer_specialization,
            start_time=data.start_time,
            end_time=data.end_time,
            max_capacity=data.max_capacity,
            current_bookings=data.current_bookings,
            available_spots=data.available_spots,
            is_full=data.is_full,
            occupancy_rate=data.occupancy_rate,
            duration_minutes=data.duration_minutes,
            duration_text=data.duration_text,
            booking_summary=data.booking_summary,
            status=data.status,
        )


@strawberry.type
class ClassStats:
    total: int
    scheduled: int
    completed: int
    cancelled: int
    average_occupancy: float
    total_bookings: int

    @classmethod
    def from_data(cls, data: ClassStatsData) -> "ClassStats":
        return cls(
            total=data.total,
            scheduled=data.scheduled,
            completed=data.completed,
            cancelled=data.cancelled,
            average_occupancy=data.average_occupancy,
            total_bookings=data.total_bookings,
        )


@strawberry.input
class ClassInput:
    class_name: str
    trainer_id: int
    start_time: datetime
    end_time: datetime
    max_capacity: int
    description: Optional[str] = None
    status: Optional[str] = None


@strawberry.type
class ClassResponse:
    success: bool
    message: str
    gym_class: Optional[GymClass] = None
    errors: List[str] = strawberry.field(default_factory=list)
