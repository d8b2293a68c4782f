from typing import List, Optional

import strawberry

from gympulse.crud.trainersCrud import TrainerData, TrainerStats as TrainerStatsData


@strawberry.type
class Trainer:
    id: int
    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str]
    specialization: str
    certifications: Optional[str]
    hourly_rate: float
    availability: Optional[str]
    is_available: bool
    total_classes: int

    @classmethod
    def from_data(cls, data: TrainerData) -> "Trainer":
        return cls(
            id=data.id,
            user_id=data.user_id,
            username=data.username,
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            full_name=data.full_name,
            phone=data.phone,
            specialization=data.specialization,
            certifications=data.certifications,
            hourly_rate=data.hourly_rate,
            availability=data.availability,
            is_available=data.is_available,
            total_classes=data.total_classes,
        )


@strawberry.type
class SpecializationCount:
    specialization: str
    count: int


@strawberry.type
class TrainerStats:
    total: int
    average_rate: float
    min_rate: float
    max_rate: float
    specializations: List[SpecializationCount]

    @classmethod
    def from_data(cls, data: TrainerStatsData, distribution: dict) -> "TrainerStats":
        return cls(
            total=data.total,
            average_rate=data.average_rate,
            min_rate=data.min_rate,
            max_rate=data.max_rate,
            specializations=[
                SpecializationCount(specialization=k, count=v) for k, v in distribution.items()
            ],
        )


@strawberry.input
class CreateTrainerInput:
    username: str
    password: str
    email: str
    first_name: str
    last_name: str
    specialization: str
    hourly_rate: float
    phone: Optional[str] = None
    certifications: Optional[str] = None
    availability: Optional[str] = None


@strawberry.input
class UpdateTrainerInput:
    specialization: str
    hourly_rate: float
    certifications: Optional[str] = None
    availability: Optional[str] = None


@strawberry.type
class TrainerResponse:
    success: bool
    message: str
    trainer: Optional[Trainer] = None
    errors: List[str] = strawberry.field(default_factory=list)
