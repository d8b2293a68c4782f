from datetime import date
from typing import List, Optional

import strawberry

from gympulse.crud.membersCrud import MemberData, MembershipStats as MembershipStatsData


@strawberry.type
class Member:
    id: int
    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str]
    emergency_contact: Optional[str]
    medical_conditions: Optional[str]
    membership_plan_id: Optional[int]
    membership_plan_name: Optional[str]
    membership_plan_price: Optional[float]
    membership_start_date: date
    membership_end_date: date
    membership_status: str
    display_status: str
    days_remaining: int

    @classmethod
    def from_data(cls, data: MemberData) -> "Member":
        return cls(
            id=data.id,
            user_id=data.user_id,
            username=data.username,
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            full_name=data.full_name,
            phone=data.phone,
            emergency_contact=data.emergency_contact,
            medical_conditions=data.medical_conditions,
            membership_plan_id=data.membership_plan_id,
            membership_plan_name=data.membership_plan_name,
            membership_plan_price=data.membership_plan_price,
            membership_start_date=data.membership_start_date,
            membership_end_date=data.membership_end_date,
            membership_status=data.membership_status,
            display_status=data.display_status,
            days_remaining=data.days_remaining,
        )


@strawberry.type
class MembersConnection:
    items: List[Member]
    total: int

    @classmethod
    def from_collection(cls, items: List[MemberData], total: int) -> "MembersConnection":
        return cls(items=[Member.from_data(m) for m in items], total=total)


@strawberry.type
class MembershipStats:
    total: int
    active: int
    expired: int
    suspended: int

    @classmethod
    def from_data(cls, data: MembershipStatsData) -> "MembershipStats":
        return cls(total=data.total, active=data.active, expired=data.expired, suspended=data.suspended)


@strawberry.input
class CreateMemberInput:
    username: str
    password: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    membership_plan_id: Optional[int] = None
    membership_start_date: Optional[date] = None
    membership_end_date: Optional[date] = None
    emergency_contact: Optional[str] = None
    medical_conditions: Optional[str] = None


@strawberry.input
class UpdateMemberInput:
    emergency_contact: Optional[str] = None
    medical_conditions: Optional[str] = None
    membership_plan_id: Optional[int] = None
    membership_start_date: Optional[date] = None
    membership_end_date: Optional[date] = None
    membership_status: Optional[str] = None


@strawberry.type
class MemberResponse:
    success: bool
    message: str
    member: Optional[Member] = None
    errors: List[str] = strawberry.field(default_factory=list)
