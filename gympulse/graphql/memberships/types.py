from datetime import datetime
from typing import List, Optional

import strawberry

from gympulse.crud.membershipsCrud import MembershipPlanData


@strawberry.type
class MembershipPlan:
    id: int
    plan_name: str
    description: Optional[str]
    price: float
    duration_in_months: int
    is_active: bool
    created_at: Optional[datetime]

    @classmethod
    def from_data(cls, data: MembershipPlanData) -> "MembershipPlan":
        return cls(
            id=data.id,
            plan_name=data.plan_name,
            description=data.description,
            price=data.price,
            duration_in_months=data.duration_in_months,
            is_active=data.is_active,
            created_at=data.created_at,
        )


@strawberry.input
class MembershipPlanInput:
    plan_name: str
    price: float
    duration_in_months: int
    description: Optional[str] = None
    is_active: Optional[bool] = None


@strawberry.type
class MembershipPlanResponse:
    success: bool
    message: str
    plan: Optional[MembershipPlan] = None
    errors: List[str] = strawberry.field(default_factory=list)
