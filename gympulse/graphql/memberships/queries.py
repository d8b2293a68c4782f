from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.membershipsCrud import get_membership_plan_by_id, get_membership_plans
from gympulse.graphql.memberships.types import MembershipPlan


@strawberry.type
class MembershipPlanQuery:
    @strawberry.field
    async def membership_plans(self, info: strawberry.Info, include_inactive: bool = False) -> List[MembershipPlan]:
        db: AsyncSession = info.context.db
        plans = await get_membership_plans(db, include_inactive=include_inactive)
        return [MembershipPlan.from_data(p) for p in plans]

    @strawberry.field
    async def membership_plan(self, info: strawberry.Info, plan_id: int) -> Optional[MembershipPlan]:
        db: AsyncSession = info.context.db
        data = await get_membership_plan_by_id(db, plan_id)
        return MembershipPlan.from_data(data) if data else None
