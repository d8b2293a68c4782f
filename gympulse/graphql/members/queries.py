from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.membersCrud import (
    get_expiring_memberships,
    get_member_by_id,
    get_member_id_by_user_id,
    get_membership_stats,
    list_members,
)
from gympulse.graphql.auth.permissions import IsAuthenticated, IsStaff
from gympulse.graphql.members.types import Member, MembersConnection, MembershipStats


@strawberry.type
class MembersQuery:
    @strawberry.field(permission_classes=[IsStaff])
    async def members(
        self,
        info: strawberry.Info,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> MembersConnection:
        db: AsyncSession = info.context.db
        result = await list_members(db, limit=limit, offset=offset, search=search, status=status)
        return MembersConnection.from_collection(result["items"], result["total"])

    @strawberry.field(permission_classes=[IsStaff])
    async def member(self, info: strawberry.Info, member_id: int) -> Optional[Member]:
        db: AsyncSession = info.context.db
        data = await get_member_by_id(db, member_id)
        return Member.from_data(data) if data else None

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def my_membership(self, info: strawberry.Info) -> Optional[Member]:
        """Member profile of the logged-in user, if they have one."""
        db: AsyncSession = info.context.db
        member_id = await get_member_id_by_user_id(db, info.context.user.id)
        if member_id is None:
            return None
        data = await get_member_by_id(db, member_id)
        return Member.from_data(data) if data else None

    @strawberry.field(permission_classes=[IsStaff])
    async def expiring_memberships(self, info: strawberry.Info, days_ahead: Optional[int] = None) -> List[Member]:
        db: AsyncSession = info.context.db
        return [Member.from_data(m) for m in await get_expiring_memberships(db, days_ahead)]

    @strawberry.field(permission_classes=[IsStaff])
    async def membership_stats(self, info: strawberry.Info) -> MembershipStats:
        db: AsyncSession = info.context.db
        return MembershipStats.from_data(await get_membership_stats(db))
