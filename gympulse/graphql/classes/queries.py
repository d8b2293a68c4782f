from datetime import date
from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.classesCrud import (
    get_available_classes_for_member,
    get_class_by_id,
    get_class_stats,
    get_classes_booked_by_member,
    get_classes_by_date,
    get_classes_by_date_range,
    get_classes_by_trainer,
    get_most_popular_classes,
    get_upcoming_classes,
    list_classes,
    search_classes,
)
from gympulse.crud.membersCrud import get_member_id_by_user_id
from gympulse.graphql.auth.permissions import IsAuthenticated, IsStaff
from gympulse.graphql.classes.types import ClassStats, GymClass


async def resolve_member_id(info, member_id: Optional[int]) -> Optional[int]:
    """Members always act on their own profile; staff may name one."""
    user = info.context.user
    if user.role == "MEMBER":
        return await get_member_id_by_user_id(info.context.db, user.id)
    return member_id


@strawberry.type
class ClassQuery:
    @strawberry.field(permission_classes=[IsAuthenticated])
    async def classes(
        self,
        info: strawberry.Info,
        status: Optional[str] = None,
        search: Optional[str] = None,
        trainer_id: Optional[int] = None,
        on_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[GymClass]:
        db: AsyncSession = info.context.db
        if search:
            rows = await search_classes(db, search)
        elif trainer_id is not None:
            rows = await get_classes_by_trainer(db, trainer_id)
        elif on_date is not None:
            rows = await get_classes_by_date(db, on_date)
        elif start_date is not None and end_date is not None:
            rows = await get_classes_by_date_range(db, start_date, end_date)
        else:
            rows = await list_classes(db, status=status)
        return [GymClass.from_data(c) for c in rows]

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def gym_class(self, info: strawberry.Info, class_id: int) -> Optional[GymClass]:
        db: AsyncSession = info.context.db
        data = await get_class_by_id(db, class_id)
        return GymClass.from_data(data) if data else None

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def upcoming_classes(self, info: strawberry.Info, limit: Optional[int] = None) -> List[GymClass]:
        db: AsyncSession = info.context.db
        return [GymClass.from_data(c) for c in await get_upcoming_classes(db, limit)]

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def available_classes(self, info: strawberry.Info, member_id: Optional[int] = None) -> List[GymClass]:
        """Upcoming classes with free spots that the member has not booked yet."""
        db: AsyncSession = info.context.db
        member_id = await resolve_member_id(info, member_id)
        if member_id is None:
            return []
        return [GymClass.from_data(c) for c in await get_available_classes_for_member(db, member_id)]

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def booked_classes(self, info: strawberry.Info, member_id: Optional[int] = None) -> List[GymClass]:
        db: AsyncSession = info.context.db
        member_id = await resolve_member_id(info, member_id)
        if member_id is None:
            return []
        return [GymClass.from_data(c) for c in await get_classes_booked_by_member(db, member_id)]

    @strawberry.field(permission_classes=[IsStaff])
    async def popular_classes(self, info: strawberry.Info, limit: int = 5) -> List[GymClass]:
        db: AsyncSession = info.context.db
        return [GymClass.from_data(c) for c in await get_most_popular_classes(db, limit)]

    @strawberry.field(permission_classes=[IsStaff])
    async def class_stats(self, info: strawberry.Info) -> ClassStats:
        db: AsyncSession = info.context.db
        return ClassStats.from_data(await get_class_stats(db))
