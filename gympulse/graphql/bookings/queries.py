from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.bookingsCrud import list_bookings_for_class, list_bookings_for_member
from gympulse.graphql.auth.permissions import IsAuthenticated, IsStaff
from gympulse.graphql.bookings.types import Booking
from gympulse.graphql.classes.queries import resolve_member_id


@strawberry.type
class BookingQuery:
    @strawberry.field(permission_classes=[IsStaff])
    async def class_roster(self, info: strawberry.Info, class_id: int) -> List[Booking]:
        db: AsyncSession = info.context.db
        return [Booking.from_data(b) for b in await list_bookings_for_class(db, class_id)]

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def bookings(
        self,
        info: strawberry.Info,
        member_id: Optional[int] = None,
        upcoming_only: bool = False,
    ) -> List[Booking]:
        db: AsyncSession = info.context.db
        member_id = await resolve_member_id(info, member_id)
        if member_id is None:
            return []
        rows = await list_bookings_for_member(db, member_id, upcoming_only=upcoming_only)
        return [Booking.from_data(b) for b in rows]
