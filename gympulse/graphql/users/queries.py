from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.usersCrud import get_user_data, list_users
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.users.types import UserType


@strawberry.type
class UserQuery:
    @strawberry.field(permission_classes=[IsAdmin])
    async def users(self, info: strawberry.Info, role: Optional[str] = None) -> List[UserType]:
        db: AsyncSession = info.context.db
        return [UserType.from_data(u) for u in await list_users(db, role=role)]

    @strawberry.field(permission_classes=[IsAdmin])
    async def user(self, info: strawberry.Info, user_id: int) -> Optional[UserType]:
        db: AsyncSession = info.context.db
        data = await get_user_data(db, user_id)
        return UserType.from_data(data) if data else None
