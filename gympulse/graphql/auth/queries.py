from typing import Optional

import strawberry

from gympulse.graphql.users.types import UserType


@strawberry.type
class AuthQuery:
    @strawberry.field
    async def current_user(self, info: strawberry.Info) -> Optional[UserType]:
        user = info.context.user
        if not user:
            return None
        return UserType.from_data(user)
