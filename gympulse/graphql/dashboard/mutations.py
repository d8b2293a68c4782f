import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.classesCrud import update_class_statuses
from gympulse.crud.membersCrud import update_expired_memberships
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.dashboard.types import RefreshResult


@strawberry.type
class DashboardMutation:
    @strawberry.mutation(permission_classes=[IsAdmin])
    async def refresh_membership_statuses(self, info: strawberry.Info) -> RefreshResult:
        """Mark ACTIVE members whose end date has passed as EXPIRED"""
        db: AsyncSession = info.context.db
        updated = await update_expired_memberships(db)
        return RefreshResult(success=True, message=f"{updated} memberships expired", updated=updated)

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def refresh_class_statuses(self, info: strawberry.Info) -> RefreshResult:
        db: AsyncSession = info.context.db
        updated = await update_class_statuses(db)
        return RefreshResult(success=True, message="Class statuses refreshed", updated=updated)
