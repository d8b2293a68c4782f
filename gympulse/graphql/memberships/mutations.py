import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.membershipsCrud import (
    create_membership_plan,
    deactivate_membership_plan,
    update_membership_plan,
)
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.common import error_messages
from gympulse.graphql.memberships.types import (
    MembershipPlan,
    MembershipPlanInput,
    MembershipPlanResponse,
)
from gympulse.graphql.users.types import DeleteResponse

logger = get_logger("graphql.memberships")


@strawberry.type
class MembershipPlanMutation:
    @strawberry.mutation(permission_classes=[IsAdmin])
    async def create_membership_plan(self, info: strawberry.Info, input: MembershipPlanInput) -> MembershipPlanResponse:
        db: AsyncSession = info.context.db
        try:
            data = await create_membership_plan(
                db,
                plan_name=input.plan_name,
                price=input.price,
                duration_in_months=input.duration_in_months,
                description=input.description,
                is_active=True if input.is_active is None else input.is_active,
            )
            return MembershipPlanResponse(
                success=True, message="Membership plan created", plan=MembershipPlan.from_data(data)
            )
        except ValueError as e:
            await db.rollback()
            return MembershipPlanResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error creating membership plan")
            return MembershipPlanResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def update_membership_plan(
        self, info: strawberry.Info, plan_id: int, input: MembershipPlanInput
    ) -> MembershipPlanResponse:
        db: AsyncSession = info.context.db
        try:
            data = await update_membership_plan(
                db,
                plan_id,
                plan_name=input.plan_name,
                price=input.price,
                duration_in_months=input.duration_in_months,
                description=input.description,
                is_active=input.is_active,
            )
            return MembershipPlanResponse(
                success=True, message="Membership plan updated", plan=MembershipPlan.from_data(data)
            )
        except ValueError as e:
            await db.rollback()
            return MembershipPlanResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error updating membership plan %s", plan_id)
            return MembershipPlanResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def deactivate_membership_plan(self, info: strawberry.Info, plan_id: int) -> DeleteResponse:
        db: AsyncSession = info.context.db
        if not await deactivate_membership_plan(db, plan_id):
            return DeleteResponse(success=False, message="Membership plan not found")
        return DeleteResponse(success=True, message="Membership plan deactivated")
