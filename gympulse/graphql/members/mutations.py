import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.membersCrud import (
    create_member_with_user,
    delete_member,
    set_member_suspended,
    update_member,
)
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.common import error_messages
from gympulse.graphql.members.types import (
    CreateMemberInput,
    Member,
    MemberResponse,
    UpdateMemberInput,
)
from gympulse.graphql.users.types import DeleteResponse

logger = get_logger("graphql.members")


@strawberry.type
class MemberMutation:
    @strawberry.mutation(permission_classes=[IsAdmin])
    async def create_member(self, info: strawberry.Info, input: CreateMemberInput) -> MemberResponse:
        """Create the member's login and profile together"""
        db: AsyncSession = info.context.db
        try:
            data = await create_member_with_user(
                db,
                username=input.username,
                password=input.password,
                email=input.email,
                first_name=input.first_name,
                last_name=input.last_name,
                phone=input.phone,
                membership_plan_id=input.membership_plan_id,
                membership_start_date=input.membership_start_date,
                membership_end_date=input.membership_end_date,
                emergency_contact=input.emergency_contact,
                medical_conditions=input.medical_conditions,
            )
            return MemberResponse(success=True, message="Member created successfully", member=Member.from_data(data))
        except ValueError as e:
            await db.rollback()
            return MemberResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error creating member")
            return MemberResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def update_member(self, info: strawberry.Info, member_id: int, input: UpdateMemberInput) -> MemberResponse:
        db: AsyncSession = info.context.db
        try:
            data = await update_member(
                db,
                member_id,
                emergency_contact=input.emergency_contact,
                medical_conditions=input.medical_conditions,
                membership_plan_id=input.membership_plan_id,
                membership_start_date=input.membership_start_date,
                membership_end_date=input.membership_end_date,
                membership_status=input.membership_status,
            )
            return MemberResponse(success=True, message="Member updated successfully", member=Member.from_data(data))
        except ValueError as e:
            await db.rollback()
            return MemberResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error updating member %s", member_id)
            return MemberResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def set_member_suspended(self, info: strawberry.Info, member_id: int, suspended: bool) -> MemberResponse:
        db: AsyncSession = info.context.db
        try:
            data = await set_member_suspended(db, member_id, suspended)
            message = "Member suspended" if suspended else "Member reinstated"
            return MemberResponse(success=True, message=message, member=Member.from_data(data))
        except ValueError as e:
            await db.rollback()
            return MemberResponse(success=False, message=str(e), errors=error_messages(e))

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def delete_member(self, info: strawberry.Info, member_id: int) -> DeleteResponse:
        db: AsyncSession = info.context.db
        try:
            if not await delete_member(db, member_id):
                return DeleteResponse(success=False, message="Member not found")
            return DeleteResponse(success=True, message="Member deleted successfully")
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error deleting member %s", member_id)
            return DeleteResponse(success=False, message=f"Unexpected error: {str(e)}")
