import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.usersCrud import create_user, delete_user, get_user_data, update_user
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.common import error_messages
from gympulse.graphql.users.types import (
    CreateUserInput,
    DeleteResponse,
    UpdateUserInput,
    UserResponse,
    UserType,
)

logger = get_logger("graphql.users")


@strawberry.type
class UserMutation:
    @strawberry.mutation(permission_classes=[IsAdmin])
    async def create_user(self, info: strawberry.Info, input: CreateUserInput) -> UserResponse:
        db: AsyncSession = info.context.db
        try:
            user = await create_user(
                db,
                username=input.username,
                password=input.password,
                email=input.email,
                first_name=input.first_name,
                last_name=input.last_name,
                role=input.role,
                phone=input.phone,
            )
            data = await get_user_data(db, user.id)
            return UserResponse(success=True, message="User created successfully", user=UserType.from_data(data))
        except ValueError as e:
            await db.rollback()
            return UserResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error creating user")
            return UserResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def update_user(self, info: strawberry.Info, user_id: int, input: UpdateUserInput) -> UserResponse:
        db: AsyncSession = info.context.db
        try:
            data = await update_user(
                db,
                user_id,
                username=input.username,
                email=input.email,
                first_name=input.first_name,
                last_name=input.last_name,
                role=input.role,
                phone=input.phone,
                password=input.password,
            )
            return UserResponse(success=True, message="User updated successfully", user=UserType.from_data(data))
        except ValueError as e:
            await db.rollback()
            return UserResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error updating user %s", user_id)
            return UserResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def delete_user(self, info: strawberry.Info, user_id: int) -> DeleteResponse:
        db: AsyncSession = info.context.db
        if info.context.user and info.context.user.id == user_id:
            return DeleteResponse(success=False, message="You cannot delete your own account")
        try:
            deleted = await delete_user(db, user_id)
            if not deleted:
                return DeleteResponse(success=False, message="User not found")
            return DeleteResponse(success=True, message="User deleted successfully")
        except ValueError as e:
            await db.rollback()
            return DeleteResponse(success=False, message=str(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error deleting user %s", user_id)
            return DeleteResponse(success=False, message=f"Unexpected error: {str(e)}")
