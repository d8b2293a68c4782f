import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.classesCrud import cancel_class, create_class, delete_class, update_class
from gympulse.graphql.auth.permissions import IsAdmin, IsStaff
from gympulse.graphql.classes.types import ClassInput, ClassResponse, GymClass
from gympulse.graphql.common import error_messages
from gympulse.graphql.users.types import DeleteResponse

logger = get_logger("graphql.classes")


@strawberry.type
class ClassMutation:
    @strawberry.mutation(permission_classes=[IsStaff])
    async def create_class(self, info: strawberry.Info, input: ClassInput) -> ClassResponse:
        db: AsyncSession = info.context.db
        try:
            data = await create_class(
                db,
                class_name=input.class_name,
                trainer_id=input.trainer_id,
                start_time=input.start_time,
                end_time=input.end_time,
                max_capacity=input.max_capacity,
                description=input.description,
            )
            return ClassResponse(success=True, message="Class scheduled successfully", gym_class=GymClass.from_data(data))
        except ValueError as e:
            await db.rollback()
            return ClassResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error creating class")
            return ClassResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsStaff])
    async def update_class(self, info: strawberry.Info, class_id: int, input: ClassInput) -> ClassResponse:
        db: AsyncSession = info.context.db
        try:
            data = await update_class(
                db,
                class_id,
                class_name=input.class_name,
                trainer_id=input.trainer_id,
                start_time=input.start_time,
                end_time=input.end_time,
                max_capacity=input.max_capacity,
                description=input.description,
                status=input.status,
            )
            return ClassResponse(success=True, message="Class updated successfully", gym_class=GymClass.from_data(data))
        except ValueError as e:
            await db.rollback()
            return ClassResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error updating class %s", class_id)
            return ClassResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsStaff])
    async def cancel_class(self, info: strawberry.Info, class_id: int) -> ClassResponse:
        db: AsyncSession = info.context.db
        try:
            data = await cancel_class(db, class_id)
            return ClassResponse(success=True, message="Class cancelled", gym_class=GymClass.from_data(data))
        except ValueError as e:
            await db.rollback()
            return ClassResponse(success=False, message=str(e), errors=error_messages(e))

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def delete_class(self, info: strawberry.Info, class_id: int) -> DeleteResponse:
        db: AsyncSession = info.context.db
        if not await delete_class(db, class_id):
            return DeleteResponse(success=False, message="Class not found")
        return DeleteResponse(success=True, message="Class deleted successfully")
