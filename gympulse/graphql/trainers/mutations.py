import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.trainersCrud import create_trainer_with_user, delete_trainer, update_trainer
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.common import error_messages
from gympulse.graphql.trainers.types import (
    CreateTrainerInput,
    Trainer,
    TrainerResponse,
    UpdateTrainerInput,
)
from gympulse.graphql.users.types import DeleteResponse

logger = get_logger("graphql.trainers")


@strawberry.type
class TrainerMutation:
    @strawberry.mutation(permission_classes=[IsAdmin])
    async def create_trainer(self, info: strawberry.Info, input: CreateTrainerInput) -> TrainerResponse:
        db: AsyncSession = info.context.db
        try:
            data = await create_trainer_with_user(
                db,
                username=input.username,
                password=input.password,
                email=input.email,
                first_name=input.first_name,
                last_name=input.last_name,
                specialization=input.specialization,
                hourly_rate=input.hourly_rate,
                phone=input.phone,
                certifications=input.certifications,
                availability=input.availability,
            )
            return TrainerResponse(success=True, message="Trainer created successfully", trainer=Trainer.from_data(data))
        except ValueError as e:
            await db.rollback()
            return TrainerResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error creating trainer")
            return TrainerResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def update_trainer(self, info: strawberry.Info, trainer_id: int, input: UpdateTrainerInput) -> TrainerResponse:
        db: AsyncSession = info.context.db
        try:
            data = await update_trainer(
                db,
                trainer_id,
                specialization=input.specialization,
                hourly_rate=input.hourly_rate,
                certifications=input.certifications,
                availability=input.availability,
            )
            return TrainerResponse(success=True, message="Trainer updated successfully", trainer=Trainer.from_data(data))
        except ValueError as e:
            await db.rollback()
            return TrainerResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error updating trainer %s", trainer_id)
            return TrainerResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def delete_trainer(self, info: strawberry.Info, trainer_id: int) -> DeleteResponse:
        db: AsyncSession = info.context.db
        try:
            if not await delete_trainer(db, trainer_id):
                return DeleteResponse(success=False, message="Trainer not found")
            return DeleteResponse(success=True, message="Trainer deleted successfully")
        except ValueError as e:
            await db.rollback()
            return DeleteResponse(success=False, message=str(e))
