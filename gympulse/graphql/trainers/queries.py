from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.trainersCrud import (
    get_available_trainers,
    get_specialization_distribution,
    get_top_trainers,
    get_trainer_by_id,
    get_trainer_stats,
    get_trainers_by_rate_range,
    get_trainers_by_specialization,
    list_trainers,
    search_trainers,
)
from gympulse.graphql.auth.permissions import IsAuthenticated, IsStaff
from gympulse.graphql.trainers.types import Trainer, TrainerStats

MAX_RATE = 1_000_000


@strawberry.type
class TrainerQuery:
    @strawberry.field(permission_classes=[IsAuthenticated])
    async def trainers(
        self,
        info: strawberry.Info,
        search: Optional[str] = None,
        specialization: Optional[str] = None,
        min_rate: Optional[float] = None,
        max_rate: Optional[float] = None,
        available_only: bool = False,
    ) -> List[Trainer]:
        """All trainers, narrowed by at most one filter (search wins, then specialization, then rate)."""
        db: AsyncSession = info.context.db
        if search:
            rows = await search_trainers(db, search)
        elif specialization:
            rows = await get_trainers_by_specialization(db, specialization)
        elif min_rate is not None or max_rate is not None:
            rows = await get_trainers_by_rate_range(
                db,
                min_rate if min_rate is not None else 0,
                max_rate if max_rate is not None else MAX_RATE,
            )
        elif available_only:
            rows = await get_available_trainers(db)
        else:
            rows = await list_trainers(db)
        return [Trainer.from_data(t) for t in rows]

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def trainer(self, info: strawberry.Info, trainer_id: int) -> Optional[Trainer]:
        db: AsyncSession = info.context.db
        data = await get_trainer_by_id(db, trainer_id)
        return Trainer.from_data(data) if data else None

    @strawberry.field(permission_classes=[IsStaff])
    async def top_trainers(self, info: strawberry.Info, limit: int = 5) -> List[Trainer]:
        db: AsyncSession = info.context.db
        return [Trainer.from_data(t) for t in await get_top_trainers(db, limit)]

    @strawberry.field(permission_classes=[IsStaff])
    async def trainer_stats(self, info: strawberry.Info) -> TrainerStats:
        db: AsyncSession = info.context.db
        return TrainerStats.from_data(
            await get_trainer_stats(db),
            await get_specialization_distribution(db),
        )
