from datetime import date
from typing import Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.classesCrud import get_class_stats
from gympulse.crud.membersCrud import get_expiring_memberships, get_membership_stats
from gympulse.crud.paymentsCrud import get_payment_statistics
from gympulse.crud.trainersCrud import get_specialization_distribution, get_trainer_stats
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.classes.types import ClassStats
from gympulse.graphql.dashboard.types import DashboardStats
from gympulse.graphql.members.types import Member, MembershipStats
from gympulse.graphql.payments.types import PaymentStats
from gympulse.graphql.trainers.types import TrainerStats
from gympulse.services.report_generator import ReportGeneratorService


@strawberry.type
class DashboardQuery:
    @strawberry.field(permission_classes=[IsAdmin])
    async def dashboard(self, info: strawberry.Info) -> DashboardStats:
        db: AsyncSession = info.context.db
        return DashboardStats(
            members=MembershipStats.from_data(await get_membership_stats(db)),
            trainers=TrainerStats.from_data(
                await get_trainer_stats(db),
                await get_specialization_distribution(db),
            ),
            classes=ClassStats.from_data(await get_class_stats(db)),
            payments=PaymentStats.from_data(await get_payment_statistics(db)),
            expiring_memberships=[Member.from_data(m) for m in await get_expiring_memberships(db)],
        )

    @strawberry.field(permission_classes=[IsAdmin])
    async def monthly_report(self, info: strawberry.Info, reference_date: Optional[date] = None) -> str:
        """Plain-text report for the month of `reference_date` compared with the month before."""
        db: AsyncSession = info.context.db
        return await ReportGeneratorService(db).generate_monthly_report(reference_date)
