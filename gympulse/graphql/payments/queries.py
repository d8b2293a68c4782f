from datetime import date
from typing import List, Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.crud.membersCrud import get_member_id_by_user_id
from gympulse.crud.paymentsCrud import (
    get_monthly_summary,
    get_payment_by_id,
    get_payment_by_transaction_id,
    get_payment_statistics,
    get_payments_by_date_range,
    get_payments_by_member,
    list_payments,
    search_payments,
)
from gympulse.graphql.auth.permissions import IsAdmin, IsAuthenticated
from gympulse.graphql.payments.types import MonthlySummary, Payment, PaymentStats
from gympulse.services.report_generator import ReportGeneratorService


@strawberry.type
class PaymentQuery:
    @strawberry.field(permission_classes=[IsAdmin])
    async def payments(
        self,
        info: strawberry.Info,
        status: Optional[str] = None,
        search: Optional[str] = None,
        member_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Payment]:
        db: AsyncSession = info.context.db
        if search:
            rows = await search_payments(db, search)
        elif member_id is not None:
            rows = await get_payments_by_member(db, member_id)
        elif start_date is not None and end_date is not None:
            rows = await get_payments_by_date_range(db, start_date, end_date)
        else:
            rows = await list_payments(db, status=status)
        return [Payment.from_data(p) for p in rows]

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def my_payments(self, info: strawberry.Info) -> List[Payment]:
        db: AsyncSession = info.context.db
        member_id = await get_member_id_by_user_id(db, info.context.user.id)
        if member_id is None:
            return []
        return [Payment.from_data(p) for p in await get_payments_by_member(db, member_id)]

    @strawberry.field(permission_classes=[IsAdmin])
    async def payment(
        self,
        info: strawberry.Info,
        payment_id: Optional[int] = None,
        transaction_id: Optional[str] = None,
    ) -> Optional[Payment]:
        db: AsyncSession = info.context.db
        if transaction_id:
            data = await get_payment_by_transaction_id(db, transaction_id)
        else:
            data = await get_payment_by_id(db, payment_id)
        return Payment.from_data(data) if data else None

    @strawberry.field(permission_classes=[IsAdmin])
    async def payment_stats(self, info: strawberry.Info) -> PaymentStats:
        db: AsyncSession = info.context.db
        return PaymentStats.from_data(await get_payment_statistics(db))

    @strawberry.field(permission_classes=[IsAdmin])
    async def monthly_payment_summary(self, info: strawberry.Info, month: int, year: int) -> MonthlySummary:
        db: AsyncSession = info.context.db
        return MonthlySummary.from_data(await get_monthly_summary(db, month, year))

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def payment_receipt(self, info: strawberry.Info, payment_id: int) -> Optional[str]:
        """Plain-text receipt. Members may only fetch receipts for their own payments."""
        db: AsyncSession = info.context.db
        data = await get_payment_by_id(db, payment_id)
        if not data:
            return None
        user = info.context.user
        if user.role == "MEMBER" and data.member_id != await get_member_id_by_user_id(db, user.id):
            return None
        return await ReportGeneratorService(db).generate_receipt(payment_id)
