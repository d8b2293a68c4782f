import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.paymentsCrud import (
    cancel_payment,
    create_payment,
    get_payment_by_id,
    process_refund,
    update_payment_status,
)
from gympulse.graphql.auth.permissions import IsAdmin
from gympulse.graphql.common import error_messages
from gympulse.graphql.payments.types import CreatePaymentInput, Payment, PaymentResponse, RefundInput
from gympulse.graphql.users.types import DeleteResponse

logger = get_logger("graphql.payments")


@strawberry.type
class PaymentMutation:
    @strawberry.mutation(permission_classes=[IsAdmin])
    async def create_payment(self, info: strawberry.Info, input: CreatePaymentInput) -> PaymentResponse:
        """Record a payment; membership and renewal payments extend the membership"""
        db: AsyncSession = info.context.db
        try:
            payment = await create_payment(
                db,
                member_id=input.member_id,
                amount=input.amount,
                payment_method=input.payment_method,
                payment_type=input.payment_type,
                discount=input.discount,
                discount_percentage=input.discount_percentage,
                status=input.status,
                description=input.description,
                coupon_code=input.coupon_code,
                processed_by=info.context.user.id,
            )
            data = await get_payment_by_id(db, payment.id)
            return PaymentResponse(success=True, message="Payment recorded successfully", payment=Payment.from_data(data))
        except ValueError as e:
            return PaymentResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error recording payment for member %s", input.member_id)
            return PaymentResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def update_payment_status(self, info: strawberry.Info, payment_id: int, status: str) -> PaymentResponse:
        db: AsyncSession = info.context.db
        try:
            data = await update_payment_status(db, payment_id, status)
            return PaymentResponse(success=True, message="Payment status updated", payment=Payment.from_data(data))
        except ValueError as e:
            return PaymentResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error updating payment %s", payment_id)
            return PaymentResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def process_refund(self, info: strawberry.Info, input: RefundInput) -> PaymentResponse:
        db: AsyncSession = info.context.db
        try:
            data = await process_refund(
                db,
                input.payment_id,
                refund_amount=input.refund_amount,
                reason=input.reason,
            )
            return PaymentResponse(success=True, message="Refund processed successfully", payment=Payment.from_data(data))
        except ValueError as e:
            await db.rollback()
            return PaymentResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error refunding payment %s", input.payment_id)
            return PaymentResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAdmin])
    async def cancel_payment(self, info: strawberry.Info, payment_id: int) -> DeleteResponse:
        db: AsyncSession = info.context.db
        try:
            if not await cancel_payment(db, payment_id):
                return DeleteResponse(success=False, message="Payment not found")
            return DeleteResponse(success=True, message="Payment cancelled")
        except ValueError as e:
            return DeleteResponse(success=False, message=str(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error cancelling payment %s", payment_id)
            return DeleteResponse(success=False, message=f"Unexpected error: {str(e)}")
