from typing import Optional

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.logging_config import get_logger
from gympulse.crud.bookingsCrud import book_class, cancel_booking, get_booking_by_id, mark_attendance
from gympulse.crud.classesCrud import get_class_by_id
from gympulse.crud.paymentsCrud import pay_and_book_class
from gympulse.graphql.auth.permissions import IsAuthenticated, IsStaff
from gympulse.graphql.bookings.types import Booking, BookingResponse
from gympulse.graphql.classes.queries import resolve_member_id
from gympulse.graphql.classes.types import GymClass
from gympulse.graphql.common import error_messages
from gympulse.graphql.payments.types import Payment, PaymentResponse

logger = get_logger("graphql.bookings")


@strawberry.type
class BookingMutation:
    @strawberry.mutation(permission_classes=[IsAuthenticated])
    async def book_class(self, info: strawberry.Info, class_id: int, member_id: Optional[int] = None) -> BookingResponse:
        """Book a class for a member; members always book for themselves"""
        db: AsyncSession = info.context.db
        member_id = await resolve_member_id(info, member_id)
        if member_id is None:
            return BookingResponse(success=False, message="A member is required to book a class")
        try:
            booking = await book_class(db, class_id=class_id, member_id=member_id)
            booking_data = await get_booking_by_id(db, booking.id)
            class_data = await get_class_by_id(db, class_id)
            return BookingResponse(
                success=True,
                message="Class booked successfully",
                booking=Booking.from_data(booking_data),
                gym_class=GymClass.from_data(class_data),
            )
        except ValueError as e:
            return BookingResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error booking class %s", class_id)
            return BookingResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAuthenticated])
    async def cancel_booking(self, info: strawberry.Info, class_id: int, member_id: Optional[int] = None) -> BookingResponse:
        db: AsyncSession = info.context.db
        member_id = await resolve_member_id(info, member_id)
        if member_id is None:
            return BookingResponse(success=False, message="A member is required to cancel a booking")
        try:
            await cancel_booking(db, class_id=class_id, member_id=member_id)
            class_data = await get_class_by_id(db, class_id)
            return BookingResponse(
                success=True,
                message="Booking cancelled",
                gym_class=GymClass.from_data(class_data) if class_data else None,
            )
        except ValueError as e:
            return BookingResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error cancelling booking for class %s", class_id)
            return BookingResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsAuthenticated])
    async def pay_and_book_class(
        self,
        info: strawberry.Info,
        class_id: int,
        payment_method: str,
        member_id: Optional[int] = None,
    ) -> PaymentResponse:
        """Charge the class fee and book the spot in one step"""
        db: AsyncSession = info.context.db
        member_id = await resolve_member_id(info, member_id)
        if member_id is None:
            return PaymentResponse(success=False, message="A member is required to book a class")
        try:
            data = await pay_and_book_class(
                db,
                member_id=member_id,
                class_id=class_id,
                payment_method=payment_method,
                processed_by=info.context.user.id,
            )
            return PaymentResponse(success=True, message="Payment received and class booked", payment=Payment.from_data(data))
        except ValueError as e:
            return PaymentResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error in pay-and-book for class %s", class_id)
            return PaymentResponse(success=False, message=f"Unexpected error: {str(e)}")

    @strawberry.mutation(permission_classes=[IsStaff])
    async def mark_attendance(self, info: strawberry.Info, booking_id: int, attended: bool) -> BookingResponse:
        db: AsyncSession = info.context.db
        try:
            data = await mark_attendance(db, booking_id, attended=attended)
            return BookingResponse(success=True, message=f"Booking marked {data.status}", booking=Booking.from_data(data))
        except ValueError as e:
            await db.rollback()
            return BookingResponse(success=False, message=str(e), errors=error_messages(e))
        except Exception as e:
            await db.rollback()
            logger.exception("Unexpected error marking attendance for booking %s", booking_id)
            return BookingResponse(success=False, message=f"Unexpected error: {str(e)}")
