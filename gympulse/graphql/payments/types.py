from datetime import datetime
from typing import List, Optional

import strawberry

from gympulse.core.conversions import to_float
from gympulse.crud.paymentsCrud import MonthlyPaymentSummary, PaymentData, PaymentStats as PaymentStatsData


@strawberry.type
class Payment:
    id: int
    member_id: int
    member_name: Optional[str]
    member_email: Optional[str]
    plan_name: Optional[str]
    transaction_id: str
    invoice_number: str
    amount: float
    discount: float
    final_amount: float
    payment_method: str
    payment_type: str
    status: str
    description: Optional[str]
    coupon_code: Optional[str]
    refund_amount: float
    refund_date: Optional[datetime]
    refund_reason: Optional[str]
    processed_by: Optional[int]
    payment_date: datetime
    is_refundable: bool

    @classmethod
    def from_data(cls, data: PaymentData) -> "Payment":
        return cls(
            id=data.id,
            member_id=data.member_id,
            member_name=data.member_name,
            member_email=data.member_email,
            plan_name=data.plan_name,
            transaction_id=data.transaction_id,
            invoice_number=data.invoice_number,
            amount=to_float(data.amount),
            discount=to_float(data.discount),
            final_amount=to_float(data.final_amount),
            payment_method=data.payment_method,
            payment_type=data.payment_type,
            status=data.status,
            description=data.description,
            coupon_code=data.coupon_code,
            refund_amount=to_float(data.refund_amount),
            refund_date=data.refund_date,
            refund_reason=data.refund_reason,
            processed_by=data.processed_by,
            payment_date=data.payment_date,
            is_refundable=data.is_refundable,
        )


@strawberry.type
class PaymentStats:
    total_payments: int
    completed_count: int
    total_revenue: float
    pending_count: int
    pending_revenue: float
    failed_count: int
    refunded_count: int
    total_refunds: float

    @classmethod
    def from_data(cls, data: PaymentStatsData) -> "PaymentStats":
        return cls(
            total_payments=data.total_payments,
            completed_count=data.completed_count,
            total_revenue=to_float(data.total_revenue),
            pending_count=data.pending_count,
            pending_revenue=to_float(data.pending_revenue),
            failed_count=data.failed_count,
            refunded_count=data.refunded_count,
            total_refunds=to_float(data.total_refunds),
        )


@strawberry.type
class MethodCount:
    method: str
    count: int


@strawberry.type
class MonthlySummary:
    month: int
    year: int
    completed_count: int
    failed_count: int
    refunded_count: int
    revenue: float
    refunds: float
    by_method: List[MethodCount]

    @classmethod
    def from_data(cls, data: MonthlyPaymentSummary) -> "MonthlySummary":
        return cls(
            month=data.month,
            year=data.year,
            completed_count=data.completed_count,
            failed_count=data.failed_count,
            refunded_count=data.refunded_count,
            revenue=to_float(data.revenue),
            refunds=to_float(data.refunds),
            by_method=[MethodCount(method=k, count=v) for k, v in data.by_method.items()],
        )


@strawberry.input
class CreatePaymentInput:
    member_id: int
    amount: float
    payment_method: str
    payment_type: str
    discount: Optional[float] = None
    discount_percentage: Optional[float] = None
    status: str = "COMPLETED"
    description: Optional[str] = None
    coupon_code: Optional[str] = None


@strawberry.input
class RefundInput:
    payment_id: int
    refund_amount: float
    reason: Optional[str] = None


@strawberry.type
class PaymentResponse:
    success: bool
    message: str
    payment: Optional[Payment] = None
    errors: List[str] = strawberry.field(default_factory=list)
