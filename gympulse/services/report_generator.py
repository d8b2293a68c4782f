"""
Report Generator Service for GymPulse
Builds the plain-text monthly payment/membership report and payment receipts
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from gympulse.core.errors import NotFoundError
from gympulse.core.logging_config import get_logger
from gympulse.core.validation import format_date, format_datetime
from gympulse.crud.membersCrud import (
    get_active_members_count,
    get_new_members_for_month,
    get_total_members_count,
)
from gympulse.crud.paymentsCrud import (
    get_monthly_summary,
    get_payment_by_id,
    get_pending_payments_count,
)

logger = get_logger("services.reports")

RULE = "=" * 63
LABEL_WIDTH = 40
CURRENCY = "₹"


def format_currency(amount) -> str:
    value = Decimal(str(amount or 0))
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY}{abs(value):,.2f}"


def growth_rate(current, previous) -> Optional[float]:
    """Percent change from previous to current; None when there is no baseline."""
    if not previous:
        return None
    return float((Decimal(str(current)) - Decimal(str(previous))) * 100 / Decimal(str(previous)))


@dataclass
class MonthlyReportData:
    month: int
    year: int
    new_members: int = 0
    total_members: int = 0
    active_members: int = 0
    revenue: Decimal = Decimal("0.00")
    completed_payments: int = 0
    pending_payments: int = 0
    failed_payments: int = 0
    refunded_payments: int = 0
    total_refunds: Decimal = Decimal("0.00")
    by_method: Dict[str, int] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%B %Y")

    @property
    def active_rate(self) -> float:
        if not self.total_members:
            return 0.0
        return self.active_members * 100.0 / self.total_members

    @property
    def average_payment(self) -> Optional[Decimal]:
        if not self.completed_payments:
            return None
        return (self.revenue / self.completed_payments).quantize(Decimal("0.01"))


class ReportGeneratorService:
    """Collects monthly figures and renders them as text"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def collect_month(self, month: int, year: int) -> MonthlyReportData:
        summary = await get_monthly_summary(self.db, month, year)
        return MonthlyReportData(
            month=month,
            year=year,
            new_members=await get_new_members_for_month(self.db, month, year),
            total_members=await get_total_members_count(self.db),
            active_members=await get_active_members_count(self.db),
            revenue=summary.revenue,
            completed_payments=summary.completed_count,
            pending_payments=await get_pending_payments_count(self.db),
            failed_payments=summary.failed_count,
            refunded_payments=summary.refunded_count,
            total_refunds=summary.refunds,
            by_method=summary.by_method,
        )

    async def generate_monthly_report(self, reference: Optional[date] = None) -> str:
        """Report for the month containing `reference` (today by default) against the month before."""
        reference = reference or date.today()
        previous_month = reference - relativedelta(months=1)

        current = await self.collect_month(reference.month, reference.year)
        previous = await self.collect_month(previous_month.month, previous_month.year)

        logger.info("Monthly report generated for %s", current.label)
        return self.render_monthly_report(current, previous, generated_on=date.today())

    @staticmethod
    def render_monthly_report(
        current: MonthlyReportData,
        previous: MonthlyReportData,
        generated_on: Optional[date] = None,
    ) -> str:
        lines = []

        def section(title: str) -> None:
            lines.extend([RULE, title.center(len(RULE)).rstrip(), RULE, ""])

        def row(label: str, value) -> None:
            lines.append(f"{label:<{LABEL_WIDTH}} : {value}")

        section("GYMPULSE MONTHLY PAYMENT REPORT")
        lines.append(f"Report Generated: {format_date(generated_on or date.today())}")
        lines.append(f"Report Period: {current.label}")
        lines.append("")

        section("MEMBERSHIP STATISTICS")
        row("New Members This Month", current.new_members)
        row("New Members Last Month", previous.new_members)
        row("Month-over-Month Change", f"{current.new_members - previous.new_members:+d}")
        lines.append("")
        row("Total Active Members", current.active_members)
        row("Total Members (All Status)", current.total_members)
        row("Active Member Rate", f"{current.active_rate:.1f}%")
        lines.append("")

        section("REVENUE STATISTICS")
        row("Total Revenue (Current Month)", format_currency(current.revenue))
        row("Total Revenue (Previous Month)", format_currency(previous.revenue))
        row("Revenue Change", format_currency(current.revenue - previous.revenue))
        if current.average_payment is not None:
            row("Average Payment Amount", format_currency(current.average_payment))
        lines.append("")

        section("PAYMENT STATISTICS")
        row("Completed Payments", current.completed_payments)
        row("Pending Payments", current.pending_payments)
        row("Failed Payments", current.failed_payments)
        row("Refunded Payments", current.refunded_payments)
        total = (current.completed_payments + current.pending_payments
                 + current.failed_payments + current.refunded_payments)
        if total:
            row("Success Rate", f"{current.completed_payments * 100.0 / total:.1f}%")
            row("Failure Rate", f"{current.failed_payments * 100.0 / total:.1f}%")
        row("Total Refunds Issued", format_currency(current.total_refunds))
        lines.append("")

        section("PAYMENT METHOD BREAKDOWN")
        for method, count in current.by_method.items():
            row(f"{method.title()} Payments", f"{count} payments")
        method_total = sum(current.by_method.values())
        if method_total:
            lines.append("")
            lines.append("Payment Method Distribution:")
            for method, count in current.by_method.items():
                lines.append(f"  {method.title():<7}: {count * 100.0 / method_total:.1f}%")
        lines.append("")

        section("GROWTH ANALYSIS")
        member_growth = growth_rate(current.new_members, previous.new_members)
        if member_growth is not None:
            row("Member Growth Rate", f"{member_growth:+.1f}%")
        revenue_growth = growth_rate(current.revenue, previous.revenue)
        if revenue_growth is not None:
            row("Revenue Growth Rate", f"{revenue_growth:+.1f}%")
        lines.append("")

        section("SUMMARY & INSIGHTS")
        if current.new_members > previous.new_members:
            lines.append(
                f"+ Member acquisition is improving. "
                f"{current.new_members - previous.new_members} more members joined this month."
            )
        elif current.new_members < previous.new_members:
            lines.append("! Member acquisition declined. Consider marketing initiatives.")
        if current.revenue > previous.revenue:
            lines.append(
                f"+ Revenue is growing. Increased by {format_currency(current.revenue - previous.revenue)} this month."
            )
        if current.pending_payments > 5:
            lines.append("! High number of pending payments. Follow up with members.")
        if current.failed_payments > 0:
            lines.append(f"! {current.failed_payments} failed payments this month. Review payment processing.")
        lines.append("")

        section("END OF REPORT")
        return "\n".join(lines).rstrip() + "\n"

    async def generate_receipt(self, payment_id: int) -> str:
        payment = await get_payment_by_id(self.db, payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")

        lines = [
            RULE,
            "GYMPULSE PAYMENT RECEIPT".center(len(RULE)).rstrip(),
            RULE,
            f"{'Invoice Number':<20}: {payment.invoice_number}",
            f"{'Transaction ID':<20}: {payment.transaction_id}",
            f"{'Date':<20}: {format_datetime(payment.payment_date)}",
            f"{'Member':<20}: {payment.member_name or '-'}",
            f"{'Payment Type':<20}: {payment.payment_type}",
            f"{'Payment Method':<20}: {payment.payment_method}",
            f"{'Status':<20}: {payment.status}",
            "",
            f"{'Amount':<20}: {format_currency(payment.amount)}",
            f"{'Discount':<20}: {format_currency(payment.discount)}",
            f"{'Total Paid':<20}: {format_currency(payment.final_amount)}",
        ]
        if payment.refund_amount:
            lines.append(f"{'Refunded':<20}: {format_currency(payment.refund_amount)}")
            if payment.refund_reason:
                lines.append(f"{'Refund Reason':<20}: {payment.refund_reason}")
        if payment.description:
            lines.append(f"{'Description':<20}: {payment.description}")
        lines.append(RULE)
        return "\n".join(lines) + "\n"
