from datetime import date
from decimal import Decimal

import pytest

from gympulse.core.errors import NotFoundError
from gympulse.crud.paymentsCrud import create_payment, process_refund
from gympulse.services.report_generator import (
    LABEL_WIDTH,
    MonthlyReportData,
    ReportGeneratorService,
    format_currency,
    growth_rate,
)


def _row(label, value):
    return f"{label:<{LABEL_WIDTH}} : {value}"


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "₹1,234.50"
    assert format_currency(None) == "₹0.00"
    assert format_currency(Decimal("-20")) == "-₹20.00"


def test_growth_rate():
    assert growth_rate(15, 10) == pytest.approx(50.0)
    assert growth_rate(5, 10) == pytest.approx(-50.0)
    assert growth_rate(5, 0) is None


def test_render_monthly_report():
    current = MonthlyReportData(
        month=3, year=2026, new_members=6, total_members=40, active_members=30,
        revenue=Decimal("12000.00"), completed_payments=8, pending_payments=1,
        failed_payments=1, refunded_payments=0, by_method={"CASH": 5, "CARD": 3},
    )
    previous = MonthlyReportData(month=2, year=2026, new_members=4, revenue=Decimal("8000.00"))

    report = ReportGeneratorService.render_monthly_report(current, previous, generated_on=date(2026, 3, 31))

    for title in ("MEMBERSHIP STATISTICS", "REVENUE STATISTICS", "PAYMENT STATISTICS",
                  "PAYMENT METHOD BREAKDOWN", "GROWTH ANALYSIS", "SUMMARY & INSIGHTS", "END OF REPORT"):
        assert title in report
    assert "Report Period: March 2026" in report
    assert _row("Active Member Rate", "75.0%") in report
    assert _row("Average Payment Amount", "₹1,500.00") in report
    assert _row("Member Growth Rate", "+50.0%") in report
    assert _row("Revenue Growth Rate", "+50.0%") in report
    assert "2 more members joined this month." in report
    assert "1 failed payments this month." in report
    assert "  Cash   : 62.5%" in report


def test_render_without_baseline_omits_growth():
    current = MonthlyReportData(month=1, year=2026)
    previous = MonthlyReportData(month=12, year=2025)
    report = ReportGeneratorService.render_monthly_report(current, previous)
    assert "Growth Rate" not in report
    assert "Average Payment Amount" not in report
    assert "Success Rate" not in report


async def test_generate_monthly_report(db, make_member, today):
    member = await make_member()
    await create_payment(db, member_id=member.id, amount=1500, payment_method="CASH", payment_type="OTHER")

    report = await ReportGeneratorService(db).generate_monthly_report(today)
    assert today.strftime("%B %Y") in report
    assert _row("Total Revenue (Current Month)", "₹1,500.00") in report
    assert _row("New Members This Month", "1") in report


async def test_receipt(db, make_member):
    member = await make_member()
    payment = await create_payment(
        db, member_id=member.id, amount=1000, discount=100,
        payment_method="CARD", payment_type="OTHER", description="Towel service",
    )
    await process_refund(db, payment.id, refund_amount=300, reason="Overcharged")

    receipt = await ReportGeneratorService(db).generate_receipt(payment.id)
    assert payment.invoice_number in receipt
    assert "Alice Walker" in receipt
    assert "₹900.00" in receipt
    assert f"{'Refund Reason':<20}: Overcharged" in receipt
    assert "Towel service" in receipt

    with pytest.raises(NotFoundError):
        await ReportGeneratorService(db).generate_receipt(9999)
