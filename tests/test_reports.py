from datetime import date, datetime, timedelta

import pytest

from reports import daily_occupancy, monthly_trend, period_summary, revenue_by_room_type
from schemas import CheckoutRequest
from tests.conftest import booking_data


def checkout(ledger, booking, nights, when):
    return ledger.checkout(booking.id, CheckoutRequest(actual_check_out_date=when.date(), nights=nights), now=when)


@pytest.fixture
def october(ledger):
    """Three October bookings: two billed, one still in house."""
    a = ledger.create(booking_data(date(2026, 10, 2), nights=2, room_type="standard", room_rate=2500),
                      now=datetime(2026, 10, 1, 9, 0))
    b = ledger.create(booking_data(date(2026, 10, 5), nights=4, room_type="suite", room_number="501",
                                   room_rate=5000), now=datetime(2026, 10, 3, 9, 0))
    ledger.create(booking_data(date(2026, 10, 8), nights=1, room_number="102"),
                  now=datetime(2026, 10, 8, 9, 0))
    checkout(ledger, a, 2, datetime(2026, 10, 4, 11, 0))
    checkout(ledger, b, 4, datetime(2026, 10, 9, 11, 0))
    return ledger


def test_period_summary(october):
    summary = period_summary(october.bookings_by_date_range(date(2026, 10, 1), date(2026, 10, 31)))
    revenue = (5000 + 20000) * 1.12
    assert summary.total_bookings == 3
    assert summary.completed_bookings == 2
    assert summary.total_revenue == pytest.approx(revenue)
    assert summary.average_booking_value == pytest.approx(revenue / 3)
    assert summary.average_stay_nights == 3


def test_period_summary_of_empty_range(october):
    summary = period_summary(october.bookings_by_date_range(date(2025, 1, 1), date(2025, 1, 31)))
    assert summary.total_bookings == 0
    assert summary.average_booking_value == 0
    assert summary.average_stay_nights == 0


def test_missing_nights_count_as_one(ledger):
    b = ledger.create(booking_data(date(2026, 10, 2)), now=datetime(2026, 10, 1, 9, 0))
    # Legacy record: checked out with no nights or bill on file
    legacy = b.model_copy(update={"status": "checked-out"})
    summary = period_summary([legacy])
    assert summary.completed_bookings == 1
    assert summary.average_stay_nights == 1
    assert summary.total_revenue == 0


def test_summary_counts_only_the_requested_range(october):
    summary = period_summary(october.bookings_by_date_range(date(2026, 10, 2), date(2026, 10, 8)))
    assert summary.total_bookings == 2
    assert summary.completed_bookings == 1
    assert summary.total_revenue == pytest.approx(20000 * 1.12)


def test_revenue_by_room_type(october):
    revenue = revenue_by_room_type(october.all_bookings())
    assert revenue == pytest.approx({"standard": 5600, "suite": 22400})


def test_monthly_trend_keeps_last_six_months(ledger):
    for month in range(1, 9):
        b = ledger.create(booking_data(date(2026, month, 10)), now=datetime(2026, month, 5, 9, 0))
        checkout(ledger, b, month, datetime(2026, month, 12, 9, 0))
    trend = monthly_trend(ledger.all_bookings())
    assert [label for label, _ in trend] == ["Mar 2026", "Apr 2026", "May 2026", "Jun 2026", "Jul 2026", "Aug 2026"]
    assert trend[-1][1] == pytest.approx(2500 * 8 * 1.12)


def test_monthly_trend_ignores_unbilled(ledger, today):
    ledger.create(booking_data(today))
    assert monthly_trend(ledger.all_bookings()) == []


def test_daily_occupancy_last_seven_days(october):
    start, end = date(2026, 10, 1), date(2026, 10, 10)
    daily = daily_occupancy(october.all_bookings(), start, end)
    assert [d for d, _ in daily] == [(date(2026, 10, 4) + timedelta(i)).isoformat() for i in range(7)]
    counts = dict(daily)
    # Booking a checked out on the 4th, booking b runs 5th-9th, the walk-in 8th-9th
    assert counts["2026-10-04"] == 1
    assert counts["2026-10-06"] == 1
    assert counts["2026-10-08"] == 2
    assert counts["2026-10-09"] == 2
    assert counts["2026-10-10"] == 0


def test_daily_occupancy_uses_actual_departure(ledger):
    b = ledger.create(booking_data(date(2026, 10, 1), nights=1), now=datetime(2026, 9, 20, 9, 0))
    ledger.update(b.id, {"actual_check_out_date": date(2026, 10, 4)})
    counts = dict(daily_occupancy(ledger.all_bookings(), date(2026, 10, 1), date(2026, 10, 5)))
    assert counts == {"2026-10-01": 1, "2026-10-02": 1, "2026-10-03": 1, "2026-10-04": 1, "2026-10-05": 0}


def test_build_report(desk, today):
    from schemas import GuestEntry

    desk.check_in(GuestEntry(customer_name="Nina", customer_phone="9000000000", id_proof_number="X1",
                             check_in_date=today, check_out_date=today + timedelta(days=1)))
    report = desk.report(today, today)
    assert report["summary"]["total_bookings"] == 1
    assert report["occupancy"]["total"] == 58
    assert report["customers"]["total"] == 1
    assert [c["name"] for c in report["top_customers"]] == ["Nina"]
    assert report["daily_occupancy"] == [{"date": today.isoformat(), "bookings": 1}]
