"""
Read-only analytics over bookings, customers and rooms.

Nothing here mutates the services it reads from. The period functions take
bookings already narrowed to the period by
``BookingLedger.bookings_by_date_range``.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Tuple

from bookings import BookingLedger
from customers import CustomerDirectory
from rooms import RoomInventory
from schemas import Booking, PeriodSummary

TREND_MONTHS = 6
OCCUPANCY_DAYS = 7


def _grand_total(booking: Booking) -> float:
    return booking.bill.grand_total if booking.bill else 0


def period_summary(range_bookings: List[Booking]) -> PeriodSummary:
    completed = [b for b in range_bookings if b.status == "checked-out"]
    revenue = sum(_grand_total(b) for b in range_bookings)
    return PeriodSummary(
        total_bookings=len(range_bookings),
        completed_bookings=len(completed),
        total_revenue=revenue,
        average_booking_value=revenue / len(range_bookings) if range_bookings else 0,
        average_stay_nights=(
            sum(b.nights or 1 for b in completed) / len(completed) if completed else 0
        ),
    )


def revenue_by_room_type(range_bookings: List[Booking]) -> Dict[str, float]:
    revenue: Dict[str, float] = {}
    for b in range_bookings:
        if b.bill and b.bill.grand_total:
            revenue[b.room_type] = revenue.get(b.room_type, 0) + b.bill.grand_total
    return revenue


def monthly_trend(all_bookings: List[Booking]) -> List[Tuple[str, float]]:
    """Billed revenue per booking month, oldest first, last six months that have any."""
    months: Dict[Tuple[int, int], float] = {}
    for b in all_bookings:
        if b.bill and b.bill.grand_total:
            key = (b.booking_date.year, b.booking_date.month)
            months[key] = months.get(key, 0) + b.bill.grand_total
    trend = []
    for (year, month), total in sorted(months.items())[-TREND_MONTHS:]:
        trend.append((date(year, month, 1).strftime("%b %Y"), total))
    return trend


def daily_occupancy(range_bookings: List[Booking], start: date, end: date) -> List[Tuple[str, int]]:
    daily = []
    day = start
    while day <= end:
        count = sum(1 for b in range_bookings if b.check_in_date <= day <= b.effective_check_out)
        daily.append((day.isoformat(), count))
        day += timedelta(days=1)
    return daily[-OCCUPANCY_DAYS:]


def build_report(ledger: BookingLedger, directory: CustomerDirectory, inventory: RoomInventory,
                 start: date, end: date) -> Dict[str, Any]:
    all_bookings = ledger.all_bookings()
    range_bookings = ledger.bookings_by_date_range(start, end)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "summary": period_summary(range_bookings).model_dump(),
        "revenue_by_room_type": revenue_by_room_type(range_bookings),
        "monthly_trend": [{"month": m, "revenue": r} for m, r in monthly_trend(all_bookings)],
        "daily_occupancy": [{"date": d, "bookings": n} for d, n in daily_occupancy(range_bookings, start, end)],
        "occupancy": inventory.occupancy_stats().model_dump(),
        "customers": directory.customer_stats().model_dump(),
        "top_customers": [c.model_dump(mode="json") for c in directory.top_customers(5)],
    }
