import logging
import random
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from billing import compute_bill
from database import DocumentStore, StoreReadError
from errors import FrontDeskError, InvalidInput
from schemas import STATUS_RANK, Booking, CheckoutRequest, Payment, PaymentRequest

logger = logging.getLogger(__name__)

COLLECTION = "booking"


def generate_booking_number() -> str:
    """Last 7 digits of the epoch-millisecond clock plus a 3-digit random number."""
    timestamp = str(int(time.time() * 1000))[-7:]
    return timestamp + str(random.randint(100, 999))


class BookingLedger:
    def __init__(self, store: DocumentStore, account_id: str = "", hotel: Optional[Dict[str, str]] = None):
        self.store = store
        self.account_id = account_id
        self.hotel = hotel or {}
        self._bookings: List[Booking] = []
        self._next_id = 1
        self._unavailable = False

    def load(self) -> None:
        try:
            docs = self.store.find(COLLECTION, {"uid": self.account_id})
        except StoreReadError:
            # Existing ids are unknown, so new ones could collide
            self._unavailable = True
            raise
        self._unavailable = False
        self._bookings = sorted((Booking.model_validate(d) for d in docs), key=lambda b: b.id)
        self._next_id = max((b.id for b in self._bookings), default=0) + 1

    def create(self, data: Dict[str, Any], now: Optional[datetime] = None) -> Booking:
        if self._unavailable:
            raise FrontDeskError("Bookings could not be loaded from the database, new bookings are blocked")
        now = now or datetime.now()
        check_in = data["check_in_date"]
        # Arriving today or earlier is a walk-in and is checked in straight away
        walk_in = check_in <= now.date()
        fields = dict(data)
        fields.update(
            id=self._next_id,
            booking_id=generate_booking_number(),
            booking_date=now,
            created_at=now,
            status="checked-in" if walk_in else "confirmed",
            booking_type="walk-in" if walk_in else "advance",
            payment_status=data.get("payment_status") or "pending",
            uid=self.account_id,
            **self.hotel,
        )
        booking = Booking.model_validate(fields)
        self._bookings.append(booking)
        self._next_id += 1
        self.store.insert(COLLECTION, booking.model_dump(mode="json"))
        logger.info("Booking %s (%s) created for room %s, status %s",
                    booking.id, booking.booking_id, booking.room_number or "-", booking.status)
        return booking

    def get(self, booking_id: int) -> Optional[Booking]:
        return next((b for b in self._bookings if b.id == booking_id), None)

    def update(self, booking_id: int, updates: Dict[str, Any]) -> Optional[Booking]:
        booking = self.get(booking_id)
        if booking is None:
            return None
        updates = {k: v for k, v in updates.items() if v is not None}
        status = updates.get("status")
        if status == "checked-out":
            raise InvalidInput("Use checkout to check a booking out, it bills the stay")
        if status and status not in STATUS_RANK:
            raise InvalidInput(f"Unknown booking status: {status}")
        if status and STATUS_RANK[status] < STATUS_RANK[booking.status]:
            raise InvalidInput(f"Cannot move booking from {booking.status} back to {status}")
        if not updates:
            return booking
        return self._apply(booking, updates)

    def check_in(self, booking_id: int, now: Optional[datetime] = None) -> Optional[Booking]:
        """Arrival of an advance booking."""
        booking = self.get(booking_id)
        if booking is None:
            return None
        if booking.status == "checked-in":
            return booking
        if booking.status == "checked-out":
            raise InvalidInput("Booking is already checked out")
        return self._apply(booking, {"status": "checked-in", "actual_check_in_time": now or datetime.now()})

    def checkout(self, booking_id: int, request: CheckoutRequest, now: Optional[datetime] = None) -> Optional[Booking]:
        booking = self.get(booking_id)
        if booking is None:
            return None
        if booking.status == "checked-out":
            raise InvalidInput("Booking is already checked out")
        now = now or datetime.now()
        # Nights are billed as entered, even when they disagree with the dates
        bill = compute_bill(booking.room_rate, request.nights, request.additional_charges, request.discount)
        updates = request.model_dump()
        updates.update(
            bill=bill,
            invoice_number=f"INV-{int(now.timestamp() * 1000)}",
            invoice_date=now,
            status="checked-out",
            checked_out_at=now,
        )
        booking = self._apply(booking, updates)
        logger.info("Booking %s checked out, invoice %s, total %.2f",
                    booking.id, booking.invoice_number, bill.grand_total)
        return booking

    def record_payment(self, booking_id: int, request: PaymentRequest, now: Optional[datetime] = None) -> Optional[Booking]:
        booking = self.get(booking_id)
        if booking is None:
            return None
        now = now or datetime.now()
        amount = booking.bill.grand_total if booking.bill and booking.bill.grand_total else booking.room_rate
        payment = Payment(
            payment_id=f"PAY-{int(now.timestamp() * 1000)}",
            payment_method=request.payment_method,
            amount=amount,
            payment_date=now,
            transaction_details=request.transaction_details,
        )
        return self._apply(booking, {"payment": payment, "payment_status": "paid"})

    def delete(self, booking_id: int) -> bool:
        """Hard delete. Customer totals built from this booking are left as they are."""
        if self.get(booking_id) is None:
            return False
        self._bookings = [b for b in self._bookings if b.id != booking_id]
        self.store.delete(COLLECTION, {"id": booking_id, "uid": self.account_id})
        logger.info("Booking %s deleted", booking_id)
        return True

    # ----------------------------
    # Queries
    # ----------------------------
    def all_bookings(self) -> List[Booking]:
        return list(self._bookings)

    def by_status(self, status: str) -> List[Booking]:
        return [b for b in self._bookings if b.status == status]

    def active_bookings(self) -> List[Booking]:
        return self.by_status("checked-in")

    def confirmed_bookings(self) -> List[Booking]:
        return self.by_status("confirmed")

    def todays_arrivals(self, today: Optional[date] = None) -> List[Booking]:
        today = today or date.today()
        return [b for b in self.confirmed_bookings() if b.check_in_date == today]

    def todays_departures(self, today: Optional[date] = None) -> List[Booking]:
        today = today or date.today()
        return [b for b in self.active_bookings() if b.check_out_date == today]

    def bookings_by_date_range(self, start: date, end: date) -> List[Booking]:
        return [b for b in self._bookings if start <= b.booking_date.date() <= end]

    def revenue_by_date_range(self, start: date, end: date) -> float:
        return sum(b.bill.grand_total for b in self.bookings_by_date_range(start, end) if b.bill)

    def _apply(self, booking: Booking, updates: Dict[str, Any]) -> Booking:
        updated = booking.model_copy(update=updates)
        self._bookings = [updated if b.id == booking.id else b for b in self._bookings]
        self.store.update(
            COLLECTION,
            {"id": booking.id, "uid": self.account_id},
            updated.model_dump(mode="json", include=set(updates)),
        )
        return updated
