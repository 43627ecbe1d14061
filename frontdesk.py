import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from billing import nights_between
from bookings import BookingLedger
from config import Settings
from customers import CustomerDirectory, discount_for_tier
from database import DocumentStore
from errors import InvalidInput
from reports import build_report
from rooms import ROOM_RATES, RoomInventory
from schemas import Booking, CheckoutRequest, Customer, GuestEntry

logger = logging.getLogger(__name__)


@dataclass
class CheckInResult:
    booking: Booking
    customer: Customer
    is_existing: bool
    loyalty_discount: float
    discount_amount: float


def validate_entry(entry: GuestEntry) -> None:
    if not (entry.customer_name.strip() and entry.customer_phone.strip() and entry.id_proof_number.strip()):
        raise InvalidInput("Please fill in all required fields")
    if entry.number_of_guests > 1 and len(entry.guests) != entry.number_of_guests - 1:
        raise InvalidInput(f"Please add details for all {entry.number_of_guests - 1} additional guests")
    if entry.check_out_date is None:
        raise InvalidInput("Please select a check-out date")
    if entry.check_out_date < entry.check_in_date:
        raise InvalidInput("Check-out date cannot be before check-in date")


class FrontDesk:
    """Services for one hotel account, built once per process."""

    def __init__(self, store: DocumentStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.ledger = BookingLedger(store, account_id=settings.account_id, hotel=settings.hotel_identity())
        self.rooms = RoomInventory(store, booking_source=self.ledger.all_bookings)
        self.customers = CustomerDirectory(store)

    def load(self) -> None:
        self.rooms.load()
        self.customers.load()
        self.ledger.load()
        logger.info("Loaded %d rooms, %d customers, %d bookings",
                    len(self.rooms.all_rooms()), len(self.customers.all_customers()),
                    len(self.ledger.all_bookings()))

    def check_in(self, entry: GuestEntry, now: Optional[datetime] = None) -> CheckInResult:
        """
        Register a guest: price the stay, apply the returning customer's loyalty
        discount, update the customer profile and open the booking.

        Room availability is not re-checked here; it is advisory and read when
        the form is filled in.
        """
        validate_entry(entry)
        rate = entry.room_rate if entry.room_rate is not None else ROOM_RATES[entry.room_type]

        existing = self.customers.find(entry.customer_phone, entry.customer_email)
        pct = discount_for_tier(existing.loyalty_tier) if existing else 0

        room_charges = rate * nights_between(entry.check_in_date, entry.check_out_date)
        discount_amount = room_charges * pct / 100
        customer = self.customers.upsert(entry, room_charges - discount_amount, now=now)

        data = entry.model_dump()
        data.update(
            room_rate=rate,
            customer_id=customer.id,
            loyalty_discount=pct,
            loyalty_discount_amount=discount_amount,
            payment_status="pending",
        )
        booking = self.ledger.create(data, now=now)
        return CheckInResult(
            booking=booking,
            customer=customer,
            is_existing=existing is not None,
            loyalty_discount=pct,
            discount_amount=discount_amount,
        )

    def check_out(self, booking_id: int, request: CheckoutRequest) -> Optional[Booking]:
        return self.ledger.checkout(booking_id, request)

    def report(self, start: date, end: date) -> dict:
        if end < start:
            raise InvalidInput("Report end date is before start date")
        return build_report(self.ledger, self.customers, self.rooms, start, end)
