import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from database import DocumentStore
from schemas import Booking, Customer, CustomerStats, GuestEntry, Preferences

logger = logging.getLogger(__name__)

COLLECTION = "customer"

TIERS = ["Bronze", "Silver", "Gold", "Platinum"]

TIER_DISCOUNTS = {"Bronze": 0, "Silver": 5, "Gold": 10, "Platinum": 15}

# (tier, minimum total spent, minimum bookings); either threshold qualifies
TIER_THRESHOLDS = [
    ("Platinum", 50000, 20),
    ("Gold", 25000, 10),
    ("Silver", 10000, 5),
]


def loyalty_tier(total_spent: float, total_bookings: int) -> str:
    for tier, min_spent, min_bookings in TIER_THRESHOLDS:
        if total_spent >= min_spent or total_bookings >= min_bookings:
            return tier
    return "Bronze"


def discount_for_tier(tier: str) -> int:
    """Loyalty discount percent for a tier, 0 for anything unrecognised."""
    return TIER_DISCOUNTS.get(tier, 0)


def loyalty_points_for(amount: float) -> int:
    return math.floor(amount / 100)


class CustomerDirectory:
    def __init__(self, store: DocumentStore):
        self.store = store
        self._customers: List[Customer] = []

    def load(self) -> None:
        self._customers = [Customer.model_validate(d) for d in self.store.find(COLLECTION)]
        self._customers.sort(key=lambda c: c.id)

    def all_customers(self) -> List[Customer]:
        return list(self._customers)

    def get(self, customer_id: int) -> Optional[Customer]:
        return next((c for c in self._customers if c.id == customer_id), None)

    def get_by_phone(self, phone: str) -> Optional[Customer]:
        if not phone:
            return None
        return next((c for c in self._customers if c.phone == phone), None)

    def get_by_email(self, email: str) -> Optional[Customer]:
        if not email:
            return None
        return next((c for c in self._customers if c.email == email), None)

    def find(self, phone: str = "", email: str = "") -> Optional[Customer]:
        """Exact match on phone first, then on email."""
        return self.get_by_phone(phone) or self.get_by_email(email)

    def upsert(self, guest: GuestEntry, booking_amount: float, now: Optional[datetime] = None) -> Customer:
        """
        Record a booking against the guest's customer profile.

        The loyalty tier is left as it was; call ``recompute_tier`` to refresh it.
        """
        now = now or datetime.now()
        points = loyalty_points_for(booking_amount)
        existing = self.find(guest.customer_phone, guest.customer_email)

        if existing is None:
            customer = Customer(
                id=max((c.id for c in self._customers), default=0) + 1,
                name=guest.customer_name,
                email=guest.customer_email,
                phone=guest.customer_phone,
                address=guest.customer_address,
                id_proof_type=guest.id_proof_type,
                id_proof_number=guest.id_proof_number,
                first_visit=now,
                last_visit=now,
                total_bookings=1,
                total_spent=booking_amount,
                loyalty_points=points,
                loyalty_tier="Bronze",
                preferences=Preferences(room_type=guest.room_type),
                created_at=now,
                updated_at=now,
            )
            self._customers.append(customer)
            self.store.insert(COLLECTION, customer.model_dump(mode="json"))
            logger.info("New customer %s (%s)", customer.id, customer.phone)
            return customer

        contact = {
            "name": guest.customer_name,
            "email": guest.customer_email,
            "phone": guest.customer_phone,
            "address": guest.customer_address,
            "id_proof_type": guest.id_proof_type,
            "id_proof_number": guest.id_proof_number,
        }
        updates = {k: v for k, v in contact.items() if v}
        updates.update(
            total_bookings=existing.total_bookings + 1,
            total_spent=existing.total_spent + booking_amount,
            loyalty_points=existing.loyalty_points + points,
            last_visit=now,
            updated_at=now,
        )
        customer = existing.model_copy(update=updates)
        self._replace(customer)
        self.store.update(COLLECTION, {"id": customer.id}, customer.model_dump(mode="json", include=set(updates)))
        return customer

    def recompute_tier(self, customer_id: int) -> Optional[Customer]:
        customer = self.get(customer_id)
        if customer is None:
            return None
        tier = loyalty_tier(customer.total_spent, customer.total_bookings)
        if tier != customer.loyalty_tier:
            logger.info("Customer %s moved from %s to %s", customer_id, customer.loyalty_tier, tier)
        customer = customer.model_copy(update={"loyalty_tier": tier})
        self._replace(customer)
        self.store.update(COLLECTION, {"id": customer_id}, {"loyalty_tier": tier})
        return customer

    def add_preference(self, customer_id: int, preference: str) -> Optional[Customer]:
        customer = self.get(customer_id)
        if customer is None:
            return None
        prefs = customer.preferences.model_copy(
            update={"special_requests": customer.preferences.special_requests + [preference]}
        )
        customer = customer.model_copy(update={"preferences": prefs})
        self._replace(customer)
        self.store.update(COLLECTION, {"id": customer_id}, {"preferences": prefs.model_dump(mode="json")})
        return customer

    def search(self, term: str) -> List[Customer]:
        term = term.lower()
        return [
            c for c in self._customers
            if term in c.name.lower() or term in c.phone.lower() or term in c.email.lower()
        ]

    def by_tier(self, tier: str) -> List[Customer]:
        return [c for c in self._customers if c.loyalty_tier == tier]

    def top_customers(self, limit: int = 10) -> List[Customer]:
        return sorted(self._customers, key=lambda c: c.total_spent, reverse=True)[:limit]

    def customer_stats(self) -> CustomerStats:
        total = len(self._customers)
        tier_counts: Dict[str, int] = {}
        for c in self._customers:
            tier_counts[c.loyalty_tier] = tier_counts.get(c.loyalty_tier, 0) + 1
        revenue = sum(c.total_spent for c in self._customers)
        return CustomerStats(
            total=total,
            tier_counts=tier_counts,
            total_revenue=revenue,
            average_spent=revenue / total if total else 0,
            total_loyalty_points=sum(c.loyalty_points for c in self._customers),
        )

    @staticmethod
    def bookings_for(customer: Customer, bookings: List[Booking]) -> List[Booking]:
        return [
            b for b in bookings
            if b.customer_id == customer.id
            or (customer.phone and b.customer_phone == customer.phone)
            or (customer.email and b.customer_email == customer.email)
        ]

    def _replace(self, customer: Customer) -> None:
        self._customers = [customer if c.id == customer.id else c for c in self._customers]
