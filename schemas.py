"""
Database Schemas for the Hotel Front Desk

Each Pydantic model with a "Collection name" note is persisted in MongoDB.
The collection name is the lowercase of the class name (e.g., Booking -> "booking").
The remaining models are request bodies and computed views.
"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

RoomType = Literal["standard", "deluxe", "suite"]
RoomStatus = Literal["available", "occupied", "maintenance", "reserved"]
BookingStatus = Literal["confirmed", "checked-in", "checked-out"]
BookingType = Literal["advance", "walk-in"]

# Forward-only booking lifecycle
STATUS_RANK = {"confirmed": 0, "checked-in": 1, "checked-out": 2}


# ----------------------------
# Rooms
# ----------------------------
class Room(BaseModel):
    """
    A bookable room.
    Collection name: "room"
    """
    id: int = Field(..., description="Sequential room id")
    room_number: str = Field(..., description="Unique room number, e.g. 101")
    type: RoomType = Field(..., description="standard, deluxe, suite")
    rate: float = Field(..., ge=0, description="Nightly rate")
    floor: int = Field(..., ge=0)
    status: RoomStatus = Field("available", description="available, occupied, maintenance, reserved")
    amenities: List[str] = Field(default_factory=list)
    max_occupancy: int = Field(2, ge=1)


class RoomCreate(BaseModel):
    room_number: str
    type: RoomType
    rate: float = Field(..., ge=0)
    floor: int = Field(..., ge=0)
    amenities: Optional[List[str]] = None
    max_occupancy: Optional[int] = Field(None, ge=1)


class RoomUpdate(BaseModel):
    type: Optional[RoomType] = None
    rate: Optional[float] = Field(None, ge=0)
    floor: Optional[int] = Field(None, ge=0)
    status: Optional[RoomStatus] = None
    amenities: Optional[List[str]] = None
    max_occupancy: Optional[int] = Field(None, ge=1)


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class OccupancyStats(BaseModel):
    total: int = 0
    occupied: int = 0
    available: int = 0
    maintenance: int = 0
    reserved: int = 0
    occupancy_rate: float = Field(0, description="Occupied share of all rooms, percent, 1 decimal")


# ----------------------------
# Customers
# ----------------------------
class Preferences(BaseModel):
    room_type: str = ""
    special_requests: List[str] = Field(default_factory=list)


class Customer(BaseModel):
    """
    A returning guest tracked for loyalty.
    Collection name: "customer"
    """
    id: int
    name: str
    email: str = ""
    phone: str
    address: str = ""
    id_proof_type: str = ""
    id_proof_number: str = ""
    first_visit: datetime
    last_visit: datetime
    total_bookings: int = Field(0, ge=0)
    total_spent: float = 0
    loyalty_points: int = Field(0, ge=0)
    loyalty_tier: str = Field("Bronze", description="Bronze, Silver, Gold, Platinum")
    preferences: Preferences = Field(default_factory=Preferences)
    created_at: datetime
    updated_at: datetime


class PreferenceRequest(BaseModel):
    preference: str = Field(..., min_length=1)


class CustomerStats(BaseModel):
    total: int = 0
    tier_counts: Dict[str, int] = Field(default_factory=dict)
    total_revenue: float = 0
    average_spent: float = 0
    total_loyalty_points: int = 0


# ----------------------------
# Bookings & billing
# ----------------------------
class AdditionalGuest(BaseModel):
    """Companion guest listed on a booking."""
    name: str
    age: Optional[int] = Field(None, ge=0)
    id_proof_type: str = "aadhar"
    id_proof_number: str = ""


class GuestEntry(BaseModel):
    """Check-in form as submitted by the front desk."""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    id_proof_type: str = "aadhar"
    id_proof_number: str = ""
    check_in_date: date = Field(default_factory=date.today)
    check_out_date: Optional[date] = None
    room_type: RoomType = "standard"
    room_number: str = ""
    number_of_guests: int = Field(1, ge=1)
    room_rate: Optional[float] = Field(None, ge=0, description="Defaults to the room type's rate")
    guests: List[AdditionalGuest] = Field(default_factory=list)


class Bill(BaseModel):
    """Tax-inclusive bill embedded in a booking at checkout."""
    room_charges: float
    additional_charges: float = 0
    discount: float = 0
    total_before_tax: float
    cgst: float
    sgst: float
    total_tax: float
    grand_total: float

    def display(self) -> Dict[str, float]:
        # Rounding happens only here; stored values keep full precision
        return {k: round(v, 2) for k, v in self.model_dump().items()}


class Payment(BaseModel):
    payment_id: str
    payment_method: str
    amount: float
    payment_date: datetime
    status: str = "completed"
    transaction_details: Dict[str, str] = Field(default_factory=dict)


class PaymentRequest(BaseModel):
    payment_method: Literal["card", "upi", "cash"] = "cash"
    transaction_details: Dict[str, str] = Field(default_factory=dict)


class Booking(BaseModel):
    """
    A guest's stay, from check-in through checkout and invoicing.
    Collection name: "booking"
    """
    id: int = Field(..., description="Sequential ledger id")
    booking_id: str = Field(..., description="10-digit human booking number")

    customer_id: Optional[int] = None
    customer_name: str
    customer_email: str = ""
    customer_phone: str
    customer_address: str = ""
    id_proof_type: str = ""
    id_proof_number: str = ""

    room_type: RoomType
    room_number: str = ""
    check_in_date: date
    check_out_date: date
    number_of_guests: int = Field(1, ge=1)
    room_rate: float = Field(..., ge=0)
    guests: List[AdditionalGuest] = Field(default_factory=list)

    status: BookingStatus = "confirmed"
    booking_type: BookingType = "advance"
    payment_status: str = "pending"
    loyalty_discount: float = Field(0, description="Percent applied at check-in")
    loyalty_discount_amount: float = 0
    booking_date: datetime
    created_at: datetime

    hotel_id: str = ""
    hotel_name: str = ""
    hotel_address: str = ""
    hotel_phone: str = ""
    hotel_email: str = ""
    hotel_fax: str = ""
    uid: str = Field("", description="Owning account")

    actual_check_in_time: Optional[datetime] = None
    bill: Optional[Bill] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    actual_check_out_date: Optional[date] = None
    nights: Optional[int] = None
    additional_charges: Optional[float] = None
    additional_charges_description: str = ""
    discount: Optional[float] = None
    discount_description: str = ""
    checked_out_at: Optional[datetime] = None
    payment: Optional[Payment] = None

    @property
    def effective_check_out(self) -> date:
        return self.actual_check_out_date or self.check_out_date


class BookingUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    room_number: Optional[str] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = Field(None, ge=1)
    # checked-out is reached only through checkout, which bills the stay
    status: Optional[Literal["confirmed", "checked-in"]] = None
    payment_status: Optional[str] = None


class CheckoutRequest(BaseModel):
    actual_check_out_date: date = Field(..., description="Date the guest actually left")
    nights: int = Field(1, ge=1, description="Nights billed, entered by staff")
    additional_charges: float = Field(0, ge=0)
    additional_charges_description: str = ""
    discount: float = Field(0, ge=0)
    discount_description: str = ""


# ----------------------------
# Reports
# ----------------------------
class PeriodSummary(BaseModel):
    total_bookings: int = 0
    completed_bookings: int = 0
    total_revenue: float = 0
    average_booking_value: float = 0
    average_stay_nights: float = 0
