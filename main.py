import logging
import os
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from config import Settings
from customers import discount_for_tier
from database import DocumentStore, connect
from errors import FrontDeskError
from frontdesk import FrontDesk
from schemas import (
    Booking,
    BookingStatus,
    BookingUpdate,
    CheckoutRequest,
    Customer,
    CustomerStats,
    GuestEntry,
    OccupancyStats,
    PaymentRequest,
    PreferenceRequest,
    Room,
    RoomCreate,
    RoomStatusUpdate,
    RoomType,
    RoomUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if store is None:
        store = DocumentStore(connect(settings.database_url, settings.database_name))

    app = FastAPI(title=f"{settings.hotel_name} Front Desk API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    desk = FrontDesk(store, settings)
    desk.load()
    app.state.desk = desk
    app.include_router(router)
    logger.info("Front desk API ready for %s (persistence %s)",
                settings.hotel_name, "on" if store.connected else "off")
    return app


# ----------------------------
# Helpers
# ----------------------------
def get_desk(request: Request) -> FrontDesk:
    return request.app.state.desk


def _or_404(obj, what: str):
    if obj is None or obj is False:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return obj


def _bad_request(e: FrontDeskError):
    return HTTPException(status_code=400, detail=str(e))


# ----------------------------
# Root & health
# ----------------------------
@router.get("/")
def read_root(desk: FrontDesk = Depends(get_desk)):
    return {"message": f"{desk.settings.hotel_name} Front Desk Backend Running"}


@router.get("/test")
def test_database(desk: FrontDesk = Depends(get_desk)):
    store = desk.store
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if desk.settings.database_url else "❌ Not Set",
        "database_name": "✅ Set" if desk.settings.database_name else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
        "pending_writes": len(store.pending),
    }
    if store.connected:
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        try:
            response["collections"] = store.db.list_collection_names()
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response


@router.post("/store/flush")
def flush_pending_writes(desk: FrontDesk = Depends(get_desk)):
    flushed = desk.store.flush()
    return {"flushed": flushed, "pending_writes": len(desk.store.pending)}


# ----------------------------
# Rooms
# ----------------------------
@router.get("/rooms")
def list_rooms(type: Optional[RoomType] = None, status: Optional[str] = None,
               desk: FrontDesk = Depends(get_desk)):
    assignments = desk.rooms.assignments()
    rooms = []
    for r in desk.rooms.all_rooms():
        if type and r.type != type:
            continue
        if status and r.status != status:
            continue
        booking = assignments.get(r.room_number)
        doc = r.model_dump()
        # Status as seen by the desk: a checked-in booking means occupied
        doc["current_status"] = "occupied" if booking else r.status
        doc["current_booking_id"] = booking.id if booking else None
        rooms.append(doc)
    return rooms


@router.get("/rooms/available", response_model=List[Room])
def available_rooms(check_in: date, check_out: date, type: Optional[RoomType] = None,
                    desk: FrontDesk = Depends(get_desk)):
    if check_out <= check_in:
        raise HTTPException(status_code=400, detail="check_out must be after check_in")
    return desk.rooms.available_rooms(check_in, check_out, type)


@router.get("/rooms/occupancy", response_model=OccupancyStats)
def room_occupancy(desk: FrontDesk = Depends(get_desk)):
    return desk.rooms.occupancy_stats()


@router.get("/rooms/by-type", response_model=Dict[str, List[Room]])
def rooms_by_type(desk: FrontDesk = Depends(get_desk)):
    return desk.rooms.rooms_by_type()


@router.post("/rooms", response_model=Room, status_code=201)
def add_room(payload: RoomCreate, desk: FrontDesk = Depends(get_desk)):
    if desk.rooms.get_by_number(payload.room_number) is not None:
        raise HTTPException(status_code=400, detail="Room number already exists")
    return desk.rooms.add_room(payload)


@router.get("/rooms/{room_number}", response_model=Room)
def get_room(room_number: str, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.rooms.get_by_number(room_number), "Room")


@router.patch("/rooms/{room_number}", response_model=Room)
def update_room(room_number: str, patch: RoomUpdate, desk: FrontDesk = Depends(get_desk)):
    room = _or_404(desk.rooms.get_by_number(room_number), "Room")
    return desk.rooms.update_room(room.id, patch.model_dump(exclude_unset=True))


@router.patch("/rooms/{room_number}/status", response_model=Room)
def set_room_status(room_number: str, payload: RoomStatusUpdate, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.rooms.set_status(room_number, payload.status), "Room")


@router.delete("/rooms/{room_number}")
def delete_room(room_number: str, desk: FrontDesk = Depends(get_desk)):
    room = _or_404(desk.rooms.get_by_number(room_number), "Room")
    desk.rooms.delete_room(room.id)
    return {"deleted": True}


# ----------------------------
# Customers
# ----------------------------
@router.get("/customers", response_model=List[Customer])
def list_customers(search: Optional[str] = None, tier: Optional[str] = None,
                   desk: FrontDesk = Depends(get_desk)):
    if not search:
        return desk.customers.by_tier(tier) if tier else desk.customers.all_customers()
    customers = desk.customers.search(search)
    if tier:
        customers = [c for c in customers if c.loyalty_tier == tier]
    return customers


@router.get("/customers/top", response_model=List[Customer])
def top_customers(limit: int = 10, desk: FrontDesk = Depends(get_desk)):
    return desk.customers.top_customers(limit)


@router.get("/customers/stats", response_model=CustomerStats)
def customer_stats(desk: FrontDesk = Depends(get_desk)):
    return desk.customers.customer_stats()


@router.get("/customers/lookup")
def lookup_customer(phone: str = "", email: str = "", desk: FrontDesk = Depends(get_desk)):
    """Returning-guest check used while the check-in form is filled in."""
    customer = _or_404(desk.customers.find(phone, email), "Customer")
    return {
        "customer": customer,
        "loyalty_discount": discount_for_tier(customer.loyalty_tier),
    }


@router.get("/customers/{customer_id}", response_model=Customer)
def get_customer(customer_id: int, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.customers.get(customer_id), "Customer")


@router.get("/customers/{customer_id}/bookings", response_model=List[Booking])
def customer_bookings(customer_id: int, desk: FrontDesk = Depends(get_desk)):
    customer = _or_404(desk.customers.get(customer_id), "Customer")
    return desk.customers.bookings_for(customer, desk.ledger.all_bookings())


@router.post("/customers/{customer_id}/recompute-tier", response_model=Customer)
def recompute_tier(customer_id: int, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.customers.recompute_tier(customer_id), "Customer")


@router.post("/customers/{customer_id}/preferences", response_model=Customer)
def add_preference(customer_id: int, payload: PreferenceRequest, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.customers.add_preference(customer_id, payload.preference), "Customer")


# ----------------------------
# Bookings (Check-in -> Check-out -> Billing)
# ----------------------------
@router.post("/checkin", status_code=201)
def check_in(entry: GuestEntry, desk: FrontDesk = Depends(get_desk)):
    try:
        result = desk.check_in(entry)
    except FrontDeskError as e:
        raise _bad_request(e)
    return {
        "booking": result.booking,
        "customer": result.customer,
        "is_existing": result.is_existing,
        "loyalty_discount": result.loyalty_discount,
        "discount_amount": result.discount_amount,
    }


@router.get("/bookings", response_model=List[Booking])
def list_bookings(status: Optional[BookingStatus] = None, search: Optional[str] = None,
                  desk: FrontDesk = Depends(get_desk)):
    docs = desk.ledger.by_status(status) if status else desk.ledger.all_bookings()
    if search:
        term = search.lower()
        docs = [
            b for b in docs
            if term in b.customer_name.lower() or term in b.customer_phone or term in b.room_number
        ]
    # Newest first
    return sorted(docs, key=lambda b: b.created_at, reverse=True)


@router.get("/bookings/active", response_model=List[Booking])
def active_bookings(desk: FrontDesk = Depends(get_desk)):
    return desk.ledger.active_bookings()


@router.get("/bookings/confirmed", response_model=List[Booking])
def confirmed_bookings(desk: FrontDesk = Depends(get_desk)):
    return desk.ledger.confirmed_bookings()


@router.get("/bookings/arrivals", response_model=List[Booking])
def todays_arrivals(desk: FrontDesk = Depends(get_desk)):
    return desk.ledger.todays_arrivals()


@router.get("/bookings/departures", response_model=List[Booking])
def todays_departures(desk: FrontDesk = Depends(get_desk)):
    return desk.ledger.todays_departures()


@router.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: int, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.ledger.get(booking_id), "Booking")


@router.patch("/bookings/{booking_id}", response_model=Booking)
def update_booking(booking_id: int, patch: BookingUpdate, desk: FrontDesk = Depends(get_desk)):
    try:
        booking = desk.ledger.update(booking_id, patch.model_dump(exclude_unset=True))
    except FrontDeskError as e:
        raise _bad_request(e)
    return _or_404(booking, "Booking")


@router.post("/bookings/{booking_id}/checkin", response_model=Booking)
def arrive(booking_id: int, desk: FrontDesk = Depends(get_desk)):
    try:
        booking = desk.ledger.check_in(booking_id)
    except FrontDeskError as e:
        raise _bad_request(e)
    return _or_404(booking, "Booking")


@router.post("/bookings/{booking_id}/checkout")
def check_out(booking_id: int, payload: CheckoutRequest, desk: FrontDesk = Depends(get_desk)):
    try:
        booking = desk.check_out(booking_id, payload)
    except FrontDeskError as e:
        raise _bad_request(e)
    booking = _or_404(booking, "Booking")
    return {"booking": booking, "bill": booking.bill.display()}


@router.post("/bookings/{booking_id}/payment", response_model=Booking)
def record_payment(booking_id: int, payload: PaymentRequest, desk: FrontDesk = Depends(get_desk)):
    return _or_404(desk.ledger.record_payment(booking_id, payload), "Booking")


@router.delete("/bookings/{booking_id}")
def delete_booking(booking_id: int, desk: FrontDesk = Depends(get_desk)):
    _or_404(desk.ledger.delete(booking_id), "Booking")
    return {"deleted": True}


# ----------------------------
# Reports
# ----------------------------
@router.get("/reports/summary")
def report_summary(start: Optional[date] = None, end: Optional[date] = None,
                   desk: FrontDesk = Depends(get_desk)) -> Dict[str, Any]:
    end = end or date.today()
    # Defaults to the current month so far
    start = start or end.replace(day=1)
    try:
        return desk.report(start, end)
    except FrontDeskError as e:
        raise _bad_request(e)


# Built on demand: uvicorn main:create_app --factory
if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
