import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from database import DocumentStore
from schemas import Booking, OccupancyStats, Room, RoomCreate

logger = logging.getLogger(__name__)

COLLECTION = "room"

ROOM_RATES = {"standard": 2500, "deluxe": 3500, "suite": 5000}

AMENITIES = {
    "standard": ["AC", "TV", "WiFi", "Bathroom"],
    "deluxe": ["AC", "TV", "WiFi", "Bathroom", "Minibar", "Balcony"],
    "suite": ["AC", "TV", "WiFi", "Bathroom", "Minibar", "Balcony", "Living Room", "Room Service"],
}

MAX_OCCUPANCY = {"standard": 2, "deluxe": 3, "suite": 4}

# (type, floors, rooms per floor) used to seed an empty inventory
DEFAULT_LAYOUT = [
    ("standard", [1, 2], 10),
    ("deluxe", [3, 4], 8),
    ("suite", [5], 6),
]


def generate_default_rooms() -> List[Room]:
    rooms = []
    room_id = 1
    for room_type, floors, per_floor in DEFAULT_LAYOUT:
        for floor in floors:
            for i in range(1, per_floor + 1):
                rooms.append(Room(
                    id=room_id,
                    room_number=f"{floor}{i:02d}",
                    type=room_type,
                    rate=ROOM_RATES[room_type],
                    floor=floor,
                    status="available",
                    amenities=list(AMENITIES[room_type]),
                    max_occupancy=MAX_OCCUPANCY[room_type],
                ))
                room_id += 1
    return rooms


def overlaps(start: date, end: date, other_start: date, other_end: date) -> bool:
    # Half-open intervals: a stay ending on the day another starts does not overlap
    return start < other_end and end > other_start


class RoomInventory:
    def __init__(self, store: DocumentStore, booking_source: Optional[Callable[[], Iterable[Booking]]] = None):
        self.store = store
        self._booking_source = booking_source or (lambda: [])
        self._rooms: List[Room] = []

    def load(self) -> None:
        """
        Load rooms from the store, seeding the default inventory on first run.

        A failed read propagates as ``StoreReadError`` and nothing is seeded.
        """
        docs = self.store.find(COLLECTION)
        if docs:
            self._rooms = [Room.model_validate(d) for d in docs]
            self._rooms.sort(key=lambda r: r.id)
            return
        self._rooms = generate_default_rooms()
        logger.info("Seeding %d default rooms", len(self._rooms))
        for room in self._rooms:
            self.store.insert(COLLECTION, room.model_dump(mode="json"))

    def all_rooms(self) -> List[Room]:
        return list(self._rooms)

    def get_by_number(self, room_number: str) -> Optional[Room]:
        return next((r for r in self._rooms if r.room_number == room_number), None)

    def get(self, room_id: int) -> Optional[Room]:
        return next((r for r in self._rooms if r.id == room_id), None)

    def available_rooms(self, check_in: date, check_out: date, room_type: Optional[str] = None) -> List[Room]:
        taken = {
            b.room_number
            for b in self._booking_source()
            if b.status != "checked-out"
            and b.room_number
            and overlaps(check_in, check_out, b.check_in_date, b.effective_check_out)
        }
        return [
            r for r in self._rooms
            if (not room_type or r.type == room_type)
            and r.room_number not in taken
            and r.status != "maintenance"
        ]

    def set_status(self, room_number: str, status: str) -> Optional[Room]:
        """Overwrite a room's status. Staff override, not checked against bookings."""
        room = self.get_by_number(room_number)
        if room is None:
            return None
        updated = room.model_copy(update={"status": status})
        self._replace(updated)
        self.store.update(COLLECTION, {"id": room.id}, {"status": status})
        logger.info("Room %s status set to %s", room_number, status)
        return updated

    def add_room(self, data: RoomCreate) -> Room:
        room = Room(
            id=max((r.id for r in self._rooms), default=0) + 1,
            room_number=data.room_number,
            type=data.type,
            rate=data.rate,
            floor=data.floor,
            status="available",
            amenities=data.amenities if data.amenities is not None else list(AMENITIES[data.type]),
            max_occupancy=data.max_occupancy or MAX_OCCUPANCY[data.type],
        )
        self._rooms.append(room)
        self.store.insert(COLLECTION, room.model_dump(mode="json"))
        return room

    def update_room(self, room_id: int, updates: Dict) -> Optional[Room]:
        room = self.get(room_id)
        if room is None:
            return None
        updates = {k: v for k, v in updates.items() if k not in ("id", "room_number") and v is not None}
        if not updates:
            return room
        updated = Room.model_validate({**room.model_dump(), **updates})
        self._replace(updated)
        self.store.update(COLLECTION, {"id": room_id}, updated.model_dump(mode="json", include=set(updates)))
        return updated

    def delete_room(self, room_id: int) -> bool:
        room = self.get(room_id)
        if room is None:
            return False
        self._rooms = [r for r in self._rooms if r.id != room_id]
        self.store.delete(COLLECTION, {"id": room_id})
        logger.info("Room %s deleted", room.room_number)
        return True

    def occupancy_stats(self) -> OccupancyStats:
        total = len(self._rooms)
        counts = {s: 0 for s in ("available", "occupied", "maintenance", "reserved")}
        for r in self._rooms:
            counts[r.status] += 1
        return OccupancyStats(
            total=total,
            occupancy_rate=round(counts["occupied"] / total * 100, 1) if total else 0,
            **counts,
        )

    def rooms_by_type(self) -> Dict[str, List[Room]]:
        grouped: Dict[str, List[Room]] = {}
        for r in self._rooms:
            grouped.setdefault(r.type, []).append(r)
        return grouped

    def assignments(self) -> Dict[str, Booking]:
        """Room number -> checked-in booking currently holding it."""
        return {
            b.room_number: b
            for b in self._booking_source()
            if b.status == "checked-in" and b.room_number
        }

    def _replace(self, room: Room) -> None:
        self._rooms = [room if r.id == room.id else r for r in self._rooms]
