from datetime import date, timedelta

import pytest
from pymongo.errors import PyMongoError

from bookings import BookingLedger
from config import Settings
from customers import CustomerDirectory
from database import DocumentStore
from frontdesk import FrontDesk
from rooms import RoomInventory


def _matches(doc, match):
    return all(doc.get(k) == v for k, v in (match or {}).items())


class FakeCollection:
    """Just enough of a pymongo collection for the store's calls."""

    def __init__(self):
        self.docs = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise PyMongoError("connection refused")

    def insert_one(self, doc):
        self._check()
        doc["_id"] = len(self.docs) + 1
        self.docs.append(doc)

    def update_one(self, match, update):
        self._check()
        for d in self.docs:
            if _matches(d, match):
                d.update(update["$set"])
                return

    def delete_one(self, match):
        self._check()
        for i, d in enumerate(self.docs):
            if _matches(d, match):
                del self.docs[i]
                return

    def find(self, filter_dict=None):
        self._check()
        return [dict(d) for d in self.docs if _matches(d, filter_dict)]


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    def list_collection_names(self):
        return list(self.collections)


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def settings():
    return Settings(
        account_id="acct-1",
        hotel_id="H001",
        hotel_name="Test Residency",
        hotel_phone="0800000000",
    )


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def store(fake_db):
    return DocumentStore(fake_db)


@pytest.fixture
def offline_store():
    return DocumentStore()


@pytest.fixture
def ledger(offline_store):
    return BookingLedger(offline_store, account_id="acct-1")


@pytest.fixture
def inventory(offline_store, ledger):
    inv = RoomInventory(offline_store, booking_source=ledger.all_bookings)
    inv.load()
    return inv


@pytest.fixture
def directory(offline_store):
    return CustomerDirectory(offline_store)


@pytest.fixture
def desk(store, settings):
    d = FrontDesk(store, settings)
    d.load()
    return d


def booking_data(check_in, nights=2, **overrides):
    data = {
        "customer_name": "Asha Rao",
        "customer_phone": "9876543210",
        "customer_email": "asha@example.com",
        "id_proof_type": "aadhar",
        "id_proof_number": "1234-5678-9012",
        "room_type": "standard",
        "room_number": "101",
        "check_in_date": check_in,
        "check_out_date": check_in + timedelta(days=nights),
        "room_rate": 2500,
    }
    data.update(overrides)
    return data
