from datetime import date, timedelta

import pytest

from errors import InvalidInput
from schemas import AdditionalGuest, CheckoutRequest, GuestEntry


def guest(today, **kw):
    data = {
        "customer_name": "Farah Khan",
        "customer_phone": "9812345678",
        "customer_email": "farah@example.com",
        "id_proof_type": "passport",
        "id_proof_number": "Z1234567",
        "check_in_date": today,
        "check_out_date": today + timedelta(days=2),
        "room_type": "deluxe",
        "room_number": "301",
    }
    data.update(kw)
    return GuestEntry(**data)


@pytest.mark.parametrize("field", ["customer_name", "customer_phone", "id_proof_number"])
def test_missing_required_fields_block_check_in(desk, today, field):
    with pytest.raises(InvalidInput, match="required fields"):
        desk.check_in(guest(today, **{field: "  "}))
    assert desk.ledger.all_bookings() == []
    assert desk.customers.all_customers() == []


def test_missing_check_out_date_blocks_check_in(desk, today):
    with pytest.raises(InvalidInput, match="check-out date"):
        desk.check_in(guest(today, check_out_date=None))
    assert desk.customers.all_customers() == []


def test_check_out_before_check_in_is_rejected(desk, today):
    with pytest.raises(InvalidInput):
        desk.check_in(guest(today, check_out_date=today - timedelta(days=1)))


def test_additional_guests_must_match_guest_count(desk, today):
    with pytest.raises(InvalidInput, match="2 additional guests"):
        desk.check_in(guest(today, number_of_guests=3, guests=[AdditionalGuest(name="Ali", age=9)]))

    result = desk.check_in(guest(today, number_of_guests=2, guests=[AdditionalGuest(name="Ali", age=9)]))
    assert [g.name for g in result.booking.guests] == ["Ali"]


def test_first_visit_check_in(desk, today, fake_db):
    result = desk.check_in(guest(today))
    booking, customer = result.booking, result.customer
    assert not result.is_existing
    assert result.loyalty_discount == 0
    assert booking.room_rate == 3500
    assert booking.status == "checked-in"
    assert booking.customer_id == customer.id
    assert booking.hotel_name == "Test Residency"
    assert booking.uid == "acct-1"
    assert customer.total_spent == 7000
    assert customer.loyalty_points == 70
    assert len(fake_db["booking"].docs) == 1
    assert len(fake_db["customer"].docs) == 1


def test_returning_customer_gets_loyalty_discount(desk, today):
    first = desk.check_in(guest(today, room_type="suite", room_number="501",
                                check_out_date=today + timedelta(days=3)))
    desk.customers.recompute_tier(first.customer.id)
    assert desk.customers.get(first.customer.id).loyalty_tier == "Silver"

    second = desk.check_in(guest(today + timedelta(days=10), check_out_date=today + timedelta(days=12),
                                 room_rate=4000))
    assert second.is_existing
    assert second.loyalty_discount == 5
    assert second.discount_amount == pytest.approx(400)
    assert second.booking.loyalty_discount_amount == pytest.approx(400)
    assert second.booking.status == "confirmed"
    assert second.customer.total_spent == pytest.approx(15000 + 7600)
    assert second.customer.total_bookings == 2


def test_deleting_a_booking_keeps_customer_totals(desk, today):
    result = desk.check_in(guest(today))
    assert desk.ledger.delete(result.booking.id)
    customer = desk.customers.get(result.customer.id)
    assert customer.total_spent == 7000
    assert customer.total_bookings == 1
    assert customer.loyalty_points == 70


def test_check_in_does_not_recheck_availability(desk, today):
    desk.check_in(guest(today))
    available = desk.rooms.available_rooms(today, today + timedelta(days=1), "deluxe")
    assert "301" not in {r.room_number for r in available}

    # Same room, same dates, different guest: accepted
    clash = desk.check_in(guest(today, customer_phone="9000011111", customer_email="other@example.com"))
    assert clash.booking.room_number == "301"
    assert len(desk.rooms.assignments()) == 1
    assert len([b for b in desk.ledger.active_bookings() if b.room_number == "301"]) == 2


def test_check_out_flow(desk, today):
    booking = desk.check_in(guest(today)).booking
    done = desk.check_out(booking.id, CheckoutRequest(actual_check_out_date=today + timedelta(days=2), nights=2))
    assert done.bill.grand_total == pytest.approx(7000 * 1.12)
    assert done.effective_check_out == today + timedelta(days=2)
    assert desk.check_out(12345, CheckoutRequest(actual_check_out_date=today)) is None


def test_report_rejects_inverted_range(desk):
    with pytest.raises(InvalidInput):
        desk.report(date(2026, 5, 1), date(2026, 4, 1))
