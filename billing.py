import math
from datetime import date

from schemas import Bill

# GST on hotel accommodation, split evenly between centre and state
GST_RATE = 0.12
CGST_RATE = GST_RATE / 2
SGST_RATE = GST_RATE / 2


def compute_bill(rate: float, nights: int, additional_charges: float = 0, discount: float = 0) -> Bill:
    """
    Tax-inclusive bill for a stay.

    Inputs are not validated here; nights >= 1 and non-negative charges are
    enforced by the request models.
    """
    room_charges = rate * nights
    total_before_tax = room_charges + additional_charges - discount
    cgst = total_before_tax * CGST_RATE
    sgst = total_before_tax * SGST_RATE
    total_tax = cgst + sgst
    return Bill(
        room_charges=room_charges,
        additional_charges=additional_charges,
        discount=discount,
        total_before_tax=total_before_tax,
        cgst=cgst,
        sgst=sgst,
        total_tax=total_tax,
        grand_total=total_before_tax + total_tax,
    )


def nights_between(check_in: date, check_out: date) -> int:
    """Whole nights between two dates, never less than one."""
    return max(1, math.ceil((check_out - check_in).days))
