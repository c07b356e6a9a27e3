# backend/utils/pricing.py
from typing import Iterable

TAX_RATE = 0.10
FREE_SHIPPING_THRESHOLD = 100.0 # Subtotal must be strictly above this
FLAT_SHIPPING = 10.0


def _money(value: float) -> float:
    return round(value, 2)


def calculate_totals(items: Iterable) -> dict:
    """
    Derive subtotal, tax, shipping and total from priced line items.

    Accepts anything with ``price`` and ``quantity`` attributes (cart lines,
    checkout lines). Both the cart view and the order commit go through this
    function, so the totals a customer sees are the totals that get stored.
    Each amount is rounded to cents and total is summed from the rounded parts.
    """
    subtotal = _money(sum(item.price * item.quantity for item in items))
    tax = _money(subtotal * TAX_RATE)
    shipping = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING
    total = _money(subtotal + tax + shipping)

    return {"subtotal": subtotal, "tax": tax, "shipping": shipping, "total": total}
