# backend/utils/checkout.py
import hashlib
import json
import logging
import secrets
import time
from typing import Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from models.catalog import Product
from models.order import Order, OrderItem, OrderStatus, PaymentStatus
from models.users import User
from schemas.order import OrderCreatePayload
from utils.errors import BadRequestError, ConflictError, NotFoundError
from utils.inventory import adjust_inventory
from utils.pricing import calculate_totals

logger = logging.getLogger(__name__)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# Allowed admin transitions. Nothing here restocks inventory.
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """ORD-<ms timestamp>-<6 random chars>, both base36. Unique enough, not guaranteed."""
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"ORD-{timestamp}-{random_part}"


def idempotency_key(token: Optional[str], scope: Optional[str]) -> Optional[str]:
    """Hash of the caller scope and request token; None when either is missing."""
    if not token or not token.strip() or not scope:
        return None
    return hashlib.sha256(f"{scope}:{token.strip()}".encode("utf-8")).hexdigest()


def caller_scope(user: Optional[User] = None, session_id: Optional[str] = None) -> Optional[str]:
    if user is not None:
        return f"user:{user.id}"
    if session_id:
        return f"session:{session_id}"
    return None


def payload_fingerprint(payload: OrderCreatePayload) -> str:
    body = json.dumps(payload.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


def load_order(db: Session, **filters) -> Optional[Order]:
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter_by(**filters)
        .first()
    )


def _check_prices(db: Session, payload: OrderCreatePayload) -> Dict[int, Product]:
    # Submitted prices must still match the catalog
    products: Dict[int, Product] = {}
    for item in payload.items:
        product = products.get(item.product_id) or db.get(Product, item.product_id)
        if not product:
            raise NotFoundError("Product")
        if round(product.price, 2) != round(item.price, 2):
            raise ConflictError(f"Price of {product.title} has changed")
        products[product.id] = product
    return products


def _replay(existing: Order, fingerprint: str) -> Tuple[Order, bool]:
    if existing.request_fingerprint != fingerprint:
        raise ConflictError("Idempotency-Key was already used for a different order")
    logger.info("Replaying order %s for repeated request token", existing.order_number)
    return existing, False


def create_order(
    db: Session,
    payload: OrderCreatePayload,
    user: Optional[User] = None,
    request_token: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Tuple[Order, bool]:
    """
    Place an order in a single transaction.

    Steps: replay check, price check, totals, per-line conditional stock
    decrement, insert. Any failure rolls back every decrement made for this
    order. Returns ``(order, created)``; ``created`` is False when the request
    token matched an order that already exists.

    The request token is scoped to the signed-in user, or to the cart
    session for guests. A guest without a cart session gets no replay
    protection. Reusing a token with a different payload is a conflict.
    """
    key = idempotency_key(request_token, caller_scope(user, session_id))
    fingerprint = payload_fingerprint(payload)
    if key:
        existing = load_order(db, idempotency_key=key)
        if existing:
            return _replay(existing, fingerprint)

    address = payload.shipping_address
    try:
        products = _check_prices(db, payload)
        totals = calculate_totals(payload.items)
        adjust_inventory(db, payload.items)

        order = Order(
            user_id=user.id if user else None,
            order_number=generate_order_number(),
            idempotency_key=key,
            request_fingerprint=fingerprint if key else None,
            payment_method=payload.payment_method,
            payment_status=PaymentStatus.PENDING,
            order_status=OrderStatus.PENDING,
            subtotal=totals["subtotal"],
            tax=totals["tax"],
            shipping_cost=totals["shipping"],
            total=totals["total"],
            shipping_full_name=address.full_name,
            shipping_email=address.email,
            shipping_phone=address.phone,
            shipping_address=address.address,
            shipping_city=address.city,
            shipping_state=address.state,
            shipping_zip_code=address.zip_code,
            shipping_country=address.country,
            # Title and image come from the catalog, not from the request
            items=[
                OrderItem(
                    product_id=it.product_id,
                    title=products[it.product_id].title,
                    price=it.price,
                    quantity=it.quantity,
                    size=it.size,
                    color=it.color,
                    image=(products[it.product_id].images or [""])[0],
                )
                for it in payload.items
            ],
        )
        db.add(order)
        db.commit()
    except IntegrityError:
        db.rollback()
        # Lost a race against a concurrent submission with the same token
        if key:
            existing = load_order(db, idempotency_key=key)
            if existing:
                return _replay(existing, fingerprint)
        raise
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Order %s placed: %d items, total %.2f, user=%s",
        order.order_number, len(payload.items), order.total, order.user_id or "guest",
    )
    return load_order(db, id=order.id), True


def change_order_status(db: Session, order: Order, new_status: OrderStatus) -> OrderStatus:
    old_status = OrderStatus(order.order_status)
    if new_status == old_status:
        return old_status
    if new_status not in ORDER_TRANSITIONS[old_status]:
        raise BadRequestError(f"Cannot change status from {old_status.value} to {new_status.value}")
    order.order_status = new_status
    db.commit()
    return old_status
