# backend/routes/orders.py
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.order import Order, OrderStatus
from models.users import User
from routes.cart import cart_session_id
from schemas.order import (
    OrderCreatePayload, OrderCreateResult, OrderItemOut, OrderResponse,
    OrdersPage, OrderStatusPatch, ShippingAddress,
)
from utils.audit import write_log
from utils.cart import SessionCart, SqlCartStore
from utils.checkout import change_order_status, create_order, load_order
from utils.errors import NotFoundError, UnauthorizedError
from utils.tokenJWT import get_current_user, get_optional_user, is_admin, require_admin

router = APIRouter(prefix="/orders", tags=["Orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["Admin"])


# Map Order model to OrderResponse schema
def _order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = [
        OrderItemOut(
            product_id=it.product_id,
            title=it.title,
            price=it.price,
            quantity=it.quantity,
            size=it.size,
            color=it.color,
            image=it.image or "",
            line_total=round(it.price * it.quantity, 2),
        )
        for it in order.items
    ]
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        user_id=order.user_id,
        items=items,
        shipping_address=ShippingAddress(
            full_name=order.shipping_full_name,
            email=order.shipping_email,
            phone=order.shipping_phone,
            address=order.shipping_address,
            city=order.shipping_city,
            state=order.shipping_state,
            zip_code=order.shipping_zip_code,
            country=order.shipping_country,
        ),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        order_status=order.order_status,
        subtotal=order.subtotal,
        tax=order.tax,
        shipping_cost=order.shipping_cost,
        total=order.total,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


# Place an order (guest or signed-in). Send Idempotency-Key to make retries safe.
@router.post("", response_model=OrderCreateResult, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    session_id = cart_session_id(request)
    order, created = create_order(
        db, payload, user=current_user, request_token=idempotency_key, session_id=session_id,
    )

    if created:
        # The cart is consumed by a successful checkout
        if session_id:
            settings = request.app.state.settings
            SessionCart(SqlCartStore(db, ttl_days=settings.CART_TTL_DAYS), session_id).clear()

        write_log(db, user_id=order.user_id, action="ORDER_CREATE", resource="orders", request=request,
                  meta={"order_id": order.id, "order_number": order.order_number, "total": order.total})

    return OrderCreateResult(success=True, order=_order_to_out(order))


# Orders of the signed-in user, newest first
@router.get("/mine", response_model=List[OrderResponse])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return [_order_to_out(o) for o in rows]


# Public lookup used by the order confirmation page
@router.get("/number/{order_number}", response_model=OrderResponse)
def get_order_by_number(order_number: str, db: Session = Depends(get_db)):
    order = load_order(db, order_number=order_number)
    if not order:
        raise NotFoundError("Order")
    return _order_to_out(order)


# Order detail for its owner or an admin
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    order = load_order(db, id=order_id)
    if not order:
        raise NotFoundError("Order")
    if current_user is None:
        raise UnauthorizedError()
    if not is_admin(current_user) and order.user_id != current_user.id:
        raise UnauthorizedError()
    return _order_to_out(order)


@admin_router.get("", response_model=OrdersPage)
def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    user_id: Optional[int] = Query(None, description="Filter by customer"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(Order).options(selectinload(Order.items))
    if status is not None:
        q = q.filter(Order.order_status == status)
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)

    total = q.count()
    rows = (
        q.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "items": [_order_to_out(o) for o in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": math.ceil(total / page_size),
    }


# Move an order along its lifecycle (admin only)
@admin_router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    order = load_order(db, id=order_id)
    if not order:
        raise NotFoundError("Order")

    old_status = change_order_status(db, order, payload.status)
    write_log(db, user_id=admin.id, action="ORDER_STATUS_CHANGE", resource="orders", request=request,
              meta={"order_id": order.id, "old": old_status.value, "new": payload.status.value})

    return _order_to_out(load_order(db, id=order_id))
