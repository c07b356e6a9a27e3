# backend/routes/cart.py
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.catalog import Product, ProductVariant
from models.users import User
from schemas.cart import CartAddItem, CartItem, CartLineKey, CartOut, CartUpdateItem
from utils.audit import write_log
from utils.cart import SessionCart, SqlCartStore
from utils.errors import BadRequestError, NotFoundError
from utils.pricing import calculate_totals
from utils.tokenJWT import get_optional_user

router = APIRouter(prefix="/cart", tags=["Cart"])


def cart_session_id(request: Request) -> Optional[str]:
    return request.cookies.get(request.app.state.settings.CART_COOKIE_NAME)


# Resolve (or start) the caller's cart session and keep the cookie alive
def get_session_cart(request: Request, response: Response, db: Session = Depends(get_db)) -> SessionCart:
    settings = request.app.state.settings
    session_id = cart_session_id(request) or uuid.uuid4().hex
    response.set_cookie(
        settings.CART_COOKIE_NAME,
        session_id,
        max_age=settings.CART_TTL_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return SessionCart(SqlCartStore(db, ttl_days=settings.CART_TTL_DAYS), session_id)


def _cart_to_out(items: List[CartItem]) -> CartOut:
    totals = calculate_totals(items)
    return CartOut(items=items, item_count=sum(i.quantity for i in items), **totals)


def _user_id(user: Optional[User]):
    return user.id if user else None


@router.get("", response_model=CartOut)
def get_cart(cart: SessionCart = Depends(get_session_cart)):
    return _cart_to_out(cart.get())


@router.post("/items", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    cart: SessionCart = Depends(get_session_cart),
    current_user: Optional[User] = Depends(get_optional_user),
):
    product = db.get(Product, payload.product_id)
    if not product:
        raise NotFoundError("Product")

    variant = db.query(ProductVariant).filter(
        ProductVariant.product_id == product.id,
        ProductVariant.size == payload.size,
        ProductVariant.color == payload.color,
    ).first()
    if not variant:
        raise NotFoundError("Variant")
    if variant.stock <= 0:
        raise BadRequestError("Insufficient stock")

    # Price and stock are captured now and not refreshed while the line lives in the cart
    item = CartItem(
        product_id=product.id,
        title=product.title,
        slug=product.slug,
        price=product.price,
        quantity=min(payload.quantity, variant.stock),
        size=variant.size,
        color=variant.color,
        image=(product.images or [""])[0],
        stock=variant.stock,
    )
    out = _cart_to_out(cart.add(item))

    write_log(db, user_id=_user_id(current_user), action="CART_ADD", resource="cart", request=request,
              meta={"product_id": product.id, "size": payload.size, "color": payload.color,
                    "qty": payload.quantity, "cart_items": len(out.items), "total": out.total})
    return out


@router.put("/items", response_model=CartOut)
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    cart: SessionCart = Depends(get_session_cart),
    current_user: Optional[User] = Depends(get_optional_user),
):
    out = _cart_to_out(cart.update(payload.product_id, payload.size, payload.color, payload.quantity))
    write_log(db, user_id=_user_id(current_user), action="CART_UPDATE", resource="cart", request=request,
              meta={"product_id": payload.product_id, "qty": payload.quantity, "total": out.total})
    return out


@router.delete("/items", response_model=CartOut)
def remove_cart_item(
    payload: CartLineKey,
    request: Request,
    db: Session = Depends(get_db),
    cart: SessionCart = Depends(get_session_cart),
    current_user: Optional[User] = Depends(get_optional_user),
):
    out = _cart_to_out(cart.remove(payload.product_id, payload.size, payload.color))
    write_log(db, user_id=_user_id(current_user), action="CART_REMOVE", resource="cart", request=request,
              meta={"product_id": payload.product_id, "cart_items": len(out.items), "total": out.total})
    return out


@router.delete("", response_model=CartOut)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    cart: SessionCart = Depends(get_session_cart),
    current_user: Optional[User] = Depends(get_optional_user),
):
    cart.clear()
    write_log(db, user_id=_user_id(current_user), action="CART_CLEAR", resource="cart", request=request)
    return _cart_to_out([])
