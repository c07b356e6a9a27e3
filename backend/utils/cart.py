# backend/utils/cart.py
import abc
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from models.cart import CartSession
from schemas.cart import CartItem

logger = logging.getLogger(__name__)


class CartStore(abc.ABC):
    """Session-keyed storage for serialized carts."""

    @abc.abstractmethod
    def get(self, session_id: str) -> List[CartItem]:
        ...

    @abc.abstractmethod
    def set(self, session_id: str, items: List[CartItem]) -> None:
        ...

    @abc.abstractmethod
    def delete(self, session_id: str) -> None:
        ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlCartStore(CartStore):
    """Keeps each cart as a JSON blob in ``cart_sessions`` with a fixed expiry window."""

    def __init__(self, db: Session, ttl_days: int = 7):
        self.db = db
        self.ttl = timedelta(days=ttl_days)

    def get(self, session_id: str) -> List[CartItem]:
        row = self.db.get(CartSession, session_id)
        if not row:
            return []
        if _as_utc(row.expires_at) <= datetime.now(timezone.utc):
            return []
        items = []
        for raw in row.items or []:
            try:
                items.append(CartItem.model_validate(raw))
            except ValueError:
                # A corrupted line should not take the whole cart down
                logger.warning("Dropping unreadable cart line in session %s", session_id)
        return items

    def set(self, session_id: str, items: List[CartItem]) -> None:
        expires_at = datetime.now(timezone.utc) + self.ttl
        payload = [item.model_dump() for item in items]
        row = self.db.get(CartSession, session_id)
        if row:
            row.items = payload
            row.expires_at = expires_at
        else:
            self.db.add(CartSession(session_id=session_id, items=payload, expires_at=expires_at))
        self.db.commit()

    def delete(self, session_id: str) -> None:
        row = self.db.get(CartSession, session_id)
        if row:
            self.db.delete(row)
            self.db.commit()


def _find(items: List[CartItem], product_id: int, size: str, color: str) -> Optional[int]:
    for idx, item in enumerate(items):
        if item.key == (product_id, size, color):
            return idx
    return None


def merge_item(items: List[CartItem], new_item: CartItem) -> List[CartItem]:
    """Add a line, or merge it into the line with the same (product, size, color).

    A merged quantity is clamped to the stock snapshot of the existing line,
    which may be stale relative to live inventory.
    """
    items = list(items)
    idx = _find(items, new_item.product_id, new_item.size, new_item.color)
    if idx is None:
        items.append(new_item)
        return items

    existing = items[idx]
    quantity = min(existing.quantity + new_item.quantity, existing.stock)
    items[idx] = existing.model_copy(update={"quantity": quantity})
    return items


def set_quantity(items: List[CartItem], product_id: int, size: str, color: str, quantity: int) -> List[CartItem]:
    items = list(items)
    idx = _find(items, product_id, size, color)
    if idx is None:
        return items
    if quantity <= 0:
        del items[idx]
    else:
        items[idx] = items[idx].model_copy(update={"quantity": min(quantity, items[idx].stock)})
    return items


def drop_item(items: List[CartItem], product_id: int, size: str, color: str) -> List[CartItem]:
    return [item for item in items if item.key != (product_id, size, color)]


class SessionCart:
    """The cart of one client session on top of a CartStore. Last write wins."""

    def __init__(self, store: CartStore, session_id: str):
        self.store = store
        self.session_id = session_id

    def get(self) -> List[CartItem]:
        return self.store.get(self.session_id)

    def add(self, item: CartItem) -> List[CartItem]:
        items = merge_item(self.get(), item)
        self.store.set(self.session_id, items)
        return items

    def update(self, product_id: int, size: str, color: str, quantity: int) -> List[CartItem]:
        items = set_quantity(self.get(), product_id, size, color, quantity)
        self.store.set(self.session_id, items)
        return items

    def remove(self, product_id: int, size: str, color: str) -> List[CartItem]:
        items = drop_item(self.get(), product_id, size, color)
        self.store.set(self.session_id, items)
        return items

    def clear(self) -> None:
        self.store.delete(self.session_id)
