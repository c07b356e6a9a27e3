# backend/utils/inventory.py
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.catalog import Product, ProductVariant
from utils.errors import InsufficientStockError, NotFoundError

logger = logging.getLogger(__name__)


def decrement_variant_stock(db: Session, product_id: int, size: str, color: str, quantity: int) -> None:
    """
    Take ``quantity`` units off the matching variant in a single conditional UPDATE.

    The row only changes when it still holds at least ``quantity`` units, so two
    concurrent checkouts can never drive stock below zero. Nothing is committed
    here; the caller owns the transaction and rolls back on error.
    """
    result = db.execute(
        update(ProductVariant)
        .where(
            ProductVariant.product_id == product_id,
            ProductVariant.size == size,
            ProductVariant.color == color,
            ProductVariant.stock >= quantity,
        )
        .values(stock=ProductVariant.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    # Nothing matched: work out why for the error message
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product")

    variant = (
        db.query(ProductVariant)
        .filter(
            ProductVariant.product_id == product_id,
            ProductVariant.size == size,
            ProductVariant.color == color,
        )
        .first()
    )
    if not variant:
        raise NotFoundError(f"Variant {size}/{color} for {product.title}")

    logger.info(
        "Stock check failed for product %s (%s/%s): requested %s, available %s",
        product_id, size, color, quantity, variant.stock,
    )
    raise InsufficientStockError(f"Insufficient stock for {product.title} ({size}/{color})")


def adjust_inventory(db: Session, items) -> None:
    # Sequential, inside the caller's transaction
    for item in items:
        decrement_variant_stock(db, item.product_id, item.size, item.color, item.quantity)
