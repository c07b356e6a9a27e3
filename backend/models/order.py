# backend/models/order.py
import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True) # NULL for guest checkout
    order_number = Column(String, unique=True, nullable=False, index=True)

    # SHA-256 of caller scope + request token, guards against duplicate submission
    idempotency_key = Column(String(64), unique=True, nullable=True, index=True)
    # SHA-256 of the submitted payload; a replay must match it
    request_fingerprint = Column(String(64), nullable=True)

    payment_method = Column(String, nullable=False)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    order_status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)

    # Totals as computed at commit time
    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False, default=0)
    shipping_cost = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False)

    # Shipping address details
    shipping_full_name = Column(String, nullable=False)
    shipping_email = Column(String, nullable=False)
    shipping_phone = Column(String, nullable=False)
    shipping_address = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_state = Column(String, nullable=False)
    shipping_zip_code = Column(String, nullable=False)
    shipping_country = Column(String, nullable=False)

    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    user = relationship("User")


# Frozen copy of a cart line. product_id is kept for reference only,
# the remaining columns never follow later catalog edits.
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    size = Column(String, nullable=False)
    color = Column(String, nullable=False)
    image = Column(String, nullable=False, default="")

    order = relationship("Order", back_populates="items")
