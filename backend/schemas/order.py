from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, PaymentStatus


# Line item as submitted at checkout (normally a copy of a cart line)
class OrderItemIn(BaseModel):
    product_id: int
    title: str
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    size: str
    color: str
    image: str = ""


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


# Input schema for placing an order
class OrderCreatePayload(BaseModel):
    items: List[OrderItemIn]
    shipping_address: ShippingAddress
    payment_method: str = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def _not_empty(cls, v):
        if not v:
            raise ValueError("Order must have at least one item")
        return v


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    title: str
    price: float
    quantity: int
    size: str
    color: str
    image: str
    line_total: float


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    items: List[OrderItemOut]
    shipping_address: ShippingAddress
    payment_method: str
    payment_status: PaymentStatus
    order_status: OrderStatus
    subtotal: float
    tax: float
    shipping_cost: float
    total: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Result of a successful checkout
class OrderCreateResult(BaseModel):
    success: bool = True
    order: OrderResponse


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int
    pages: int


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus
