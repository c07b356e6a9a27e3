from pydantic import BaseModel, Field
from typing import List


# A single line of the session cart, as stored in the cart blob.
# price and stock are snapshots taken when the line was first added.
class CartItem(BaseModel):
    product_id: int
    title: str
    slug: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=0)
    size: str
    color: str
    image: str = ""
    stock: int = Field(ge=0)

    @property
    def key(self):
        return (self.product_id, self.size, self.color)


# Identifies a cart line by its uniqueness key
class CartLineKey(BaseModel):
    product_id: int
    size: str
    color: str


# Request schema for adding a variant to the cart
class CartAddItem(CartLineKey):
    quantity: int = Field(default=1, gt=0)


# Request schema for changing a line's quantity (zero or less removes it)
class CartUpdateItem(CartLineKey):
    quantity: int


class CartTotals(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    total: float


# Response schema for the entire cart summary
class CartOut(CartTotals):
    items: List[CartItem]
    item_count: int
