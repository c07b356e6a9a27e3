# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Variant(ORMBase):
    size: str = Field(min_length=1)
    color: str = Field(min_length=1)
    stock: int = Field(default=0, ge=0)


# Schema for creating a new product
class ProductCreate(ORMBase):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    price: float = Field(gt=0)
    category: str = Field(min_length=1)
    collection_id: Optional[int] = None
    images: List[str] = Field(min_length=1)
    variants: List[Variant] = Field(default_factory=list)
    featured: bool = False


# Schema for partial product updates
class ProductUpdate(ORMBase):
    """Schema for PATCH requests - all fields optional. Variants, when given, replace the whole list."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    collection_id: Optional[int] = None
    images: Optional[List[str]] = Field(None, min_length=1)
    variants: Optional[List[Variant]] = None
    featured: Optional[bool] = None

    # May be omitted, but not sent as null
    @field_validator("title", "description", "price", "category", "images", "variants", "featured")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


# Full product representation including ID and derived size/color lists
class ProductOut(ORMBase):
    id: int
    title: str
    description: str
    price: float
    category: str
    collection_id: Optional[int] = None
    images: List[str]
    variants: List[Variant]
    sizes: List[str]
    colors: List[str]
    featured: bool
    slug: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
    pages: int


class CollectionCreate(ORMBase):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    slug: str = Field(min_length=1)
    image: Optional[str] = None
    featured: bool = False


class CollectionUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    slug: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    featured: Optional[bool] = None

    @field_validator("name", "slug", "featured")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class CollectionOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    slug: str
    image: Optional[str] = None
    featured: bool


class CollectionDetail(CollectionOut):
    products: List[ProductOut]
