# backend/models/catalog.py
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, ForeignKey, DateTime, JSON,
    CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# Groups products for merchandising (e.g. "Summer", "Essentials")
class Collection(Base):
    __tablename__ = "collections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String, nullable=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    image = Column(String, nullable=True)
    featured = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    products = relationship("Product", back_populates="collection")


# Catalog entry. Stock is kept per (size, color) variant, not on the product.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(String, nullable=False)
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    collection_id = Column(Integer, ForeignKey("collections.id", ondelete="SET NULL"), nullable=True, index=True)
    images = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, default=False, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    collection = relationship("Collection", back_populates="products")
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.position",
    )

    @property
    def sizes(self):
        return list(dict.fromkeys(v.size for v in self.variants))

    @property
    def colors(self):
        return list(dict.fromkeys(v.color for v in self.variants))


# A sellable (size, color) combination with its own stock level
class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0) # Keeps the admin-defined ordering
    size = Column(String, nullable=False)
    color = Column(String, nullable=False)
    stock = Column(Integer, CheckConstraint("stock >= 0", name="ck_variant_stock_non_negative"), nullable=False, default=0)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        UniqueConstraint("product_id", "size", "color", name="uq_variant_product_size_color"),
    )
