# backend/routes/products.py
import math
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.catalog import Collection, Product, ProductVariant
from models.users import User
import schemas.product as product_schemas
from utils.audit import write_log
from utils.errors import ConflictError, NotFoundError
from utils.text import slugify
from utils.tokenJWT import require_admin

router = APIRouter(tags=["Products"])


# ---- HELPERS ----
def _slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Product.id).filter(Product.slug == slug)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


def _check_collection(db: Session, collection_id: Optional[int]):
    if collection_id is not None and not db.get(Collection, collection_id):
        raise NotFoundError("Collection")


def _build_variants(variants: List[product_schemas.Variant]) -> List[ProductVariant]:
    seen = set()
    rows = []
    for position, v in enumerate(variants):
        if (v.size, v.color) in seen:
            raise ConflictError(f"Duplicate variant {v.size}/{v.color}")
        seen.add((v.size, v.color))
        rows.append(ProductVariant(position=position, size=v.size, color=v.color, stock=v.stock))
    return rows


def _get_product(db: Session, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.id == product_id)
        .first()
    )
    if not product:
        raise NotFoundError("Product")
    return product


# =========================
# STOREFRONT
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    category: Optional[str] = Query(None),
    collection_id: Optional[int] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search in title and description"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sizes: Optional[List[str]] = Query(None),
    colors: Optional[List[str]] = Query(None),
    sort: Literal["newest", "price-asc", "price-desc", "name"] = "newest",
    db: Session = Depends(get_db),
):
    query = db.query(Product).options(selectinload(Product.variants))

    if category:
        query = query.filter(Product.category == category)
    if collection_id is not None:
        query = query.filter(Product.collection_id == collection_id)
    if featured is not None:
        query = query.filter(Product.featured == featured)
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Product.title.ilike(like), Product.description.ilike(like)))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if sizes:
        query = query.filter(Product.variants.any(ProductVariant.size.in_(sizes)))
    if colors:
        query = query.filter(Product.variants.any(ProductVariant.color.in_(colors)))

    sort_map = {
        "newest": (Product.created_at.desc(), Product.id.desc()),
        "price-asc": (Product.price.asc(), Product.id.asc()),
        "price-desc": (Product.price.desc(), Product.id.desc()),
        "name": (Product.title.asc(), Product.id.asc()),
    }
    query = query.order_by(*sort_map[sort])

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": math.ceil(total / page_size),
    }


@router.get("/products/categories", response_model=List[str])
def get_categories(db: Session = Depends(get_db)):
    rows = db.query(Product.category).distinct().order_by(Product.category).all()
    return [r[0] for r in rows]


@router.get("/products/{slug}", response_model=product_schemas.ProductOut)
def get_product_by_slug(slug: str, db: Session = Depends(get_db)):
    product = (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.slug == slug)
        .first()
    )
    if not product:
        raise NotFoundError("Product")
    return product


# =========================
# ADMIN
# =========================
@router.get("/admin/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product_by_id(
    product_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _get_product(db, product_id)


@router.post("/admin/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    slug = slugify(payload.title)
    if _slug_taken(db, slug):
        raise ConflictError("A product with this title already exists")
    _check_collection(db, payload.collection_id)

    data = payload.model_dump(exclude={"variants"})
    product = Product(**data, slug=slug, variants=_build_variants(payload.variants))
    db.add(product)
    db.commit()

    write_log(db, user_id=admin.id, action="PRODUCT_CREATE", resource="products", request=request,
              meta={"product_id": product.id, "slug": slug})
    return _get_product(db, product.id)


@router.patch("/admin/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = _get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "title" in changes:
        slug = slugify(changes["title"])
        if _slug_taken(db, slug, exclude_id=product.id):
            raise ConflictError("A product with this title already exists")
        product.slug = slug
    if "collection_id" in changes:
        _check_collection(db, changes["collection_id"])

    variants = changes.pop("variants", None)
    for field, value in changes.items():
        setattr(product, field, value)
    if variants is not None:
        # Replace wholesale; flush the deletes first so the (size, color) unique key is free
        product.variants.clear()
        db.flush()
        product.variants.extend(_build_variants(payload.variants))

    db.commit()
    write_log(db, user_id=admin.id, action="PRODUCT_UPDATE", resource="products", request=request,
              meta={"product_id": product_id, "fields": sorted(payload.model_fields_set)})
    return _get_product(db, product_id)


@router.delete("/admin/products/{product_id}", status_code=status.HTTP_200_OK)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = _get_product(db, product_id)
    db.delete(product)
    db.commit()

    write_log(db, user_id=admin.id, action="PRODUCT_DELETE", resource="products", request=request,
              meta={"product_id": product_id})
    return {"success": True}
