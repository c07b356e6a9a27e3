# backend/routes/collections.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.catalog import Collection, Product
from models.users import User
import schemas.product as product_schemas
from utils.audit import write_log
from utils.errors import ConflictError, NotFoundError
from utils.tokenJWT import require_admin

router = APIRouter(tags=["Collections"])


def _slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Collection.id).filter(Collection.slug == slug)
    if exclude_id is not None:
        q = q.filter(Collection.id != exclude_id)
    return q.first() is not None


def _with_products(db: Session, **filters) -> Optional[Collection]:
    return (
        db.query(Collection)
        .options(selectinload(Collection.products).selectinload(Product.variants))
        .filter_by(**filters)
        .first()
    )


@router.get("/collections", response_model=List[product_schemas.CollectionOut])
def list_collections(
    featured: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    q = db.query(Collection)
    if featured is not None:
        q = q.filter(Collection.featured == featured)
    return q.order_by(Collection.created_at.desc(), Collection.id.desc()).all()


@router.get("/collections/{slug}", response_model=product_schemas.CollectionDetail)
def get_collection_by_slug(slug: str, db: Session = Depends(get_db)):
    collection = _with_products(db, slug=slug)
    if not collection:
        raise NotFoundError("Collection")
    return collection


@router.get("/admin/collections/{collection_id}", response_model=product_schemas.CollectionDetail)
def get_collection_by_id(
    collection_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    collection = _with_products(db, id=collection_id)
    if not collection:
        raise NotFoundError("Collection")
    return collection


@router.post("/admin/collections", response_model=product_schemas.CollectionOut, status_code=status.HTTP_201_CREATED)
def create_collection(
    payload: product_schemas.CollectionCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if _slug_taken(db, payload.slug):
        raise ConflictError("A collection with this slug already exists")

    collection = Collection(**payload.model_dump())
    db.add(collection)
    db.commit()
    db.refresh(collection)

    write_log(db, user_id=admin.id, action="COLLECTION_CREATE", resource="collections", request=request,
              meta={"collection_id": collection.id, "slug": collection.slug})
    return collection


@router.patch("/admin/collections/{collection_id}", response_model=product_schemas.CollectionOut)
def update_collection(
    collection_id: int,
    payload: product_schemas.CollectionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    collection = db.get(Collection, collection_id)
    if not collection:
        raise NotFoundError("Collection")

    changes = payload.model_dump(exclude_unset=True)
    if "slug" in changes and _slug_taken(db, changes["slug"], exclude_id=collection_id):
        raise ConflictError("A collection with this slug already exists")

    for field, value in changes.items():
        setattr(collection, field, value)
    db.commit()
    db.refresh(collection)

    write_log(db, user_id=admin.id, action="COLLECTION_UPDATE", resource="collections", request=request,
              meta={"collection_id": collection_id, "fields": sorted(changes)})
    return collection


# Products of a deleted collection stay in the catalog, unassigned
@router.delete("/admin/collections/{collection_id}")
def delete_collection(
    collection_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    collection = db.get(Collection, collection_id)
    if not collection:
        raise NotFoundError("Collection")

    db.query(Product).filter(Product.collection_id == collection_id).update(
        {Product.collection_id: None}, synchronize_session=False
    )
    db.delete(collection)
    db.commit()

    write_log(db, user_id=admin.id, action="COLLECTION_DELETE", resource="collections", request=request,
              meta={"collection_id": collection_id})
    return {"success": True}
