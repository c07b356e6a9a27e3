# backend/routes/logs.py
import math
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from models.users import User
from utils.errors import BadRequestError
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/admin/logs", tags=["Admin"])


class LogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Any] = None


class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int
    pages: int


def _parse_day(value: str, end_of_day: bool = False) -> datetime:
    try:
        if len(value) == 10 and end_of_day:  # YYYY-MM-DD covers the whole day
            value += " 23:59:59"
        return datetime.fromisoformat(value)
    except ValueError:
        raise BadRequestError(f"Invalid date: {value}")


# Audit trail of cart, checkout and catalog activity (admin only)
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action, e.g. ORDER_CREATE"),
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action == action.upper())
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource == resource)
    if status:
        query = query.filter(Log.status == status.upper())
    if date_from:
        query = query.filter(Log.ts >= _parse_day(date_from))
    if date_to:
        query = query.filter(Log.ts <= _parse_day(date_to, end_of_day=True))

    query = query.order_by(Log.ts.desc(), Log.id.desc())

    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": rows,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": math.ceil(total / page_size),
    }
