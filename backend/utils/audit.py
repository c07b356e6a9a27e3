# backend/utils/audit.py
import logging
from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host

# Persist an audit entry; pass commit=False to ride along with the caller's transaction
def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", request=None, meta=None, commit=True):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=client_ip(request), meta=meta or {})
    db.add(entry)
    if commit:
        db.commit()
    logger.debug("audit %s %s %s user=%s", action, resource, status, user_id)
