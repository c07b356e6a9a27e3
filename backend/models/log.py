# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base


# One row per storefront or admin action (cart edits, checkout, catalog and CMS changes)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # NULL for guests; kept when the account is removed
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(50), index=True)     # e.g. CART_ADD, ORDER_CREATE
    resource = Column(String(50), index=True)   # cart, orders, products, cms ...
    status = Column(String(20), index=True, default="SUCCESS")  # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Order number, product id, changed fields and similar
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
