# backend/models/cart.py
from sqlalchemy import Column, String, DateTime, JSON, func
from database import Base

# Serialized cart contents for one client session
class CartSession(Base):
    __tablename__ = "cart_sessions" # Table name

    session_id = Column(String(64), primary_key=True) # Value of the cart cookie
    items = Column(JSON, nullable=False, default=list) # List of cart line dicts, in insertion order
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True) # Blob reads as empty after this
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
