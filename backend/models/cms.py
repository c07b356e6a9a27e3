# backend/models/cms.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from database import Base


# Homepage hero block. Only one row is active at a time.
class HeroSection(Base):
    __tablename__ = "hero_sections"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    subtitle = Column(String, nullable=True)
    image = Column(String, nullable=True)
    cta_text = Column(String(100), nullable=True)
    cta_link = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Banner(Base):
    __tablename__ = "banners"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String, nullable=True)
    image = Column(String, nullable=True)
    link = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0) # Display order on the homepage
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# Single-row table with shop-wide contact details and social links
class SiteSettings(Base):
    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True, index=True)
    site_name = Column(String(100), nullable=False, default="Fashion Store")
    logo = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    facebook = Column(String, nullable=True)
    instagram = Column(String, nullable=True)
    twitter = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
