# backend/schemas/cms.py
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from schemas.product import ORMBase


class HeroSectionIn(ORMBase):
    title: str = Field(min_length=1, max_length=200)
    subtitle: Optional[str] = None
    image: Optional[str] = None
    cta_text: Optional[str] = Field(None, max_length=100)
    cta_link: Optional[str] = None


class HeroSectionOut(HeroSectionIn):
    id: int
    active: bool
    updated_at: Optional[datetime] = None


class BannerIn(ORMBase):
    """Create and update share this schema; fields left out of an update keep their value."""
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("active")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class BannerOut(ORMBase):
    id: int
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    active: bool
    position: int


class SiteSettingsIn(ORMBase):
    site_name: str = Field(min_length=1, max_length=100)
    logo: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None


class SiteSettingsOut(ORMBase):
    site_name: str
    logo: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    updated_at: Optional[datetime] = None
