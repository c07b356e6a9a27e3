# backend/routes/cms.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.cms import Banner, HeroSection, SiteSettings
from models.users import User
import schemas.cms as cms_schemas
from utils.audit import write_log
from utils.errors import NotFoundError
from utils.tokenJWT import require_admin

router = APIRouter(tags=["CMS"])


# --- Hero section ---

@router.get("/cms/hero", response_model=Optional[cms_schemas.HeroSectionOut])
def get_active_hero(db: Session = Depends(get_db)):
    return db.query(HeroSection).filter(HeroSection.active.is_(True)).first()


# Edits the single hero row (created on first use) and makes it the active one
@router.put("/admin/cms/hero", response_model=cms_schemas.HeroSectionOut)
def update_hero(
    payload: cms_schemas.HeroSectionIn,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    db.query(HeroSection).update({HeroSection.active: False}, synchronize_session=False)

    hero = db.query(HeroSection).order_by(HeroSection.id).first()
    if hero is None:
        hero = HeroSection(**payload.model_dump())
        db.add(hero)
    else:
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(hero, field, value)
    hero.active = True
    db.commit()
    db.refresh(hero)

    write_log(db, user_id=admin.id, action="HERO_UPDATE", resource="cms", request=request,
              meta={"hero_id": hero.id})
    return hero


# --- Banners ---

@router.get("/cms/banners", response_model=List[cms_schemas.BannerOut])
def list_active_banners(db: Session = Depends(get_db)):
    return (
        db.query(Banner)
        .filter(Banner.active.is_(True))
        .order_by(Banner.position, Banner.id)
        .all()
    )


@router.get("/admin/cms/banners", response_model=List[cms_schemas.BannerOut])
def list_all_banners(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(Banner).order_by(Banner.position, Banner.id).all()


# New banners go to the end of the list
@router.post("/admin/cms/banners", response_model=cms_schemas.BannerOut, status_code=status.HTTP_201_CREATED)
def create_banner(
    payload: cms_schemas.BannerIn,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    last = db.query(func.max(Banner.position)).scalar()
    banner = Banner(
        **payload.model_dump(exclude_unset=True),
        position=0 if last is None else last + 1,
    )
    db.add(banner)
    db.commit()
    db.refresh(banner)

    write_log(db, user_id=admin.id, action="BANNER_CREATE", resource="cms", request=request,
              meta={"banner_id": banner.id})
    return banner


@router.put("/admin/cms/banners/{banner_id}", response_model=cms_schemas.BannerOut)
def update_banner(
    banner_id: int,
    payload: cms_schemas.BannerIn,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    banner = db.get(Banner, banner_id)
    if not banner:
        raise NotFoundError("Banner")

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(banner, field, value)
    db.commit()
    db.refresh(banner)

    write_log(db, user_id=admin.id, action="BANNER_UPDATE", resource="cms", request=request,
              meta={"banner_id": banner_id, "fields": sorted(changes)})
    return banner


@router.delete("/admin/cms/banners/{banner_id}")
def delete_banner(
    banner_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    banner = db.get(Banner, banner_id)
    if not banner:
        raise NotFoundError("Banner")

    db.delete(banner)
    db.commit()

    write_log(db, user_id=admin.id, action="BANNER_DELETE", resource="cms", request=request,
              meta={"banner_id": banner_id})
    return {"success": True}


# --- Site settings ---

def _site_settings(db: Session) -> SiteSettings:
    settings = db.query(SiteSettings).order_by(SiteSettings.id).first()
    if settings is None:
        settings = SiteSettings(site_name="Fashion Store")
        db.add(settings)
        db.commit()
        db.refresh(settings)
    return settings


@router.get("/cms/settings", response_model=cms_schemas.SiteSettingsOut)
def get_site_settings(db: Session = Depends(get_db)):
    return _site_settings(db)


@router.put("/admin/cms/settings", response_model=cms_schemas.SiteSettingsOut)
def update_site_settings(
    payload: cms_schemas.SiteSettingsIn,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    settings = _site_settings(db)
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(settings, field, value)
    db.commit()
    db.refresh(settings)

    write_log(db, user_id=admin.id, action="SETTINGS_UPDATE", resource="cms", request=request,
              meta={"fields": sorted(changes)})
    return settings
