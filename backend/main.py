# backend/main.py
import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from config import Settings, settings as default_settings
from database import build_engine, build_session_factory, init_db
from utils.errors import register_error_handlers

# Routers
from routes.auth import router as auth_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router, admin_router as admin_orders_router
from routes.products import router as products_router
from routes.collections import router as collections_router
from routes.logs import router as logs_router
from routes.cms import router as cms_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Engine and session factory belong to this app instance, handlers reach them via get_db
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)

    app = FastAPI(title="Storefront API", version="1.0.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # CORS Configuration
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True, # Cart cookie travels cross-origin
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Router registration
    app.include_router(auth_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(admin_orders_router)
    app.include_router(products_router)
    app.include_router(collections_router)
    app.include_router(logs_router)
    app.include_router(cms_router)

    @app.get("/")
    def read_root():
        return {"message": "Storefront API is running"}

    return app

