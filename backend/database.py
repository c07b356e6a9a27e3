# backend/database.py
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def normalize_url(url: str) -> str:
    # Hosted Postgres providers hand out postgres://, SQLAlchemy requires postgresql://
    if url and url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def build_engine(url: str):
    url = normalize_url(url)

    if "sqlite" in url:
        connect_args = {"check_same_thread": False} # Only for SQLite
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            # One shared connection, otherwise every session sees an empty database
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    else:
        connect_args = {}

    return create_engine(url, connect_args=connect_args)


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    # Register every model on the metadata before creating tables
    import models.users  # noqa: F401
    import models.catalog  # noqa: F401
    import models.cart  # noqa: F401
    import models.order  # noqa: F401
    import models.log  # noqa: F401
    import models.cms  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
