# campusbooks/db.py
"""Database engine and session utilities.

Engines and session factories are built from `Settings` by the application
factory and kept on `app.state`; `get_db` is the FastAPI dependency that hands
a session to each request.
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import Settings

Base = declarative_base()

def make_engine(settings: Settings):
    url = settings.database_url
    if url.startswith("sqlite"):
        # TestClient and uvicorn workers hit the connection from other threads
        return create_engine(url, connect_args={"check_same_thread": False})
    # tuned pool settings for cloud DB
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True
    )

def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(engine):
    from . import models  # noqa: F401 ensure models are imported so tables are known
    Base.metadata.create_all(bind=engine)

def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
