# campusbooks/main.py
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from .api.auth import router as auth_router
from .api.routes import router as api_router
from .config import Settings, get_settings
from .db import init_db, make_engine, make_session_factory
from .errors import register_error_handlers
from .utils import logger


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="campusbooks")
    app.state.settings = settings

    engine = make_engine(settings)
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)
    register_error_handlers(app)
    app.include_router(api_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")

    os.makedirs(settings.upload_dir, exist_ok=True)
    app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")

    @app.on_event("startup")
    def on_startup_create_tables():
        init_db(engine)
        logger.info("campusbooks ready (require_login=%s)", settings.require_login)

    return app
