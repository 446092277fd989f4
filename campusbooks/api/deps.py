# campusbooks/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..errors import AuthError
from ..models import User
from ..storage import Storage, SqlStorage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return SqlStorage(db)


def current_user(request: Request, storage: Storage = Depends(get_storage)) -> User:
    user_id = request.session.get("user_id")
    user = storage.get_user(user_id) if user_id is not None else None
    if not user:
        raise AuthError()
    return user


def login_gate(request: Request, settings: Settings = Depends(get_settings),
               storage: Storage = Depends(get_storage)):
    """Require a logged-in session when the deployment is configured for it."""
    if settings.require_login:
        current_user(request, storage)
