# campusbooks/api/auth.py
from fastapi import APIRouter, Depends, Request
from .. import schemas, services
from ..models import User
from ..storage import Storage
from .deps import current_user, get_storage

router = APIRouter(tags=["auth"])

@router.post("/register", response_model=schemas.UserOut, status_code=201)
def register(payload: schemas.UserCreate, request: Request, storage: Storage = Depends(get_storage)):
    user = services.register_user(storage, payload.username, payload.password)
    request.session["user_id"] = user.id
    return user

@router.post("/login", response_model=schemas.UserOut)
def login(payload: schemas.UserCredentials, request: Request, storage: Storage = Depends(get_storage)):
    user = services.authenticate(storage, payload.username, payload.password)
    request.session["user_id"] = user.id
    return user

@router.post("/logout", response_model=schemas.MessageOut)
def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out"}

@router.get("/user", response_model=schemas.UserOut)
def me(user: User = Depends(current_user)):
    return user
