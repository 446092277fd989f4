# campusbooks/api/routes.py
import re
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from typing import List, Optional
from .. import schemas, services, uploads
from ..config import Settings
from ..errors import CampusBooksError, NotFoundError
from ..storage import Storage
from .deps import get_settings, get_storage, login_gate

router = APIRouter()
books = APIRouter(prefix="/books", tags=["books"], dependencies=[Depends(login_gate)])

# ids are 32-bit integer columns
MAX_BOOK_ID = 2**31 - 1


def _parse_book_id(book_id: str) -> int:
    # non-numeric ids name no book
    if not re.fullmatch(r"[0-9]+", book_id) or int(book_id) > MAX_BOOK_ID:
        raise NotFoundError()
    return int(book_id)

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/subjects", response_model=List[str])
def subjects():
    return schemas.SUBJECTS


@books.get("", response_model=List[schemas.BookPublic])
def list_books(storage: Storage = Depends(get_storage)):
    return services.list_books(storage)


@books.get("/search", response_model=List[schemas.BookPublic])
def search_books(q: Optional[str] = Query(None), storage: Storage = Depends(get_storage)):
    return services.search_books(storage, q)


@books.get("/filter", response_model=List[schemas.BookPublic])
def filter_books(
    subject: Optional[str] = Query(None),
    condition: Optional[str] = Query(None),
    free_only: bool = Query(False, alias="freeOnly"),
    storage: Storage = Depends(get_storage)
):
    return services.filter_books(storage, subject=subject, condition=condition, free_only=free_only)


@books.get("/secret/{secret_id}", response_model=schemas.BookOut)
def get_book_by_secret(secret_id: str, storage: Storage = Depends(get_storage)):
    return services.get_book_by_secret(storage, secret_id)


@books.get("/{book_id}", response_model=schemas.BookPublic)
def get_book(book_id: str, storage: Storage = Depends(get_storage)):
    return services.get_book(storage, _parse_book_id(book_id))


@books.get("/{book_id}/contact", response_model=schemas.ContactOut)
def contact_seller(book_id: str, storage: Storage = Depends(get_storage)):
    return services.contact_details(services.get_book(storage, _parse_book_id(book_id)))


@books.post("", response_model=schemas.BookOut, status_code=201)
def create_book(
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
):
    fields = {"title": title, "author": author, "subject": subject,
              "condition": condition, "price": price, "phone": phone}
    image_url = uploads.save_image(image, settings)
    try:
        return services.post_book(storage, fields, image_url)
    except CampusBooksError:
        uploads.discard_image(image_url, settings)
        raise


@books.put("/secret/{secret_id}", response_model=schemas.BookOut)
def update_book(
    secret_id: str,
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
):
    # unknown secret ids fail before anything is written to disk
    services.get_book_by_secret(storage, secret_id)
    fields = {"title": title, "author": author, "subject": subject,
              "condition": condition, "price": price, "phone": phone}
    image_url = uploads.save_image(image, settings)
    try:
        return services.update_book(storage, secret_id, fields, image_url)
    except CampusBooksError:
        uploads.discard_image(image_url, settings)
        raise


@books.put("/secret/{secret_id}/sold", response_model=schemas.BookOut)
def mark_sold(secret_id: str, storage: Storage = Depends(get_storage)):
    return services.mark_sold(storage, secret_id)


@books.delete("/secret/{secret_id}", response_model=schemas.MessageOut)
def delete_book(secret_id: str, storage: Storage = Depends(get_storage)):
    services.delete_book(storage, secret_id)
    return {"message": "Book deleted successfully"}


@books.post("/{book_id}/report", response_model=schemas.BookPublic)
def report_book(book_id: str, storage: Storage = Depends(get_storage)):
    return services.report_book(storage, _parse_book_id(book_id))


router.include_router(books)
