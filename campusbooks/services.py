# campusbooks/services.py
"""Listing lifecycle and access control.

A listing is Active until marked sold, and is removed outright on delete.
Update, mark-sold and delete are authorized purely by presenting the
listing's secret id: an unknown secret id is the only failure. Reporting
is keyed by the public id and needs no secret.
"""
from typing import Any, Dict, List, Optional

import pydantic
from werkzeug.security import generate_password_hash, check_password_hash

from . import schemas
from .errors import AuthError, NotFoundError, ValidationError
from .models import Book, User
from .storage import Storage
from .utils import logger, new_secret_id

BOOK_FIELDS = ("title", "author", "subject", "condition", "price", "phone")


def _validation_message(exc: pydantic.ValidationError) -> str:
    messages = []
    for err in exc.errors():
        ctx_error = (err.get("ctx") or {}).get("error")
        msg = str(ctx_error) if ctx_error else err.get("msg", "Invalid value")
        field = ".".join(str(p) for p in err.get("loc", ()))
        messages.append(f'{msg} at "{field}"' if field else msg)
    return "Validation error: " + "; ".join(messages)


def validate_book(fields: Dict[str, Any], model=schemas.BookFields) -> Dict[str, Any]:
    try:
        return model(**fields).model_dump()
    except pydantic.ValidationError as e:
        message = _validation_message(e)
        logger.warning("Book rejected: %s", message)
        raise ValidationError(message) from e


def post_book(storage: Storage, fields: Dict[str, Any], image_url: Optional[str]) -> Book:
    if not image_url:
        raise ValidationError("Book image is required")
    # a missing form field gets the same message as an empty one
    fields = {k: ("" if fields.get(k) is None else fields[k]) for k in BOOK_FIELDS}
    data = validate_book({**fields, "image_url": image_url}, schemas.BookCreate)
    data["sold"] = False
    data["secret_id"] = new_secret_id()
    book = storage.create_book(data)
    logger.info("Created book %s (%s)", book.id, book.title)
    return book


def get_book(storage: Storage, book_id: int) -> Book:
    book = storage.get_book_by_id(book_id)
    if not book:
        raise NotFoundError()
    return book


def get_book_by_secret(storage: Storage, secret_id: str) -> Book:
    book = storage.get_book_by_secret_id(secret_id)
    if not book:
        raise NotFoundError()
    return book


def update_book(storage: Storage, secret_id: str, fields: Dict[str, Any],
                image_url: Optional[str] = None) -> Book:
    book = get_book_by_secret(storage, secret_id)
    changes = {k: v for k, v in fields.items() if k in BOOK_FIELDS and v is not None}
    # validate the record as it will look after the merge
    merged = {k: getattr(book, k) for k in BOOK_FIELDS}
    merged.update(changes)
    validated = validate_book(merged)
    changes = {k: validated[k] for k in changes}
    if image_url:
        changes["image_url"] = image_url
    updated = storage.update_book(book.id, changes)
    if not updated:
        raise NotFoundError()
    logger.info("Updated book %s fields=%s", updated.id, sorted(changes))
    return updated


def mark_sold(storage: Storage, secret_id: str) -> Book:
    book = get_book_by_secret(storage, secret_id)
    if book.sold:
        logger.info("Book %s already sold", book.id)
    updated = storage.update_book(book.id, {"sold": True})
    if not updated:
        raise NotFoundError()
    return updated


def delete_book(storage: Storage, secret_id: str) -> None:
    if not storage.delete_book_by_secret_id(secret_id):
        raise NotFoundError()
    logger.info("Deleted a book by secret link")


def report_book(storage: Storage, book_id: int) -> Book:
    book = storage.report_book(book_id)
    if not book:
        raise NotFoundError()
    logger.info("Book %s reported (count=%s)", book.id, book.report_count)
    return book


def list_books(storage: Storage) -> List[Book]:
    return storage.get_all_books()


def search_books(storage: Storage, query: Optional[str]) -> List[Book]:
    query = (query or "").strip()
    if not query:
        return storage.get_all_books()
    return storage.search_books(query)


def filter_books(storage: Storage, subject: Optional[str] = None, condition: Optional[str] = None,
                 free_only: bool = False) -> List[Book]:
    return storage.filter_books(subject=subject or None, condition=condition or None, free_only=free_only)


def contact_details(book: Book) -> Dict[str, Any]:
    phone = book.phone
    digits = phone[1:] if phone.startswith("+") else phone
    if len(phone) == 10:
        display = f"+91 {phone[:5]} {phone[5:]}"
    else:
        display = phone
    return {
        "book_id": book.id,
        "title": book.title,
        "phone": phone,
        "display_phone": display,
        "call_url": f"tel:+{digits}",
        "whatsapp_url": f"https://wa.me/{digits}",
    }


def register_user(storage: Storage, username: str, password: str) -> User:
    username = username.strip()
    if len(username) < 3:
        raise ValidationError("Username must be at least 3 characters")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if storage.get_user_by_username(username):
        raise ValidationError("Username already exists")
    user = storage.create_user(username, generate_password_hash(password))
    logger.info("Registered user %s", user.username)
    return user


def authenticate(storage: Storage, username: str, password: str) -> User:
    user = storage.get_user_by_username(username.strip())
    if not user or not check_password_hash(user.password, password):
        logger.warning("Failed login for %s", username)
        raise AuthError("Invalid username or password")
    return user
