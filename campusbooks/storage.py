# campusbooks/storage.py
"""Storage access layer for books and users.

`Storage` is the interface every caller programs against. `MemStorage` keeps
everything in process (tests, local experiments); `SqlStorage` runs the same
operations through a SQLAlchemy session. Neither is created at import time:
the API builds one per request through the `get_storage` dependency.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, and_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import StorageError
from .models import Book, User
from .schemas import ALL_SUBJECTS, ALL_CONDITIONS
from .utils import logger, new_secret_id

# columns a caller may change after creation
UPDATABLE_FIELDS = ("title", "author", "subject", "condition", "price", "phone", "image_url", "sold")


def _updatable(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}


def _is_constrained(value: Optional[str], sentinel: str) -> bool:
    return bool(value) and value != sentinel


class Storage(ABC):
    # users
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, username: str, password_hash: str) -> User: ...

    # books
    @abstractmethod
    def get_all_books(self) -> List[Book]: ...

    @abstractmethod
    def get_book_by_id(self, book_id: int) -> Optional[Book]: ...

    @abstractmethod
    def get_book_by_secret_id(self, secret_id: str) -> Optional[Book]: ...

    @abstractmethod
    def create_book(self, data: Dict[str, Any]) -> Book: ...

    @abstractmethod
    def update_book(self, book_id: int, changes: Dict[str, Any]) -> Optional[Book]: ...

    @abstractmethod
    def delete_book_by_secret_id(self, secret_id: str) -> bool: ...

    @abstractmethod
    def report_book(self, book_id: int) -> Optional[Book]: ...

    @abstractmethod
    def search_books(self, query: Optional[str]) -> List[Book]: ...

    @abstractmethod
    def filter_books(self, subject: Optional[str] = None, condition: Optional[str] = None,
                     free_only: bool = False) -> List[Book]: ...

    def update_book_by_secret_id(self, secret_id: str, changes: Dict[str, Any]) -> Optional[Book]:
        book = self.get_book_by_secret_id(secret_id)
        if not book:
            return None
        return self.update_book(book.id, changes)


class MemStorage(Storage):
    def __init__(self):
        self.users: Dict[int, User] = {}
        self.books: Dict[int, Book] = {}
        self.user_current_id = 1
        self.book_current_id = 1

    def get_user(self, user_id):
        return self.users.get(user_id)

    def get_user_by_username(self, username):
        return next((u for u in self.users.values() if u.username == username), None)

    def create_user(self, username, password_hash):
        user = User(id=self.user_current_id, username=username, password=password_hash)
        self.users[user.id] = user
        self.user_current_id += 1
        return user

    def get_all_books(self):
        return sorted(self.books.values(), key=lambda b: b.id, reverse=True)

    def get_book_by_id(self, book_id):
        return self.books.get(book_id)

    def get_book_by_secret_id(self, secret_id):
        return next((b for b in self.books.values() if b.secret_id == secret_id), None)

    def create_book(self, data):
        fields = _updatable(data)
        fields.setdefault("sold", False)
        book = Book(
            id=self.book_current_id,
            secret_id=data.get("secret_id") or new_secret_id(),
            report_count=0,
            created_at=datetime.now(timezone.utc),
            **fields,
        )
        self.books[book.id] = book
        self.book_current_id += 1
        return book

    def update_book(self, book_id, changes):
        book = self.books.get(book_id)
        if not book:
            return None
        for k, v in _updatable(changes).items():
            setattr(book, k, v)
        return book

    def delete_book_by_secret_id(self, secret_id):
        book = self.get_book_by_secret_id(secret_id)
        if not book:
            return False
        del self.books[book.id]
        return True

    def report_book(self, book_id):
        book = self.books.get(book_id)
        if not book:
            return None
        book.report_count += 1
        return book

    def search_books(self, query):
        if not query:
            return self.get_all_books()
        q = query.lower()
        return [b for b in self.get_all_books() if q in b.title.lower() or q in b.author.lower()]

    def filter_books(self, subject=None, condition=None, free_only=False):
        def match(book: Book) -> bool:
            if _is_constrained(subject, ALL_SUBJECTS) and book.subject != subject:
                return False
            if _is_constrained(condition, ALL_CONDITIONS) and book.condition != condition:
                return False
            if free_only and book.price > 0:
                return False
            return True
        return [b for b in self.get_all_books() if match(b)]


def _storage_op(message: str):
    """Roll back and re-raise database failures as `StorageError(message)`."""
    def deco(f):
        @wraps(f)
        def wrapper(self, *args, **kwargs):
            try:
                return f(self, *args, **kwargs)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception("%s: %s", message, e)
                raise StorageError(message) from e
        return wrapper
    return deco


class SqlStorage(Storage):
    def __init__(self, db: Session):
        self.db = db

    @_storage_op("Failed to fetch user")
    def get_user(self, user_id):
        return self.db.get(User, user_id)

    @_storage_op("Failed to fetch user")
    def get_user_by_username(self, username):
        return self.db.query(User).filter(User.username == username).first()

    @_storage_op("Failed to create user")
    def create_user(self, username, password_hash):
        user = User(username=username, password=password_hash)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    @_storage_op("Failed to fetch books")
    def get_all_books(self):
        return self.db.query(Book).order_by(Book.id.desc()).all()

    @_storage_op("Failed to fetch book")
    def get_book_by_id(self, book_id):
        return self.db.get(Book, book_id)

    @_storage_op("Failed to fetch book")
    def get_book_by_secret_id(self, secret_id):
        return self.db.query(Book).filter(Book.secret_id == secret_id).first()

    @_storage_op("Failed to create book")
    def create_book(self, data):
        fields = _updatable(data)
        fields.setdefault("sold", False)
        book = Book(secret_id=data.get("secret_id") or new_secret_id(), report_count=0, **fields)
        self.db.add(book)
        self.db.commit()
        self.db.refresh(book)
        return book

    @_storage_op("Failed to update book")
    def update_book(self, book_id, changes):
        book = self.db.get(Book, book_id)
        if not book:
            return None
        for k, v in _updatable(changes).items():
            setattr(book, k, v)
        self.db.commit()
        self.db.refresh(book)
        return book

    @_storage_op("Failed to delete book")
    def delete_book_by_secret_id(self, secret_id):
        book = self.db.query(Book).filter(Book.secret_id == secret_id).first()
        if not book:
            return False
        self.db.delete(book)
        self.db.commit()
        return True

    @_storage_op("Failed to report book")
    def report_book(self, book_id):
        # single UPDATE so concurrent reports never lose an increment
        stmt = (
            update(Book)
            .where(Book.id == book_id)
            .values(report_count=Book.report_count + 1)
            .execution_options(synchronize_session=False)
        )
        res = self.db.execute(stmt)
        self.db.commit()
        if res.rowcount == 0:
            return None
        book = self.db.get(Book, book_id)
        self.db.refresh(book)
        return book

    @_storage_op("Failed to search books")
    def search_books(self, query):
        q = self.db.query(Book)
        if query:
            q = q.filter(or_(
                Book.title.icontains(query, autoescape=True),
                Book.author.icontains(query, autoescape=True),
            ))
        return q.order_by(Book.id.desc()).all()

    @_storage_op("Failed to filter books")
    def filter_books(self, subject=None, condition=None, free_only=False):
        q = self.db.query(Book)
        conds = []
        if _is_constrained(subject, ALL_SUBJECTS):
            conds.append(Book.subject == subject)
        if _is_constrained(condition, ALL_CONDITIONS):
            conds.append(Book.condition == condition)
        if free_only:
            conds.append(Book.price <= 0)
        if conds:
            q = q.filter(and_(*conds))
        return q.order_by(Book.id.desc()).all()
