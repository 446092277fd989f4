# campusbooks/models.py
"""SQLAlchemy ORM models for persisted entities.

`Book` is a listing; `User` is an account used only for session login.
The two tables are deliberately unrelated: editing rights on a book come
from its secret id, not from who is logged in.
"""
from sqlalchemy import Column, Integer, Text, Boolean, TIMESTAMP, func, Index
from .db import Base

class Book(Base):
    __tablename__ = "books"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    author = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    condition = Column(Text, nullable=False)
    price = Column(Integer, nullable=False)
    phone = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    sold = Column(Boolean, nullable=False, default=False)
    secret_id = Column(Text, nullable=False, unique=True, index=True)
    report_count = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Book id={self.id} title={self.title!r} sold={self.sold}>"

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(Text, nullable=False, unique=True)
    password = Column(Text, nullable=False)

Index("idx_books_subject", Book.subject)
Index("idx_books_price", Book.price)
