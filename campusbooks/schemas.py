# campusbooks/schemas.py
import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

SUBJECTS = [
    "Computer Science",
    "Mathematics",
    "Physics",
    "Chemistry",
    "Biology",
    "Economics",
    "History",
    "Literature",
    "Psychology",
    "Other",
]
CONDITIONS = ("New", "Used")

# filter sentinels meaning "no constraint"
ALL_SUBJECTS = "All Subjects"
ALL_CONDITIONS = "All"

PHONE_RE = re.compile(r"[0-9]{10}")


class BookFields(BaseModel):
    """Editable listing fields, validated the same way on create and update."""
    title: str
    author: str
    subject: str
    condition: str
    price: int
    phone: str

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        if len(v.strip()) < 2:
            raise ValueError("Title must be at least 2 characters")
        return v.strip()

    @field_validator("author")
    @classmethod
    def _author(cls, v: str) -> str:
        if len(v.strip()) < 2:
            raise ValueError("Author must be at least 2 characters")
        return v.strip()

    @field_validator("subject")
    @classmethod
    def _subject(cls, v: str) -> str:
        if len(v.strip()) < 2:
            raise ValueError("Subject is required")
        return v.strip()

    @field_validator("condition")
    @classmethod
    def _condition(cls, v: str) -> str:
        if v not in CONDITIONS:
            raise ValueError("Condition must be either New or Used")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        if isinstance(v, bool):
            raise ValueError("Price must be a whole number")
        if isinstance(v, str):
            v = v.strip()
            if not re.fullmatch(r"-?\d+", v):
                raise ValueError("Price must be a whole number")
            v = int(v)
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError("Price must be a whole number")
            v = int(v)
        if not isinstance(v, int):
            raise ValueError("Price must be a whole number")
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        if not PHONE_RE.fullmatch(v):
            raise ValueError("Phone number must be 10 digits")
        return v


class BookCreate(BookFields):
    image_url: str = Field(..., min_length=1)


class BookPublic(BaseModel):
    """A listing as any visitor sees it; never carries the secret id."""
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    author: str
    subject: str
    condition: str
    price: int
    phone: str
    image_url: str
    sold: bool
    report_count: int
    created_at: Optional[datetime]


class BookOut(BookPublic):
    """A listing as its secret-link holder sees it."""
    secret_id: str


class ContactOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    book_id: int
    title: str
    phone: str
    display_phone: str
    call_url: str
    whatsapp_url: str


class MessageOut(BaseModel):
    message: str


class UserCredentials(BaseModel):
    username: str
    password: str


class UserCreate(UserCredentials):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
