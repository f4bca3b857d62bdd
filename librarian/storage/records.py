"""
Record types exchanged with the persistence layer.

Records are plain dataclasses. Repositories hand out copies, so mutating a
record never changes stored state; use ``Repository.update`` for that.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """User role."""
    ADMIN = "admin"
    USER = "user"


class UserStatus(str, Enum):
    """Account status. Only active accounts may use the API."""
    ACTIVE = "active"
    BLOCKED = "blocked"


class OrderStatus(str, Enum):
    """Lifecycle of a single loan."""
    ISSUED = "issued"
    RETURNED = "returned"
    OVERDUE = "overdue"


CLOSED_ORDER_STATUSES = (OrderStatus.RETURNED.value, OrderStatus.OVERDUE.value)


@dataclass(kw_only=True)
class User:
    name: str
    email: str
    password_hash: str
    role: str = Role.USER.value
    status: str = UserStatus.ACTIVE.value
    registration_date: Optional[datetime] = None
    photo_url: Optional[str] = None
    id: Optional[int] = None


@dataclass(kw_only=True)
class Author:
    name: str
    birth_year: Optional[int] = None
    country: Optional[str] = None
    biography: Optional[str] = None
    id: Optional[int] = None


@dataclass(kw_only=True)
class Genre:
    name: str
    description: Optional[str] = None
    id: Optional[int] = None


@dataclass(kw_only=True)
class Book:
    title: str
    isbn: str
    genre_id: int
    total_copies: int
    available_copies: int
    description: Optional[str] = None
    publication_year: Optional[int] = None
    cover_url: Optional[str] = None
    added_date: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(kw_only=True)
class BookAuthor:
    """Book <-> Author link, keyed by the (book_id, author_id) pair."""
    book_id: int
    author_id: int


@dataclass(kw_only=True)
class Order:
    user_id: int
    book_id: int
    due_date: datetime
    status: str = OrderStatus.ISSUED.value
    order_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(kw_only=True)
class Review:
    user_id: int
    book_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None


# Field filled with the insertion time when a record is created without one
CREATED_AT_FIELDS = {
    User: "registration_date",
    Book: "added_date",
    Order: "order_date",
    Review: "created_at",
}
