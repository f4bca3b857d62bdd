"""
Storage Module for Librarian

Persistence for the lending domain:
- Record dataclasses exchanged with services
- SQLAlchemy schema with the database-level constraints
- SQL-backed and in-memory repositories behind one interface
"""

from librarian.storage.records import (
    User,
    Author,
    Genre,
    Book,
    BookAuthor,
    Order,
    Review,
    Role,
    UserStatus,
    OrderStatus,
)
from librarian.storage.repository import (
    Repository,
    SQLRepository,
)
from librarian.storage.memory import InMemoryRepository

__all__ = [
    # Records
    "User",
    "Author",
    "Genre",
    "Book",
    "BookAuthor",
    "Order",
    "Review",
    "Role",
    "UserStatus",
    "OrderStatus",
    # Repositories
    "Repository",
    "SQLRepository",
    "InMemoryRepository",
]
