"""
API Routes for Librarian

Route modules:
- auth: registration and login placeholders
- books: catalog and borrow/return/review
- orders: the caller's lending history
"""

from librarian.api.routes.auth import router as auth_router
from librarian.api.routes.books import router as books_router
from librarian.api.routes.orders import router as orders_router

__all__ = [
    "auth_router",
    "books_router",
    "orders_router",
]
