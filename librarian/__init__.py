"""
Librarian: a library-lending REST backend.

Books, authors, genres, users, borrow/return orders and reviews behind a
bearer-token HTTP API.
"""

__version__ = "1.0.0"
