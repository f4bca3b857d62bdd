"""
Database models for Librarian.

Constraints mirror the lending rules that the database itself can enforce:
uniqueness of emails and ISBNs, restricted deletes for anything referenced
by orders or reviews, and range checks on enumerations and ratings.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import declarative_base

from ..clock import utcnow
from .records import (
    User,
    Author,
    Genre,
    Book,
    BookAuthor,
    Order,
    Review,
)

Base = declarative_base()


class UserModel(Base):
    """User accounts."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="user")
    registration_date = Column(DateTime, nullable=False, default=utcnow)
    photo_url = Column(String(255))
    status = Column(String(50), nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="check_role"),
        CheckConstraint("status IN ('active', 'blocked')", name="check_status"),
    )


class AuthorModel(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    birth_year = Column(Integer)
    country = Column(String(100))
    biography = Column(Text)


class GenreModel(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)


class BookModel(Base):
    """Catalog entries with their copy counts."""
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    publication_year = Column(Integer)
    isbn = Column(String(13), unique=True, nullable=False)
    genre_id = Column(
        Integer,
        ForeignKey("genres.id", ondelete="RESTRICT"),
        nullable=False,
    )
    total_copies = Column(Integer, nullable=False)
    available_copies = Column(Integer, nullable=False)
    cover_url = Column(String(255))
    added_date = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("total_copies > 0", name="check_total_copies"),
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="check_available_copies",
        ),
    )


class BookAuthorModel(Base):
    """Join table between books and authors."""
    __tablename__ = "book_authors"

    book_id = Column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    )
    author_id = Column(
        Integer,
        ForeignKey("authors.id", ondelete="CASCADE"),
        primary_key=True,
    )


class OrderModel(Base):
    """Borrow/return transactions."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    book_id = Column(
        Integer,
        ForeignKey("books.id", ondelete="RESTRICT"),
        nullable=False,
    )
    order_date = Column(DateTime, nullable=False, default=utcnow)
    due_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime)
    status = Column(String(50), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('issued', 'returned', 'overdue')",
            name="check_order_status",
        ),
        Index("idx_orders_user_book_status", "user_id", "book_id", "status"),
    )


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    book_id = Column(
        Integer,
        ForeignKey("books.id", ondelete="RESTRICT"),
        nullable=False,
    )
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_rating"),
        Index("idx_reviews_user_book", "user_id", "book_id"),
    )


# Record type -> ORM model
MODELS = {
    User: UserModel,
    Author: AuthorModel,
    Genre: GenreModel,
    Book: BookModel,
    BookAuthor: BookAuthorModel,
    Order: OrderModel,
    Review: ReviewModel,
}
