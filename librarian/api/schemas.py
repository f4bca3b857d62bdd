"""
API Schemas for Librarian

Pydantic models for request validation and response serialization:
- Book models
- Lending models (borrow, return, review, orders)
- Error and health models
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, ConfigDict

from librarian.clock import utcnow


# =============================================================================
# Book Schemas
# =============================================================================

class BookCreate(BaseModel):
    """Book creation request."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    publication_year: Optional[int] = None
    isbn: str = Field(..., min_length=1, max_length=13)
    genre_id: int
    total_copies: int = Field(..., gt=0)
    cover_url: Optional[str] = Field(None, max_length=255)
    author_ids: list[int]

    @field_validator("title", "isbn")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Dune",
                "isbn": "9780441172719",
                "genre_id": 1,
                "total_copies": 3,
                "author_ids": [1],
                "publication_year": 1965,
            }
        }
    )


class BookResponse(BaseModel):
    """A book with its genre and author names."""

    id: int
    title: str
    description: Optional[str] = None
    publication_year: Optional[int] = None
    isbn: str
    genre: str
    total_copies: int
    available_copies: int
    cover_url: Optional[str] = None
    added_date: Optional[datetime] = None
    authors: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class BookCreatedResponse(BaseModel):
    message: str = "Book created successfully"
    book_id: int


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# Lending Schemas
# =============================================================================

class BorrowResponse(BaseModel):
    message: str = "Book borrowed successfully"
    order_id: int
    due_date: datetime


class ReturnResponse(BaseModel):
    message: str = "Book returned successfully"
    order_id: int
    status: str
    return_date: datetime


class ReviewCreate(BaseModel):
    """Review request. The rating is checked before anything is looked up."""

    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewCreatedResponse(BaseModel):
    message: str = "Review added successfully"
    review_id: int


class OrderResponse(BaseModel):
    """A single loan."""

    id: int
    book_id: int
    order_date: datetime
    due_date: datetime
    return_date: Optional[datetime] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    code: str
    timestamp: datetime = Field(default_factory=utcnow)
    request_id: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "No available copies of this book",
                "detail": None,
                "code": "NO_COPIES_AVAILABLE",
                "timestamp": "2025-01-20T12:00:00Z",
            }
        }
    )


# =============================================================================
# Health Check
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
