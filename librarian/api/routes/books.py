"""
Book API Routes

Catalog listing and admin maintenance, plus the borrow/return/review
actions on a single book. Every route requires a bearer token.
"""

from fastapi import APIRouter, Depends, status
from loguru import logger

from librarian.api.dependencies import (
    get_catalog_service,
    get_lending_service,
    get_current_principal,
    require_admin,
    parse_book_id,
    gated_body,
    body_openapi,
)
from librarian.api.schemas import (
    BookCreate,
    BookResponse,
    BookCreatedResponse,
    MessageResponse,
    BorrowResponse,
    ReturnResponse,
    ReviewCreate,
    ReviewCreatedResponse,
    ErrorResponse,
)
from librarian.services import CatalogService, LendingService, Principal


router = APIRouter(
    prefix="/books",
    tags=["books"],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        403: {"model": ErrorResponse, "description": "Blocked account or not an admin"},
    },
)


# =============================================================================
# Catalog Endpoints
# =============================================================================

@router.get("", response_model=list[BookResponse])
def list_books(
    principal: Principal = Depends(get_current_principal),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """List all books with their genre and authors."""
    return catalog.list_books()


@router.post(
    "",
    response_model=BookCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid book data or unknown genre/author"},
    },
    openapi_extra=body_openapi(BookCreate),
)
def create_book(
    book: BookCreate = Depends(gated_body(BookCreate, require_admin)),
    principal: Principal = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Create a new book (admin only). All copies start out available."""
    logger.info(f"Admin {principal.user_id} creating book: {book.title}")

    created = catalog.create_book(
        title=book.title,
        isbn=book.isbn,
        genre_id=book.genre_id,
        total_copies=book.total_copies,
        author_ids=book.author_ids,
        description=book.description,
        publication_year=book.publication_year,
        cover_url=book.cover_url,
    )
    return BookCreatedResponse(book_id=created.id)


@router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid id or book still referenced"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def delete_book(
    principal: Principal = Depends(require_admin),
    book_id: int = Depends(parse_book_id),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Delete a book (admin only). Refused while orders or reviews reference it."""
    logger.info(f"Admin {principal.user_id} deleting book {book_id}")

    catalog.delete_book(book_id)
    return MessageResponse(message="Book deleted successfully")


# =============================================================================
# Lending Endpoints
# =============================================================================

@router.post(
    "/{book_id}/borrow",
    response_model=BorrowResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No copies left or already borrowed"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def borrow_book(
    principal: Principal = Depends(get_current_principal),
    book_id: int = Depends(parse_book_id),
    lending: LendingService = Depends(get_lending_service),
):
    """Borrow a copy of a book."""
    order = lending.borrow(principal.user_id, book_id)
    return BorrowResponse(order_id=order.id, due_date=order.due_date)


@router.post(
    "/{book_id}/return",
    response_model=ReturnResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No active borrow for this book"},
    },
)
def return_book(
    principal: Principal = Depends(get_current_principal),
    book_id: int = Depends(parse_book_id),
    lending: LendingService = Depends(get_lending_service),
):
    """Return a borrowed book."""
    order = lending.return_book(principal.user_id, book_id)
    return ReturnResponse(
        order_id=order.id,
        status=order.status,
        return_date=order.return_date,
    )


@router.post(
    "/{book_id}/review",
    response_model=ReviewCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid rating, not eligible, or duplicate"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
    openapi_extra=body_openapi(ReviewCreate),
)
def review_book(
    review: ReviewCreate = Depends(gated_body(ReviewCreate)),
    principal: Principal = Depends(get_current_principal),
    book_id: int = Depends(parse_book_id),
    lending: LendingService = Depends(get_lending_service),
):
    """Review a book the caller has borrowed and returned."""
    created = lending.review(
        principal.user_id,
        book_id,
        rating=review.rating,
        comment=review.comment,
    )
    return ReviewCreatedResponse(review_id=created.id)
