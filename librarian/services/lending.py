"""
Lending Service

Borrow, return and review workflows.

Each (user, book) pair has an implicit lending state rebuilt from its
orders on every call:

    no-order --borrow--> issued --return--> returned | overdue

``returned`` and ``overdue`` are terminal for that order; borrowing again
starts a new one. Reviews are allowed once a terminal order exists.

Availability changes go through ``Repository.adjust_available_copies``,
a conditional single-row update, so two borrowers racing for the last copy
cannot both succeed and the count never leaves ``[0, total_copies]``.
Creating the order and moving the count are still two writes: a failed
order insert is compensated by putting the copy back.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger

from librarian.clock import utcnow
from librarian.exceptions import (
    ValidationError,
    NotFoundError,
    NoCopiesAvailableError,
    AlreadyBorrowedError,
    NoActiveBorrowError,
    ReviewNotAllowedError,
    AlreadyReviewedError,
    PersistenceError,
)
from librarian.storage.records import (
    Book,
    Order,
    OrderStatus,
    Review,
    CLOSED_ORDER_STATUSES,
)
from librarian.storage.repository import Repository

DEFAULT_LOAN_PERIOD = timedelta(days=14)

MIN_RATING = 1
MAX_RATING = 5


class LendingService:
    """Enforces the lending rules on top of a repository."""

    def __init__(
        self,
        repository: Repository,
        loan_period: timedelta = DEFAULT_LOAN_PERIOD,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize service.

        Args:
            repository: Persistence collaborator
            loan_period: Time between borrowing and the due date
            clock: Returns the current (naive UTC) time
        """
        self.repository = repository
        self.loan_period = loan_period
        self.clock = clock

    def _active_order(self, user_id: int, book_id: int) -> Optional[Order]:
        return self.repository.find_one(
            Order,
            user_id=user_id,
            book_id=book_id,
            status=OrderStatus.ISSUED.value,
        )

    # =========================================================================
    # Borrow
    # =========================================================================

    def borrow(self, user_id: int, book_id: int) -> Order:
        """
        Issue a copy of a book to a user.

        Raises:
            NotFoundError: no such book.
            NoCopiesAvailableError: every copy is out.
            AlreadyBorrowedError: the user already holds an issued order.
        """
        book = self.repository.get(Book, book_id)
        if book is None:
            raise NotFoundError("Book", book_id)

        if book.available_copies <= 0:
            logger.info(f"User {user_id} refused book {book_id}: no copies left")
            raise NoCopiesAvailableError()

        if self._active_order(user_id, book_id) is not None:
            logger.info(f"User {user_id} refused book {book_id}: already borrowed")
            raise AlreadyBorrowedError()

        # The read above may be stale; the conditional update is authoritative
        if not self.repository.adjust_available_copies(book_id, -1):
            logger.info(f"User {user_id} lost the race for the last copy of book {book_id}")
            raise NoCopiesAvailableError()

        now = self.clock()
        try:
            order = self.repository.insert(
                Order(
                    user_id=user_id,
                    book_id=book_id,
                    order_date=now,
                    due_date=now + self.loan_period,
                    status=OrderStatus.ISSUED.value,
                )
            )
        except PersistenceError:
            logger.error(f"Order insert failed for user {user_id}, book {book_id}; restoring copy")
            self.repository.adjust_available_copies(book_id, +1)
            raise

        logger.info(f"User {user_id} borrowed book {book_id}, due {order.due_date.isoformat()}")
        return order

    # =========================================================================
    # Return
    # =========================================================================

    def return_book(self, user_id: int, book_id: int) -> Order:
        """
        Close the user's issued order for a book.

        The order becomes ``overdue`` when returned after its due date,
        ``returned`` otherwise.

        Raises:
            NoActiveBorrowError: the user holds no issued order for the book.
        """
        order = self._active_order(user_id, book_id)
        if order is None:
            raise NoActiveBorrowError()

        now = self.clock()
        status = OrderStatus.OVERDUE if now > order.due_date else OrderStatus.RETURNED

        order = self.repository.update(
            Order,
            order.id,
            return_date=now,
            status=status.value,
        )
        if order is None:
            raise PersistenceError("Failed to update order")

        if not self.repository.adjust_available_copies(book_id, +1):
            # Only reachable if the counts were already inconsistent
            logger.error(f"Book {book_id} already has all copies available; count not incremented")

        logger.info(f"User {user_id} returned book {book_id} ({status.value})")
        return order

    # =========================================================================
    # Review
    # =========================================================================

    def review(
        self,
        user_id: int,
        book_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        """
        Record a user's review of a book they have borrowed and returned.

        Raises:
            ValidationError: rating outside 1..5.
            NotFoundError: no such book.
            ReviewNotAllowedError: no returned or overdue order for the pair.
            AlreadyReviewedError: the user already reviewed this book.
        """
        if (
            rating is None
            or isinstance(rating, bool)
            or not isinstance(rating, int)
            or not MIN_RATING <= rating <= MAX_RATING
        ):
            raise ValidationError(
                f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}",
                detail=f"Got {rating!r}",
            )

        if self.repository.get(Book, book_id) is None:
            raise NotFoundError("Book", book_id)

        closed = self.repository.find_one(
            Order,
            user_id=user_id,
            book_id=book_id,
            status=CLOSED_ORDER_STATUSES,
        )
        if closed is None:
            raise ReviewNotAllowedError()

        if self.repository.find_one(Review, user_id=user_id, book_id=book_id) is not None:
            raise AlreadyReviewedError()

        review = self.repository.insert(
            Review(
                user_id=user_id,
                book_id=book_id,
                rating=rating,
                comment=comment,
                created_at=self.clock(),
            )
        )
        logger.info(f"User {user_id} reviewed book {book_id} ({rating}/5)")
        return review

    # =========================================================================
    # History
    # =========================================================================

    def list_orders(self, user_id: int) -> list[Order]:
        """A user's orders, most recent first."""
        orders = self.repository.find(Order, user_id=user_id)
        return sorted(orders, key=lambda o: (o.order_date, o.id), reverse=True)
