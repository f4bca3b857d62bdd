"""
Unit tests for the lending service state machine.
"""

import warnings
from datetime import datetime, timedelta, timezone

import pytest

from librarian.exceptions import (
    AlreadyBorrowedError,
    AlreadyReviewedError,
    NoActiveBorrowError,
    NoCopiesAvailableError,
    NotFoundError,
    PersistenceError,
    ReviewNotAllowedError,
    ValidationError,
)
from librarian.services import LendingService
from librarian.storage import Book, InMemoryRepository, Order, OrderStatus, Review
from tests.conftest import seed_catalog


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def data(repo) -> dict:
    return seed_catalog(repo)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 12, 0, 0))


@pytest.fixture
def service(repo, clock) -> LendingService:
    return LendingService(repo, clock=clock)


@pytest.fixture
def book(repo, data) -> Book:
    return repo.insert(
        Book(
            title="The Dispossessed",
            isbn="9780061054884",
            genre_id=data["genre"].id,
            total_copies=2,
            available_copies=2,
        )
    )


def available(repo, book) -> int:
    return repo.get(Book, book.id).available_copies


class TestBorrow:

    def test_borrow_issues_order_and_takes_copy(self, service, repo, data, book, clock):
        order = service.borrow(data["alice"].id, book.id)

        assert order.status == OrderStatus.ISSUED.value
        assert order.order_date == clock.now
        assert order.due_date == clock.now + timedelta(days=14)
        assert order.return_date is None
        assert available(repo, book) == 1

    def test_default_clock_is_naive_utc(self, repo, data, book):
        service = LendingService(repo)

        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            order = service.borrow(data["alice"].id, book.id)

        reference = datetime.now(timezone.utc).replace(tzinfo=None)
        assert order.order_date.tzinfo is None
        assert abs(reference - order.order_date) < timedelta(minutes=1)
        assert order.due_date - order.order_date == timedelta(days=14)

    def test_loan_period_is_configurable(self, repo, data, book, clock):
        service = LendingService(repo, loan_period=timedelta(days=7), clock=clock)

        order = service.borrow(data["alice"].id, book.id)

        assert order.due_date == clock.now + timedelta(days=7)

    def test_missing_book(self, service, data):
        with pytest.raises(NotFoundError):
            service.borrow(data["alice"].id, 999)

    def test_no_copies_left(self, service, repo, data, book):
        service.borrow(data["alice"].id, book.id)
        service.borrow(data["bob"].id, book.id)

        with pytest.raises(NoCopiesAvailableError):
            service.borrow(data["carol"].id, book.id)

        assert available(repo, book) == 0
        assert repo.find(Order, user_id=data["carol"].id) == []

    def test_cannot_hold_two_issued_orders_for_same_book(self, service, repo, data, book):
        service.borrow(data["alice"].id, book.id)

        with pytest.raises(AlreadyBorrowedError):
            service.borrow(data["alice"].id, book.id)

        assert available(repo, book) == 1
        assert len(repo.find(Order, user_id=data["alice"].id)) == 1

    def test_copies_checked_before_duplicate_borrow(self, service, repo, data, book):
        service.borrow(data["alice"].id, book.id)
        service.borrow(data["bob"].id, book.id)

        # Alice already holds it, but the copy check comes first
        with pytest.raises(NoCopiesAvailableError):
            service.borrow(data["alice"].id, book.id)

    def test_borrow_again_after_return(self, service, repo, data, book):
        service.borrow(data["alice"].id, book.id)
        service.return_book(data["alice"].id, book.id)

        order = service.borrow(data["alice"].id, book.id)

        assert order.status == OrderStatus.ISSUED.value
        assert len(repo.find(Order, user_id=data["alice"].id)) == 2

    def test_stale_read_does_not_overcommit(self, repo, data, book, clock):
        """A borrower that saw a free copy still loses if it is gone by write time."""
        service = LendingService(repo, clock=clock)
        service.borrow(data["alice"].id, book.id)
        service.borrow(data["bob"].id, book.id)

        class StaleRepository(InMemoryRepository):
            def get(self, kind, record_id):
                record = repo.get(kind, record_id)
                if kind is Book and record is not None:
                    record.available_copies = 1
                return record

            def find(self, kind, **filters):
                return repo.find(kind, **filters)

            def adjust_available_copies(self, book_id, delta):
                return repo.adjust_available_copies(book_id, delta)

            def insert(self, record):
                return repo.insert(record)

        stale_service = LendingService(StaleRepository(), clock=clock)

        with pytest.raises(NoCopiesAvailableError):
            stale_service.borrow(data["carol"].id, book.id)

        assert available(repo, book) == 0
        assert repo.find(Order, user_id=data["carol"].id) == []

    def test_failed_order_insert_restores_copy(self, repo, data, book, clock):
        class FailingInsert(InMemoryRepository):
            def get(self, kind, record_id):
                return repo.get(kind, record_id)

            def find(self, kind, **filters):
                return repo.find(kind, **filters)

            def adjust_available_copies(self, book_id, delta):
                return repo.adjust_available_copies(book_id, delta)

            def insert(self, record):
                raise PersistenceError("Failed to create order")

        service = LendingService(FailingInsert(), clock=clock)

        with pytest.raises(PersistenceError):
            service.borrow(data["alice"].id, book.id)

        assert available(repo, book) == 2


class TestReturn:

    def test_on_time_return(self, service, repo, data, book, clock):
        service.borrow(data["alice"].id, book.id)
        clock.advance(days=3)

        order = service.return_book(data["alice"].id, book.id)

        assert order.status == OrderStatus.RETURNED.value
        assert order.return_date == clock.now
        assert available(repo, book) == 2

    def test_return_on_due_date_is_not_overdue(self, service, data, book, clock):
        service.borrow(data["alice"].id, book.id)
        clock.advance(days=14)

        order = service.return_book(data["alice"].id, book.id)

        assert order.status == OrderStatus.RETURNED.value

    def test_late_return_is_overdue(self, service, repo, data, book, clock):
        service.borrow(data["alice"].id, book.id)
        clock.advance(days=14, seconds=1)

        order = service.return_book(data["alice"].id, book.id)

        assert order.status == OrderStatus.OVERDUE.value
        assert order.return_date == clock.now
        assert available(repo, book) == 2

    def test_return_without_borrow(self, service, repo, data, book):
        with pytest.raises(NoActiveBorrowError):
            service.return_book(data["alice"].id, book.id)

        assert available(repo, book) == 2

    def test_cannot_return_twice(self, service, data, book):
        service.borrow(data["alice"].id, book.id)
        service.return_book(data["alice"].id, book.id)

        with pytest.raises(NoActiveBorrowError):
            service.return_book(data["alice"].id, book.id)

    def test_only_the_borrower_can_return(self, service, data, book):
        service.borrow(data["alice"].id, book.id)

        with pytest.raises(NoActiveBorrowError):
            service.return_book(data["bob"].id, book.id)

    def test_copy_count_stays_in_bounds(self, service, repo, data, book):
        users = [data["alice"], data["bob"], data["carol"]]
        for _ in range(3):
            for user in users:
                try:
                    service.borrow(user.id, book.id)
                except NoCopiesAvailableError:
                    pass
                count = available(repo, book)
                assert 0 <= count <= book.total_copies
            for user in users:
                try:
                    service.return_book(user.id, book.id)
                except NoActiveBorrowError:
                    pass
                count = available(repo, book)
                assert 0 <= count <= book.total_copies

        assert available(repo, book) == book.total_copies


class TestReview:

    def test_review_after_return(self, service, repo, data, book):
        service.borrow(data["alice"].id, book.id)
        service.return_book(data["alice"].id, book.id)

        review = service.review(data["alice"].id, book.id, rating=5, comment="Superb")

        assert review.id is not None
        assert review.rating == 5
        assert repo.find(Review, book_id=book.id) == [review]

    def test_review_after_overdue_return(self, service, data, book, clock):
        service.borrow(data["alice"].id, book.id)
        clock.advance(days=30)
        service.return_book(data["alice"].id, book.id)

        review = service.review(data["alice"].id, book.id, rating=3)

        assert review.comment is None

    def test_review_while_still_borrowed(self, service, data, book):
        service.borrow(data["alice"].id, book.id)

        with pytest.raises(ReviewNotAllowedError):
            service.review(data["alice"].id, book.id, rating=4)

    def test_review_without_borrowing(self, service, data, book):
        with pytest.raises(ReviewNotAllowedError):
            service.review(data["alice"].id, book.id, rating=4)

    def test_only_one_review_per_book(self, service, repo, data, book):
        service.borrow(data["alice"].id, book.id)
        service.return_book(data["alice"].id, book.id)
        service.review(data["alice"].id, book.id, rating=4)

        # A second loan does not unlock a second review
        service.borrow(data["alice"].id, book.id)
        service.return_book(data["alice"].id, book.id)

        with pytest.raises(AlreadyReviewedError):
            service.review(data["alice"].id, book.id, rating=2)

        assert len(repo.find(Review, user_id=data["alice"].id, book_id=book.id)) == 1

    def test_missing_book(self, service, data):
        with pytest.raises(NotFoundError):
            service.review(data["alice"].id, 999, rating=4)

    @pytest.mark.parametrize("rating", [0, 6, -1, None, True, 4.5])
    def test_rating_validated_before_lookup(self, service, data, rating):
        # Book 999 does not exist; validation must fail first
        with pytest.raises(ValidationError):
            service.review(data["alice"].id, 999, rating=rating)


class TestListOrders:

    def test_most_recent_first(self, service, repo, data, book, clock):
        other = repo.insert(
            Book(
                title="The Left Hand of Darkness",
                isbn="9780441478125",
                genre_id=data["genre"].id,
                total_copies=1,
                available_copies=1,
            )
        )
        first = service.borrow(data["alice"].id, book.id)
        clock.advance(hours=1)
        second = service.borrow(data["alice"].id, other.id)
        service.borrow(data["bob"].id, book.id)

        orders = service.list_orders(data["alice"].id)

        assert [o.id for o in orders] == [second.id, first.id]
