"""
Error taxonomy for Librarian.

Every error carries the HTTP status it maps to, so services can raise them
without knowing about the web layer and the API renders them uniformly.
"""


class LibrarianError(Exception):
    """Base exception for Librarian errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(LibrarianError):
    """Input validation failed."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class AuthenticationError(LibrarianError):
    """Missing or invalid credential."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(
            message=message,
            code="UNAUTHENTICATED",
            status_code=401,
        )


class ForbiddenError(LibrarianError):
    """Authenticated, but not allowed."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


class NotFoundError(LibrarianError):
    """Resource not found."""

    def __init__(self, resource: str, identifier):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource.lower()} with identifier '{identifier}' exists",
        )


# =============================================================================
# Business rules
# =============================================================================

class BusinessRuleError(LibrarianError):
    """A request conflicts with the lending rules."""

    code = "BUSINESS_RULE_VIOLATION"
    message = "Request violates a lending rule"

    def __init__(self, message: str = None, detail: str = None):
        super().__init__(
            message=message or type(self).message,
            code=type(self).code,
            status_code=400,
            detail=detail,
        )


class NoCopiesAvailableError(BusinessRuleError):
    code = "NO_COPIES_AVAILABLE"
    message = "No available copies of this book"


class AlreadyBorrowedError(BusinessRuleError):
    code = "ALREADY_BORROWED"
    message = "You have already borrowed this book"


class NoActiveBorrowError(BusinessRuleError):
    code = "NO_ACTIVE_BORROW"
    message = "No active borrow record found for this book"


class ReviewNotAllowedError(BusinessRuleError):
    code = "REVIEW_NOT_ALLOWED"
    message = "You must borrow and return the book before reviewing"


class AlreadyReviewedError(BusinessRuleError):
    code = "ALREADY_REVIEWED"
    message = "You have already reviewed this book"


class BookInUseError(BusinessRuleError):
    code = "BOOK_IN_USE"
    message = "Book is referenced by orders or reviews and cannot be deleted"


# =============================================================================
# Persistence
# =============================================================================

class PersistenceError(LibrarianError):
    """The store failed to carry out an operation."""

    def __init__(self, message: str, detail: str = None):
        super().__init__(
            message=message,
            code="PERSISTENCE_ERROR",
            status_code=500,
            detail=detail,
        )


class ReferentialIntegrityError(PersistenceError):
    """A write or delete would leave a dangling or restricted reference."""


class DuplicateRecordError(PersistenceError):
    """A uniqueness constraint rejected the write."""
