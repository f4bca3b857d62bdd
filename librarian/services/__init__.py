"""
Services for Librarian

- catalog: book listing, creation and deletion
- lending: borrow/return/review rules
- identity: bearer token -> principal
"""

from librarian.services.catalog import CatalogService, BookDetails
from librarian.services.lending import LendingService, DEFAULT_LOAN_PERIOD
from librarian.services.identity import IdentityService, Principal

__all__ = [
    "CatalogService",
    "BookDetails",
    "LendingService",
    "DEFAULT_LOAN_PERIOD",
    "IdentityService",
    "Principal",
]
