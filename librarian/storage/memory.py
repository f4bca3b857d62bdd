"""
In-memory repository.

Implements the ``Repository`` contract over dictionaries, including the
constraints the SQL schema enforces: unique emails/ISBNs, foreign keys,
restricted deletes with cascading author links, and the conditional copy
update. Used by the service tests and handy for local experiments.
"""

import threading
from dataclasses import replace
from typing import Optional, Type, TypeVar

from ..clock import utcnow
from ..exceptions import ReferentialIntegrityError, DuplicateRecordError
from .records import (
    User,
    Author,
    Genre,
    Book,
    BookAuthor,
    Order,
    Review,
    CREATED_AT_FIELDS,
)
from .repository import Repository, COLLECTION_TYPES, _check_fields

R = TypeVar("R")

UNIQUE_FIELDS = {
    User: ("email",),
    Book: ("isbn",),
}

# child kind -> {foreign key field: parent kind}
FOREIGN_KEYS = {
    Book: {"genre_id": Genre},
    BookAuthor: {"book_id": Book, "author_id": Author},
    Order: {"user_id": User, "book_id": Book},
    Review: {"user_id": User, "book_id": Book},
}

# Children removed together with their parent; every other reference restricts
CASCADE_KINDS = (BookAuthor,)


def _key(record):
    if isinstance(record, BookAuthor):
        return (record.book_id, record.author_id)
    return record.id


class InMemoryRepository(Repository):
    """Dictionary-backed repository. Thread-safe."""

    def __init__(self):
        self._tables = {kind: {} for kind in (User, Author, Genre, Book, BookAuthor, Order, Review)}
        self._next_id = {kind: 1 for kind in self._tables}
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, kind: Type[R], record_id: int) -> Optional[R]:
        with self._lock:
            record = self._tables[kind].get(record_id)
            return replace(record) if record is not None else None

    def find(self, kind: Type[R], **filters) -> list[R]:
        _check_fields(kind, filters)
        with self._lock:
            rows = [self._tables[kind][k] for k in sorted(self._tables[kind])]
            return [replace(r) for r in rows if self._matches(r, filters)]

    @staticmethod
    def _matches(record, filters: dict) -> bool:
        for name, expected in filters.items():
            actual = getattr(record, name)
            if isinstance(expected, COLLECTION_TYPES):
                if actual not in expected:
                    return False
            elif actual != expected:
                return False
        return True

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert(self, record: R) -> R:
        kind = type(record)
        with self._lock:
            stored = replace(record)
            if kind is not BookAuthor and stored.id is None:
                stored.id = self._next_id[kind]

            created_field = CREATED_AT_FIELDS.get(kind)
            if created_field and getattr(stored, created_field) is None:
                setattr(stored, created_field, utcnow())

            if _key(stored) in self._tables[kind]:
                raise DuplicateRecordError(f"{kind.__name__} already exists")
            self._check_unique(stored)
            self._check_references(stored)

            self._tables[kind][_key(stored)] = stored
            if kind is not BookAuthor:
                self._next_id[kind] = max(self._next_id[kind], stored.id + 1)
            return replace(stored)

    def update(self, kind: Type[R], record_id: int, **changes) -> Optional[R]:
        _check_fields(kind, changes)
        with self._lock:
            current = self._tables[kind].get(record_id)
            if current is None:
                return None

            updated = replace(current, **changes)
            self._check_unique(updated)
            self._check_references(updated)
            self._tables[kind][record_id] = updated
            return replace(updated)

    def delete(self, kind: Type[R], record_id: int) -> bool:
        with self._lock:
            if record_id not in self._tables[kind]:
                return False

            cascaded = []
            for child_kind, references in FOREIGN_KEYS.items():
                for field_name, parent_kind in references.items():
                    if parent_kind is not kind:
                        continue
                    children = [
                        key for key, child in self._tables[child_kind].items()
                        if getattr(child, field_name) == record_id
                    ]
                    if not children:
                        continue
                    if child_kind not in CASCADE_KINDS:
                        raise ReferentialIntegrityError(
                            f"{kind.__name__} is still referenced by other records",
                            detail=f"{len(children)} {child_kind.__name__} record(s) reference it",
                        )
                    cascaded.extend((child_kind, key) for key in children)

            for child_kind, key in cascaded:
                del self._tables[child_kind][key]
            del self._tables[kind][record_id]
            return True

    def adjust_available_copies(self, book_id: int, delta: int) -> bool:
        with self._lock:
            book = self._tables[Book].get(book_id)
            if book is None:
                return False

            new_count = book.available_copies + delta
            if not 0 <= new_count <= book.total_copies:
                return False

            self._tables[Book][book_id] = replace(book, available_copies=new_count)
            return True

    # -------------------------------------------------------------------------
    # Constraints
    # -------------------------------------------------------------------------

    def _check_unique(self, record) -> None:
        kind = type(record)
        for name in UNIQUE_FIELDS.get(kind, ()):
            value = getattr(record, name)
            for key, other in self._tables[kind].items():
                if key != _key(record) and getattr(other, name) == value:
                    raise DuplicateRecordError(
                        f"{kind.__name__} already exists",
                        detail=f"{name} '{value}' is taken",
                    )

    def _check_references(self, record) -> None:
        for name, parent_kind in FOREIGN_KEYS.get(type(record), {}).items():
            if getattr(record, name) not in self._tables[parent_kind]:
                raise ReferentialIntegrityError(
                    f"{parent_kind.__name__} {getattr(record, name)} does not exist",
                )
