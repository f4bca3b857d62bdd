"""
Catalog Service

Book listing and the admin-only create/delete operations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from loguru import logger

from librarian.exceptions import (
    ValidationError,
    NotFoundError,
    BookInUseError,
    PersistenceError,
    ReferentialIntegrityError,
    DuplicateRecordError,
)
from librarian.storage.records import Author, Book, BookAuthor, Genre
from librarian.storage.repository import Repository


@dataclass
class BookDetails:
    """A book joined with its genre name and author names."""

    id: int
    title: str
    isbn: str
    genre: str
    total_copies: int
    available_copies: int
    description: Optional[str] = None
    publication_year: Optional[int] = None
    cover_url: Optional[str] = None
    added_date: Optional[datetime] = None
    authors: list[str] = field(default_factory=list)


class CatalogService:
    """Reads and maintains the book catalog."""

    def __init__(self, repository: Repository):
        self.repository = repository

    def list_books(self) -> list[BookDetails]:
        """Every book with its genre and authors, in store order."""
        books = self.repository.find(Book)
        if not books:
            return []

        book_ids = [b.id for b in books]
        genres = {
            g.id: g.name
            for g in self.repository.find(Genre, id={b.genre_id for b in books})
        }
        links = self.repository.find(BookAuthor, book_id=book_ids)
        authors = {
            a.id: a.name
            for a in self.repository.find(Author, id={link.author_id for link in links})
        } if links else {}

        author_names: dict[int, list[str]] = {book_id: [] for book_id in book_ids}
        for link in links:
            if link.author_id in authors:
                author_names[link.book_id].append(authors[link.author_id])

        return [
            BookDetails(
                id=book.id,
                title=book.title,
                isbn=book.isbn,
                genre=genres.get(book.genre_id, ""),
                total_copies=book.total_copies,
                available_copies=book.available_copies,
                description=book.description,
                publication_year=book.publication_year,
                cover_url=book.cover_url,
                added_date=book.added_date,
                authors=author_names[book.id],
            )
            for book in books
        ]

    def create_book(
        self,
        title: str,
        isbn: str,
        genre_id: int,
        total_copies: int,
        author_ids: Sequence[int],
        description: Optional[str] = None,
        publication_year: Optional[int] = None,
        cover_url: Optional[str] = None,
    ) -> Book:
        """
        Add a book with all of its copies available.

        The book row is written first and then one link per author. The
        writes are not wrapped in a transaction: if linking fails part way,
        the book and the links made so far stay in place and the failure is
        reported as a persistence error.

        Raises:
            ValidationError: bad input, unknown genre or author, taken ISBN.
            PersistenceError: the store failed.
        """
        if not title or not title.strip():
            raise ValidationError("Title is required")
        if not isbn or not isbn.strip():
            raise ValidationError("ISBN is required")
        if total_copies is None or total_copies <= 0:
            raise ValidationError("total_copies must be greater than 0")

        # Linking the same author twice would collide on the join key
        unique_author_ids = list(dict.fromkeys(author_ids))

        if self.repository.get(Genre, genre_id) is None:
            raise ValidationError("Genre not found", detail=f"No genre with id {genre_id}")

        if unique_author_ids:
            found = {a.id for a in self.repository.find(Author, id=unique_author_ids)}
            missing = [a for a in unique_author_ids if a not in found]
            if missing:
                raise ValidationError(
                    "One or more authors not found",
                    detail=f"Unknown author ids: {missing}",
                )

        try:
            book = self.repository.insert(
                Book(
                    title=title,
                    isbn=isbn,
                    genre_id=genre_id,
                    total_copies=total_copies,
                    available_copies=total_copies,
                    description=description,
                    publication_year=publication_year,
                    cover_url=cover_url,
                )
            )
        except DuplicateRecordError:
            raise ValidationError("Book with this ISBN already exists", detail=isbn)

        logger.info(f"Created book {book.id}: {book.title} ({total_copies} copies)")

        linked = []
        for author_id in unique_author_ids:
            try:
                self.repository.insert(BookAuthor(book_id=book.id, author_id=author_id))
            except PersistenceError as e:
                logger.error(
                    f"Book {book.id} created but linking author {author_id} failed; "
                    f"linked so far: {linked}"
                )
                raise PersistenceError(
                    "Failed to associate authors with book",
                    detail=f"book_id={book.id}: {e.message}",
                ) from e
            linked.append(author_id)

        return book

    def delete_book(self, book_id: int) -> None:
        """
        Remove a book and its author links.

        Raises:
            NotFoundError: no such book.
            BookInUseError: orders or reviews still reference it.
        """
        if self.repository.get(Book, book_id) is None:
            raise NotFoundError("Book", book_id)

        try:
            deleted = self.repository.delete(Book, book_id)
        except ReferentialIntegrityError as e:
            logger.warning(f"Refused to delete book {book_id}: still referenced")
            raise BookInUseError(detail=e.detail) from e

        if not deleted:
            raise NotFoundError("Book", book_id)

        logger.info(f"Deleted book {book_id}")
