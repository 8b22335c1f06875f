import logging
from typing import Iterable, List, Optional

from book import Book

logger = logging.getLogger(__name__)


SEED_BOOKS = [
    {"id": "1", "title": "Golang pointers", "author": "Mr. Golang", "quantity": 2},
    {"id": "2", "title": "Goroutines", "author": "Mr. Goroutine", "quantity": 20},
    {"id": "3", "title": "Golang routers", "author": "Mr. Router", "quantity": 30},
    {"id": "4", "title": "Golang concurrency", "author": "Mr. Currency", "quantity": 40},
]


class LibraryError(Exception):
    """Base class for registry errors; `message` is safe to show to clients."""

    message = "library error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingParameterError(LibraryError, ValueError):
    message = "missing query parameter 'id'"


class BookNotFoundError(LibraryError, LookupError):
    message = "book not found"


class BookUnavailableError(LibraryError, ValueError):
    message = "book is not available at the moment, check in again later"


class Library:
    """Owns the in-memory book collection for the lifetime of the app.

    Records are kept in insertion order. Ids are not deduplicated, so lookups
    return the first match. Mutations are not synchronized: the availability
    check and the decrement in `checkout_book` are separate steps, and two
    concurrent checkouts can drive a quantity below zero.
    """

    def __init__(self, books: Optional[Iterable[Book]] = None, seed: bool = True) -> None:
        if books is not None:
            self.books: List[Book] = list(books)
        elif seed:
            self.books = [Book.from_dict(data) for data in SEED_BOOKS]
        else:
            self.books = []
        logger.debug(f"Library initialized with {len(self.books)} books")

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        return list(self.books)

    def count(self) -> int:
        return len(self.books)

    def add_book(self, book: Book) -> Book:
        """Append the book as given; no id generation or duplicate check."""
        self.books.append(book)
        logger.info(f"Book added: id={book.id!r} title={book.title!r}")
        return book

    def find_book(self, book_id: str) -> Book:
        """Return the first book with `book_id`; the object is the stored one."""
        for book in self.books:
            if book.id == book_id:
                return book
        raise BookNotFoundError()

    def checkout_book(self, book_id: Optional[str]) -> Book:
        book = self._require(book_id)
        if book.quantity <= 0:
            logger.warning(f"Checkout refused, no copies left: id={book.id!r}")
            raise BookUnavailableError()
        book.quantity -= 1
        logger.info(f"Book checked out: id={book.id!r} quantity={book.quantity}")
        return book

    def return_book(self, book_id: Optional[str]) -> Book:
        book = self._require(book_id)
        book.quantity += 1
        logger.info(f"Book returned: id={book.id!r} quantity={book.quantity}")
        return book

    # ------------------------- Helpers ------------------------- #
    def _require(self, book_id: Optional[str]) -> Book:
        if book_id is None:
            raise MissingParameterError()
        return self.find_book(book_id)
