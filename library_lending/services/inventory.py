"""Inventory ledger - the only writer of a book's available copy count"""

import logging
from sqlalchemy.orm import Session

from library_lending.domain.exceptions import InventoryError
from library_lending.infrastructure.database.repositories import BookRepository
from library_lending.infrastructure.observability.metrics import inventory_error_counter

logger = logging.getLogger(__name__)


class InventoryLedger:
    """
    Moves copies between shelf and loans inside the caller's transaction.

    Each change is one conditional UPDATE, so the database itself refuses any
    write that would leave 0 <= available_copies <= total_copies. A refused
    write is reported, never clamped.
    """

    def __init__(self, db: Session):
        self.books = BookRepository(db)

    def reserve(self, book_id: int) -> None:
        """
        Take one copy off the shelf.

        Raises:
            InventoryError: No copy was available
        """
        if not self.books.decrement_available(book_id):
            self._fail("reserve", book_id, "insufficient copies")

    def release(self, book_id: int) -> None:
        """
        Return one copy to the shelf.

        Raises:
            InventoryError: Every copy is already on the shelf
        """
        if not self.books.increment_available(book_id):
            self._fail("release", book_id, "over capacity")

    def _fail(self, operation: str, book_id: int, problem: str) -> None:
        inventory_error_counter.labels(operation=operation).inc()
        logger.error(
            f"Inventory {operation} refused for book {book_id}: {problem}",
            extra={"book_id": book_id, "step": f"inventory_{operation}"},
        )
        raise InventoryError(f"Cannot {operation} a copy of book {book_id}: {problem}")
