"""Integration tests for the inventory ledger"""

import pytest
from library_lending.domain.exceptions import InventoryError
from library_lending.infrastructure.database.repositories import BookRepository
from library_lending.services.inventory import InventoryLedger


def test_reserve_and_release_move_one_copy(db, make_book):
    book = make_book(total_copies=3)
    ledger = InventoryLedger(db)

    ledger.reserve(book.id)
    db.commit()
    assert BookRepository(db).get_book(book.id).available_copies == 2

    ledger.release(book.id)
    db.commit()
    assert BookRepository(db).get_book(book.id).available_copies == 3


def test_reserve_with_no_copies_fails_without_clamping(db, make_book):
    book = make_book(total_copies=1)
    ledger = InventoryLedger(db)
    ledger.reserve(book.id)
    db.commit()

    with pytest.raises(InventoryError) as exc:
        ledger.reserve(book.id)
    db.rollback()

    assert exc.value.reason == "InventoryError"
    assert BookRepository(db).get_book(book.id).available_copies == 0


def test_release_at_capacity_fails(db, make_book):
    book = make_book(total_copies=2)

    with pytest.raises(InventoryError):
        InventoryLedger(db).release(book.id)
    db.rollback()

    refreshed = BookRepository(db).get_book(book.id)
    assert refreshed.available_copies == refreshed.total_copies == 2


def test_unknown_book_is_refused(db):
    with pytest.raises(InventoryError):
        InventoryLedger(db).reserve(9999)
