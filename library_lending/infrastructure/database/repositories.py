"""Data access layer for books, members and loans"""

from datetime import date
from typing import List, Optional
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session
from library_lending.infrastructure.database.models import Book, Member, Loan
from library_lending.domain.models import ACTIVE_STATUSES, LoanFilter, LoanStatus, BorrowingStats

ACTIVE_STATUS_VALUES = [s.value for s in ACTIVE_STATUSES]


class BookRepository:
    """Repository for books and their copy counts"""

    def __init__(self, db: Session):
        self.db = db

    def create_book(self, title: str, total_copies: int = 1, isbn: str | None = None) -> Book:
        """Add a book with every copy on the shelf"""
        db_book = Book(title=title, isbn=isbn, total_copies=total_copies, available_copies=total_copies)
        self.db.add(db_book)
        self.db.flush()
        return db_book

    def get_book(self, book_id: int) -> Optional[Book]:
        return self.db.get(Book, book_id)

    def get_book_for_update(self, book_id: int) -> Optional[Book]:
        """Fetch and row-lock a book until the surrounding transaction ends"""
        return (
            self.db.query(Book)
            .filter(Book.id == book_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def decrement_available(self, book_id: int) -> bool:
        """Take one copy off the shelf; False if none was left"""
        result = self.db.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies > 0)
            .values(available_copies=Book.available_copies - 1)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def increment_available(self, book_id: int) -> bool:
        """Put one copy back; False if the shelf was already full"""
        result = self.db.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies < Book.total_copies)
            .values(available_copies=Book.available_copies + 1)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1


class MemberRepository:
    """Repository for members"""

    def __init__(self, db: Session):
        self.db = db

    def create_member(self, name: str, email: str, membership_status: str = "ACTIVE") -> Member:
        db_member = Member(name=name, email=email, membership_status=membership_status)
        self.db.add(db_member)
        self.db.flush()
        return db_member

    def get_member(self, member_id: int) -> Optional[Member]:
        return self.db.get(Member, member_id)

    def get_member_for_update(self, member_id: int) -> Optional[Member]:
        """Fetch and row-lock a member so concurrent borrows by the same member serialize"""
        return (
            self.db.query(Member)
            .filter(Member.id == member_id)
            .with_for_update()
            .populate_existing()
            .first()
        )


class LoanRepository:
    """Repository for loan records"""

    def __init__(self, db: Session):
        self.db = db

    def create_loan(
        self,
        book_id: int,
        member_id: int,
        borrow_date: date,
        due_date: date,
        notes: str | None = None,
    ) -> Loan:
        """Persist a new loan in BORROWED state"""
        db_loan = Loan(
            book_id=book_id,
            member_id=member_id,
            borrow_date=borrow_date,
            due_date=due_date,
            status=LoanStatus.BORROWED.value,
            fine_cents=0,
            notes=notes,
        )
        self.db.add(db_loan)
        self.db.flush()  # Get ID without committing
        return db_loan

    def get_loan(self, loan_id: int) -> Optional[Loan]:
        return self.db.get(Loan, loan_id)

    def get_loan_for_update(self, loan_id: int) -> Optional[Loan]:
        """Fetch and row-lock a loan; concurrent return/sweep/update wait on it"""
        return (
            self.db.query(Loan)
            .filter(Loan.id == loan_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def delete_loan(self, loan: Loan) -> None:
        self.db.delete(loan)
        self.db.flush()

    def has_active_loan(self, book_id: int, member_id: int) -> bool:
        """True if the member currently holds this book"""
        count = (
            self.db.query(func.count(Loan.id))
            .filter(
                Loan.book_id == book_id,
                Loan.member_id == member_id,
                Loan.status.in_(ACTIVE_STATUS_VALUES),
            )
            .scalar()
        )
        return count > 0

    def count_active_by_member(self, member_id: int) -> int:
        return (
            self.db.query(func.count(Loan.id))
            .filter(Loan.member_id == member_id, Loan.status.in_(ACTIVE_STATUS_VALUES))
            .scalar()
        )

    def count_active_by_book(self, book_id: int) -> int:
        return (
            self.db.query(func.count(Loan.id))
            .filter(Loan.book_id == book_id, Loan.status.in_(ACTIVE_STATUS_VALUES))
            .scalar()
        )

    def get_loans_by_member(self, member_id: int) -> List[Loan]:
        return self.db.query(Loan).filter(Loan.member_id == member_id).all()

    def find_overdue_candidates(self, today: date) -> List[Loan]:
        """
        Active loans the sweep must look at, locked for the sweep.

        That is every active loan past its due date plus every OVERDUE loan
        whose due date was since moved forward. Rows locked by another
        operation are waited on, not skipped, so no loan misses a run.
        """
        return (
            self.db.query(Loan)
            .filter(
                Loan.status.in_(ACTIVE_STATUS_VALUES),
                or_(Loan.due_date < today, Loan.status == LoanStatus.OVERDUE.value),
            )
            .order_by(Loan.id)
            .with_for_update()
            .populate_existing()
            .all()
        )

    def mark_returned(self, loan_id: int, return_date: date, fine_cents: int) -> bool:
        """Close a loan only if it is still active; False if another request closed it first"""
        result = self.db.execute(
            update(Loan)
            .where(Loan.id == loan_id, Loan.status.in_(ACTIVE_STATUS_VALUES), Loan.return_date.is_(None))
            .values(status=LoanStatus.RETURNED.value, return_date=return_date, fine_cents=fine_cents)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def mark_overdue(self, loan_id: int, fine_cents: int) -> bool:
        """Set OVERDUE with a fresh fine only if the loan is still active"""
        result = self.db.execute(
            update(Loan)
            .where(Loan.id == loan_id, Loan.status.in_(ACTIVE_STATUS_VALUES), Loan.return_date.is_(None))
            .values(status=LoanStatus.OVERDUE.value, fine_cents=fine_cents)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def list_loans(self, criteria: LoanFilter) -> List[Loan]:
        """List loans matching every set criterion, oldest first"""
        query = self.db.query(Loan)
        if criteria.member_id is not None:
            query = query.filter(Loan.member_id == criteria.member_id)
        if criteria.book_id is not None:
            query = query.filter(Loan.book_id == criteria.book_id)
        if criteria.status is not None:
            query = query.filter(Loan.status == LoanStatus(criteria.status).value)
        if criteria.borrowed_from is not None:
            query = query.filter(Loan.borrow_date >= criteria.borrowed_from)
        if criteria.borrowed_to is not None:
            query = query.filter(Loan.borrow_date <= criteria.borrowed_to)
        if criteria.due_on is not None:
            query = query.filter(Loan.due_date == criteria.due_on)
        return query.order_by(Loan.borrow_date, Loan.id).all()

    def get_statistics(self) -> BorrowingStats:
        """Count loans per status and total all recorded fines"""
        counts = dict(
            self.db.query(Loan.status, func.count(Loan.id)).group_by(Loan.status).all()
        )
        total_fines = self.db.query(func.coalesce(func.sum(Loan.fine_cents), 0)).scalar()
        return BorrowingStats(
            total_loans=sum(counts.values()),
            borrowed=counts.get(LoanStatus.BORROWED.value, 0),
            overdue=counts.get(LoanStatus.OVERDUE.value, 0),
            returned=counts.get(LoanStatus.RETURNED.value, 0),
            lost=counts.get(LoanStatus.LOST.value, 0),
            damaged=counts.get(LoanStatus.DAMAGED.value, 0),
            total_fines_cents=int(total_fines),
        )
