"""Loan lifecycle engine - borrow, return, extend, sweep and admin changes"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterator, List, Optional
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from library_lending.domain.models import (
    ACTIVE_STATUSES,
    BorrowContext,
    BorrowingStats,
    LendingPolicy,
    LoanFilter,
    LoanStatus,
    LoanUpdate,
)
from library_lending.domain.exceptions import (
    LendingError,
    InventoryError,
    NotFoundError,
    InvalidRequestError,
    NotActiveError,
    AlreadyReturnedError,
    StoreUnavailableError,
)
from library_lending.domain.eligibility import check_eligibility
from library_lending.domain.fines import calculate_fine
from library_lending.infrastructure.database.models import Loan
from library_lending.infrastructure.database.repositories import BookRepository, MemberRepository, LoanRepository
from library_lending.infrastructure.observability.logging import log_loan_event
from library_lending.infrastructure.observability.metrics import (
    record_loan_operation,
    fine_cents_histogram,
    overdue_marked_counter,
    sweep_duration_histogram,
)
from library_lending.services.inventory import InventoryLedger
from library_lending.utils.date_utils import add_days

logger = logging.getLogger(__name__)

ACTIVE_STATUS_VALUES = {s.value for s in ACTIVE_STATUSES}


class LendingService:
    """
    Orchestrates loan state against inventory and eligibility rules.

    Every public operation is one explicit transaction: it either commits
    all of its row changes or rolls them all back. Rows that an operation
    reads and then rewrites are locked (SELECT ... FOR UPDATE) for the
    duration of that transaction only.

    Lock order is member -> book for borrows and loan -> book for returns
    and deletes, so no two operations wait on each other in a cycle.
    """

    def __init__(
        self,
        db: Session,
        policy: LendingPolicy,
        today: Callable[[], date] = date.today,
        request_id: str | None = None,
    ):
        self.db = db
        self.policy = policy
        self.today = today
        self.request_id = request_id
        self.books = BookRepository(db)
        self.members = MemberRepository(db)
        self.loans = LoanRepository(db)
        self.inventory = InventoryLedger(db)

    @contextmanager
    def _transaction(self, operation: str | None = None) -> Iterator[None]:
        """Commit on success, roll back on any failure and translate store errors"""
        try:
            yield
            self.db.commit()
        except InventoryError:
            self.db.rollback()
            self._record(operation, "error", InventoryError.reason)
            raise
        except LendingError as e:
            self.db.rollback()
            self._record(operation, "rejected", e.reason)
            logger.warning(
                f"{operation or 'read'} rejected: {e.message}",
                extra={"request_id": self.request_id, "reason": e.reason},
            )
            raise
        except IntegrityError as e:
            self.db.rollback()
            self._record(operation, "error", InvalidRequestError.reason)
            logger.error(f"Integrity violation during {operation}: {e.orig}", extra={"request_id": self.request_id})
            raise InvalidRequestError("Request conflicts with existing records") from e
        except DBAPIError as e:
            self.db.rollback()
            self._record(operation, "error", StoreUnavailableError.reason)
            logger.error(f"Store failure during {operation}: {e.orig}", extra={"request_id": self.request_id})
            raise StoreUnavailableError("Storage is temporarily unavailable, retry the request") from e
        except Exception:
            self.db.rollback()
            self._record(operation, "error")
            raise
        else:
            self._record(operation, "success")

    @staticmethod
    def _record(operation: str | None, outcome: str, reason: str | None = None) -> None:
        if operation:
            record_loan_operation(operation, outcome, reason)

    # =============== LIFECYCLE OPERATIONS ===============

    def borrow(
        self,
        book_id: int,
        member_id: int,
        borrow_date: date | None = None,
        due_date: date | None = None,
        notes: str | None = None,
    ) -> Loan:
        """
        Create a loan in BORROWED state and take a copy off the shelf.

        The member and book rows stay locked from the eligibility check until
        commit, so two requests for the last copy cannot both pass.

        Raises:
            NotFoundError: Unknown book or member
            EligibilityError: A borrowing rule failed (first failing rule)
            InvalidRequestError: Due date precedes borrow date
        """
        with self._transaction("borrow"):
            # Unknown book is reported before unknown member; locks still go member -> book
            if self.books.get_book(book_id) is None:
                raise NotFoundError("Book", book_id)

            member = self.members.get_member_for_update(member_id)
            if member is None:
                raise NotFoundError("Member", member_id)

            book = self.books.get_book_for_update(book_id)
            if book is None:
                raise NotFoundError("Book", book_id)

            today = self.today()
            check_eligibility(
                BorrowContext(
                    membership_status=member.membership_status,
                    available_copies=book.available_copies,
                    has_active_loan_for_book=self.loans.has_active_loan(book_id, member_id),
                    active_loan_count=self.loans.count_active_by_member(member_id),
                    outstanding_fines_cents=self._outstanding_fines(member_id, today),
                ),
                self.policy,
            )

            borrow_date = borrow_date or today
            due_date = due_date or add_days(borrow_date, self.policy.default_borrow_days)
            if due_date < borrow_date:
                raise InvalidRequestError("Due date cannot be before borrow date")

            loan = self.loans.create_loan(book_id, member_id, borrow_date, due_date, notes)
            self.inventory.reserve(book_id)

        log_loan_event("loan_borrowed", loan, self.request_id, due_date=loan.due_date.isoformat())
        return loan

    def return_loan(self, loan_id: int) -> Loan:
        """
        Close an active loan today and put its copy back on the shelf.

        The fine is always recomputed from the due date, never taken from a
        value a previous sweep stored.

        Raises:
            NotFoundError: Unknown loan
            NotActiveError: Loan is not BORROWED or OVERDUE
            AlreadyReturnedError: Loan already carries a return date
        """
        with self._transaction("return"):
            loan = self._lock_loan(loan_id)
            self._close_as_returned(loan)

        fine_cents_histogram.observe(loan.fine_cents)
        log_loan_event("loan_returned", loan, self.request_id)
        return loan

    def extend_due_date(self, loan_id: int, days: int) -> Loan:
        """
        Push an active loan's due date back by days.

        An OVERDUE status is left alone but its stored fine is recomputed
        against the new due date.
        """
        with self._transaction("extend"):
            if not self.policy.min_extension_days <= days <= self.policy.max_extension_days:
                raise InvalidRequestError(
                    f"Extension must be between {self.policy.min_extension_days} and "
                    f"{self.policy.max_extension_days} days"
                )
            loan = self._lock_loan(loan_id)
            if loan.status not in ACTIVE_STATUS_VALUES:
                raise NotActiveError(f"Only active loans can be extended. Current status: {loan.status}")
            loan.due_date = add_days(loan.due_date, days)
            self._refresh_overdue_fine(loan)

        log_loan_event("loan_extended", loan, self.request_id, days=days, due_date=loan.due_date.isoformat())
        return loan

    def update_loan(self, loan_id: int, changes: LoanUpdate) -> Loan:
        """
        Administrative field-level update.

        - notes may always change
        - due_date may change while the loan is active
        - status may move an active loan to RETURNED (same as a return),
          LOST or DAMAGED; LOST/DAMAGED freeze today's fine and keep the copy
          off the shelf
        """
        with self._transaction("update"):
            loan = self._lock_loan(loan_id)
            active = loan.status in ACTIVE_STATUS_VALUES

            if changes.due_date is not None:
                if not active:
                    raise NotActiveError(f"Due date of a {loan.status} loan cannot change")
                if changes.due_date < loan.borrow_date:
                    raise InvalidRequestError("Due date cannot be before borrow date")
                loan.due_date = changes.due_date
                self._refresh_overdue_fine(loan)

            if changes.notes is not None:
                loan.notes = changes.notes

            target = LoanStatus(changes.status) if changes.status is not None else None
            if target is not None and target.value != loan.status:
                if not active:
                    raise InvalidRequestError(f"Status of a {loan.status} loan is final")
                if target == LoanStatus.RETURNED:
                    self._close_as_returned(loan)
                elif target in (LoanStatus.LOST, LoanStatus.DAMAGED):
                    loan.status = target.value
                    loan.fine_cents = calculate_fine(loan.due_date, self.today(), self.policy)
                else:
                    raise InvalidRequestError(f"Status {target.value} is only set by the lending lifecycle")

        log_loan_event("loan_updated", loan, self.request_id)
        return loan

    def delete_loan(self, loan_id: int) -> None:
        """Remove a loan record, first putting its copy back if it was still out"""
        with self._transaction("delete"):
            loan = self._lock_loan(loan_id)
            released = loan.status in ACTIVE_STATUS_VALUES
            if released:
                self.inventory.release(loan.book_id)
            log_fields = {"loan_id": loan.id, "book_id": loan.book_id, "member_id": loan.member_id}
            self.loans.delete_loan(loan)

        logger.info(
            "Loan deleted",
            extra={"request_id": self.request_id, "step": "loan_deleted", "copy_released": released, **log_fields},
        )

    def sweep(self) -> int:
        """
        Mark past-due active loans OVERDUE and refresh their fines to today.

        OVERDUE loans whose due date has since moved forward are refreshed
        too, so their stored fine drops to what is owed today.

        Returns the number of loans whose status or fine changed, so a second
        run on the same day reports 0 and changes nothing.
        """
        with sweep_duration_histogram.time():
            with self._transaction("sweep"):
                today = self.today()
                updated = 0
                for loan in self.loans.find_overdue_candidates(today):
                    fine = calculate_fine(loan.due_date, today, self.policy)
                    if loan.status == LoanStatus.OVERDUE.value and loan.fine_cents == fine:
                        continue
                    was_borrowed = loan.status == LoanStatus.BORROWED.value
                    if not self.loans.mark_overdue(loan.id, fine):
                        # Closed by a return that committed after the candidates were read
                        continue
                    if was_borrowed:
                        overdue_marked_counter.inc()
                    updated += 1

        logger.info(
            f"Updated {updated} overdue loans",
            extra={"request_id": self.request_id, "step": "overdue_sweep_complete", "updated": updated},
        )
        return updated

    # =============== QUERIES ===============

    def get_loan(self, loan_id: int) -> Optional[Loan]:
        with self._transaction():
            loan = self.loans.get_loan(loan_id)
        return loan

    def list_loans(self, criteria: LoanFilter | None = None) -> List[Loan]:
        criteria = criteria or LoanFilter()
        with self._transaction():
            if (
                criteria.borrowed_from is not None
                and criteria.borrowed_to is not None
                and criteria.borrowed_from > criteria.borrowed_to
            ):
                raise InvalidRequestError("Start date cannot be after end date")
            loans = self.loans.list_loans(criteria)
        return loans

    def member_outstanding_fines(self, member_id: int) -> int:
        """Fines in cents: frozen amounts of closed loans plus today's fine on active ones"""
        with self._transaction():
            if self.members.get_member(member_id) is None:
                raise NotFoundError("Member", member_id)
            total = self._outstanding_fines(member_id, self.today())
        return total

    def borrowing_stats(self) -> BorrowingStats:
        with self._transaction():
            stats = self.loans.get_statistics()
        return stats

    # =============== PRIVATE HELPERS ===============

    def _lock_loan(self, loan_id: int) -> Loan:
        loan = self.loans.get_loan_for_update(loan_id)
        if loan is None:
            raise NotFoundError("Loan", loan_id)
        return loan

    def _close_as_returned(self, loan: Loan) -> None:
        if loan.status not in ACTIVE_STATUS_VALUES:
            raise NotActiveError(f"Loan is not currently borrowed. Current status: {loan.status}")
        if loan.return_date is not None:
            raise AlreadyReturnedError(f"Loan was already returned on {loan.return_date.isoformat()}")

        today = self.today()
        self.db.flush()
        if not self.loans.mark_returned(loan.id, today, calculate_fine(loan.due_date, today, self.policy)):
            raise NotActiveError("Loan was closed by a concurrent request")
        self.inventory.release(loan.book_id)

    def _refresh_overdue_fine(self, loan: Loan) -> None:
        if loan.status == LoanStatus.OVERDUE.value:
            loan.fine_cents = calculate_fine(loan.due_date, self.today(), self.policy)

    def _outstanding_fines(self, member_id: int, today: date) -> int:
        # Stored fines on active loans go stale between sweeps; recompute them
        return sum(
            calculate_fine(loan.due_date, today, self.policy)
            if loan.status in ACTIVE_STATUS_VALUES
            else loan.fine_cents
            for loan in self.loans.get_loans_by_member(member_id)
        )
