"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class LoanStatus(str, Enum):
    """Lifecycle state of a loan"""

    BORROWED = "BORROWED"
    RETURNED = "RETURNED"
    OVERDUE = "OVERDUE"
    LOST = "LOST"
    DAMAGED = "DAMAGED"


ACTIVE_STATUSES = (LoanStatus.BORROWED, LoanStatus.OVERDUE)


class MembershipStatus(str, Enum):
    """Membership standing; only ACTIVE members may borrow"""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class LendingPolicy:
    """Tunable lending rules handed to the lifecycle engine at construction"""

    default_borrow_days: int = 14
    max_books_per_member: int = 5
    fine_per_day_cents: int = 100
    grace_period_days: int = 1
    fine_ceiling_cents: int = 5000
    min_extension_days: int = 1
    max_extension_days: int = 14

    @classmethod
    def from_settings(cls, settings) -> "LendingPolicy":
        return cls(
            default_borrow_days=settings.default_borrow_days,
            max_books_per_member=settings.max_books_per_member,
            fine_per_day_cents=settings.fine_per_day_cents,
            grace_period_days=settings.grace_period_days,
            fine_ceiling_cents=settings.fine_ceiling_cents,
            min_extension_days=settings.min_extension_days,
            max_extension_days=settings.max_extension_days,
        )


@dataclass
class BorrowContext:
    """Everything the eligibility checker needs to judge a borrow request"""

    membership_status: str
    available_copies: int
    has_active_loan_for_book: bool
    active_loan_count: int
    outstanding_fines_cents: int


@dataclass
class LoanFilter:
    """Criteria for listing loans; unset fields do not constrain"""

    member_id: Optional[int] = None
    book_id: Optional[int] = None
    status: Optional[LoanStatus] = None
    borrowed_from: Optional[date] = None
    borrowed_to: Optional[date] = None
    due_on: Optional[date] = None


@dataclass
class LoanUpdate:
    """Administrative field-level changes to a loan"""

    due_date: Optional[date] = None
    status: Optional[LoanStatus] = None
    notes: Optional[str] = None


@dataclass
class BorrowingStats:
    """Aggregate view over all loans"""

    total_loans: int
    borrowed: int
    overdue: int
    returned: int
    lost: int
    damaged: int
    total_fines_cents: int

    @property
    def active(self) -> int:
        return self.borrowed + self.overdue
