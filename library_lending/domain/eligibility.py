"""Borrow eligibility rules"""

from library_lending.domain.models import BorrowContext, LendingPolicy, MembershipStatus
from library_lending.domain.exceptions import (
    MemberNotActiveError,
    NoCopiesAvailableError,
    DuplicateLoanError,
    BorrowLimitReachedError,
    FineCeilingExceededError,
)


def check_eligibility(context: BorrowContext, policy: LendingPolicy) -> None:
    """
    Decide whether a new loan may be created.

    Checks run in a fixed order and the first failure is raised:
    1. Membership must be ACTIVE
    2. At least one copy must be on the shelf
    3. Member must not already hold an active loan for this book
    4. Member's active loans must be under max_books_per_member
    5. Member's outstanding fines must not exceed fine_ceiling_cents

    Raises:
        EligibilityError subclass naming the failed rule
    """
    if context.membership_status != MembershipStatus.ACTIVE.value:
        raise MemberNotActiveError(
            f"Membership status is {context.membership_status}; only ACTIVE members may borrow"
        )

    if context.available_copies <= 0:
        raise NoCopiesAvailableError("No copies available for borrowing")

    if context.has_active_loan_for_book:
        raise DuplicateLoanError("Member already has an active loan for this book")

    if context.active_loan_count >= policy.max_books_per_member:
        raise BorrowLimitReachedError(
            f"Member has reached the maximum of {policy.max_books_per_member} borrowed books"
        )

    if context.outstanding_fines_cents > policy.fine_ceiling_cents:
        raise FineCeilingExceededError(
            f"Outstanding fines of ${context.outstanding_fines_cents / 100:.2f} exceed "
            f"the ${policy.fine_ceiling_cents / 100:.2f} limit"
        )
