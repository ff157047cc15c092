"""Unit tests for borrow eligibility rules"""

import pytest
from library_lending.domain.eligibility import check_eligibility
from library_lending.domain.models import BorrowContext, LendingPolicy
from library_lending.domain.exceptions import (
    EligibilityError,
    MemberNotActiveError,
    NoCopiesAvailableError,
    DuplicateLoanError,
    BorrowLimitReachedError,
    FineCeilingExceededError,
)


def make_context(**overrides) -> BorrowContext:
    """A context that passes every rule unless overridden"""
    values = dict(
        membership_status="ACTIVE",
        available_copies=1,
        has_active_loan_for_book=False,
        active_loan_count=0,
        outstanding_fines_cents=0,
    )
    values.update(overrides)
    return BorrowContext(**values)


@pytest.fixture
def policy() -> LendingPolicy:
    return LendingPolicy(max_books_per_member=5, fine_ceiling_cents=5000)


def test_eligible_member_passes(policy):
    check_eligibility(make_context(), policy)


@pytest.mark.parametrize("status", ["INACTIVE", "SUSPENDED", "EXPIRED"])
def test_non_active_member_rejected(policy, status):
    with pytest.raises(MemberNotActiveError) as exc:
        check_eligibility(make_context(membership_status=status), policy)
    assert exc.value.reason == "MemberNotActive"


def test_no_copies_rejected(policy):
    with pytest.raises(NoCopiesAvailableError):
        check_eligibility(make_context(available_copies=0), policy)


def test_duplicate_loan_rejected(policy):
    with pytest.raises(DuplicateLoanError):
        check_eligibility(make_context(has_active_loan_for_book=True), policy)


def test_borrow_limit_rejected_at_max(policy):
    check_eligibility(make_context(active_loan_count=4), policy)
    with pytest.raises(BorrowLimitReachedError):
        check_eligibility(make_context(active_loan_count=5), policy)


def test_fine_ceiling_is_inclusive(policy):
    """Exactly $50.00 may still borrow; one cent more may not"""
    check_eligibility(make_context(outstanding_fines_cents=5000), policy)
    with pytest.raises(FineCeilingExceededError) as exc:
        check_eligibility(make_context(outstanding_fines_cents=5001), policy)
    assert "$50.01" in exc.value.message


def test_first_failing_rule_is_reported(policy):
    """Checks run in order; an inactive member with no copies sees MemberNotActive"""
    context = make_context(
        membership_status="SUSPENDED",
        available_copies=0,
        has_active_loan_for_book=True,
        active_loan_count=9,
        outstanding_fines_cents=9999,
    )
    with pytest.raises(MemberNotActiveError):
        check_eligibility(context, policy)

    context.membership_status = "ACTIVE"
    with pytest.raises(NoCopiesAvailableError):
        check_eligibility(context, policy)

    context.available_copies = 2
    with pytest.raises(DuplicateLoanError):
        check_eligibility(context, policy)

    context.has_active_loan_for_book = False
    with pytest.raises(BorrowLimitReachedError):
        check_eligibility(context, policy)


def test_all_rejections_share_base_class(policy):
    with pytest.raises(EligibilityError):
        check_eligibility(make_context(outstanding_fines_cents=10_000), policy)


def test_custom_limit():
    policy = LendingPolicy(max_books_per_member=2)
    with pytest.raises(BorrowLimitReachedError):
        check_eligibility(make_context(active_loan_count=2), policy)
