"""Unit tests for overdue fine calculation"""

import pytest
from datetime import date, timedelta
from library_lending.domain.fines import calculate_fine
from library_lending.domain.models import LendingPolicy

DUE = date(2024, 3, 15)


@pytest.fixture
def policy() -> LendingPolicy:
    return LendingPolicy(grace_period_days=1, fine_per_day_cents=100)


def test_no_fine_before_due_date(policy):
    assert calculate_fine(DUE, DUE - timedelta(days=3), policy) == 0


def test_no_fine_on_due_date(policy):
    assert calculate_fine(DUE, DUE, policy) == 0


def test_no_fine_within_grace_period(policy):
    """One day late with a one day grace period is free"""
    assert calculate_fine(DUE, DUE + timedelta(days=1), policy) == 0


def test_first_chargeable_day(policy):
    """Two days late: one grace day, one charged day = $1.00"""
    assert calculate_fine(DUE, DUE + timedelta(days=2), policy) == 100


def test_ten_days_late(policy):
    assert calculate_fine(DUE, DUE + timedelta(days=10), policy) == 900


def test_custom_rate_and_grace():
    policy = LendingPolicy(grace_period_days=3, fine_per_day_cents=25)
    assert calculate_fine(DUE, DUE + timedelta(days=3), policy) == 0
    assert calculate_fine(DUE, DUE + timedelta(days=7), policy) == 100  # 4 days * $0.25


def test_zero_grace_period_charges_from_first_day():
    policy = LendingPolicy(grace_period_days=0, fine_per_day_cents=100)
    assert calculate_fine(DUE, DUE + timedelta(days=1), policy) == 100


def test_fine_is_non_decreasing(policy):
    """Fine never drops as the evaluation date moves forward"""
    fines = [calculate_fine(DUE, DUE + timedelta(days=d), policy) for d in range(-5, 40)]
    assert fines == sorted(fines)
    assert all(f >= 0 for f in fines)


def test_fine_is_idempotent(policy):
    eval_date = DUE + timedelta(days=6)
    assert calculate_fine(DUE, eval_date, policy) == calculate_fine(DUE, eval_date, policy)
