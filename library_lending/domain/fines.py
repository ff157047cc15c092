"""Overdue fine calculation"""

from datetime import date
from library_lending.domain.models import LendingPolicy
from library_lending.utils.date_utils import days_between


def calculate_fine(due_date: date, eval_date: date, policy: LendingPolicy) -> int:
    """
    Fine in cents owed for a loan evaluated on eval_date.

    Rules:
    - Nothing is owed on or before the due date
    - The first grace_period_days overdue days are free
    - Every further day costs fine_per_day_cents

    Pass today's date for a live figure and the return date when closing a
    loan. The result never goes negative and is already exact to the cent.

    Example (grace 1 day, $1.00/day):
        due 2024-03-15, returned 2024-03-17 -> 2 days overdue -> 1 chargeable -> 100
    """
    if eval_date <= due_date:
        return 0

    days_overdue = days_between(due_date, eval_date)
    if days_overdue <= policy.grace_period_days:
        return 0

    chargeable_days = days_overdue - policy.grace_period_days
    return max(chargeable_days * policy.fine_per_day_cents, 0)
