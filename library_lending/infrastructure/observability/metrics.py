"""Prometheus metrics for monitoring lending activity, fines and the overdue sweep"""

from prometheus_client import Counter, Histogram

# Lifecycle metrics
loan_operation_counter = Counter(
    "library_loan_operations_total",
    "Loan lifecycle operations",
    ["operation", "outcome"],  # borrow|return|extend|update|delete, success|rejected|error
)

borrow_rejection_counter = Counter(
    "library_borrow_rejections_total",
    "Borrow requests refused by an eligibility rule",
    ["reason"],
)

fine_cents_histogram = Histogram(
    "library_return_fine_cents",
    "Fine charged when a loan is returned",
    buckets=[0, 100, 500, 1000, 2500, 5000, 10000],
)

# Inventory metrics
inventory_error_counter = Counter(
    "library_inventory_errors_total",
    "Copy count invariant violations caught by the inventory ledger",
    ["operation"],  # reserve | release
)

# Overdue sweep metrics
overdue_marked_counter = Counter(
    "library_overdue_marked_total",
    "Loans moved to OVERDUE by the sweep",
)

sweep_duration_histogram = Histogram(
    "library_overdue_sweep_duration_seconds",
    "Overdue sweep run time",
    buckets=[0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_loan_operation(operation: str, outcome: str, reason: str | None = None) -> None:
    """Record a lifecycle operation; rejected borrows are also bucketed by rule"""
    loan_operation_counter.labels(operation=operation, outcome=outcome).inc()
    if operation == "borrow" and outcome == "rejected" and reason:
        borrow_rejection_counter.labels(reason=reason).inc()
