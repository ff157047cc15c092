"""Domain-specific exceptions

Every lending failure carries a stable ``reason`` code so the request layer
can map it to a response without inspecting message text.
"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class LendingError(DomainException):
    """Base for all lending failures surfaced to callers"""

    reason = "LendingError"
    retryable = False

    def __init__(self, message: str | None = None):
        super().__init__(message or self.reason)
        self.message = message or self.reason


class NotFoundError(LendingError):
    """Book, member or loan id is unknown"""

    reason = "NotFound"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found with ID: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidRequestError(LendingError):
    """Arguments are out of the accepted range"""

    reason = "InvalidRequest"


class EligibilityError(LendingError):
    """Borrow request rejected by a business rule"""

    reason = "Ineligible"


class MemberNotActiveError(EligibilityError):
    reason = "MemberNotActive"


class NoCopiesAvailableError(EligibilityError):
    reason = "NoCopiesAvailable"


class DuplicateLoanError(EligibilityError):
    reason = "DuplicateLoan"


class BorrowLimitReachedError(EligibilityError):
    reason = "BorrowLimitReached"


class FineCeilingExceededError(EligibilityError):
    reason = "FineCeilingExceeded"


class LifecycleError(LendingError):
    """Operation is not valid for the loan's current state"""

    reason = "InvalidState"


class NotActiveError(LifecycleError):
    reason = "NotActive"


class AlreadyReturnedError(LifecycleError):
    reason = "AlreadyReturned"


class InventoryError(LendingError):
    """Copy counts would leave the 0 <= available <= total range"""

    reason = "InventoryError"


class StoreUnavailableError(LendingError):
    """Durable store failed or timed out; the whole operation may be retried"""

    reason = "StoreUnavailable"
    retryable = True
