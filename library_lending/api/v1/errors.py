"""Translate lending failures into HTTP responses"""

from fastapi import HTTPException

from library_lending.domain.exceptions import (
    LendingError,
    NotFoundError,
    InvalidRequestError,
    StoreUnavailableError,
)


def to_http_exception(error: LendingError) -> HTTPException:
    """Map a lending failure to a status code, keeping its reason code in the body"""
    headers = None
    if isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, InvalidRequestError):
        status_code = 422
    elif isinstance(error, StoreUnavailableError):
        status_code = 503
        headers = {"Retry-After": "1"}
    else:
        # Eligibility, lifecycle and inventory conflicts
        status_code = 409

    return HTTPException(
        status_code=status_code,
        detail={"reason": error.reason, "message": error.message},
        headers=headers,
    )
