"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional

from library_lending.domain.models import LoanStatus


class BorrowRequest(BaseModel):
    """Request body for POST /v1/loans"""

    book_id: int = Field(..., gt=0, description="Book identifier")
    member_id: int = Field(..., gt=0, description="Member identifier")
    borrow_date: Optional[date] = Field(None, description="Defaults to today")
    due_date: Optional[date] = Field(None, description="Defaults to borrow date + default borrow days")
    notes: Optional[str] = Field(None, max_length=500)


class ExtendRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/extend"""

    days: int = Field(..., description="Days to add to the due date")


class LoanUpdateRequest(BaseModel):
    """Request body for PATCH /v1/loans/{loan_id}"""

    due_date: Optional[date] = None
    status: Optional[LoanStatus] = None
    notes: Optional[str] = Field(None, max_length=500)


class LoanResponse(BaseModel):
    """Single loan record"""

    loan_id: int
    book_id: int
    member_id: int
    borrow_date: date
    due_date: date
    return_date: Optional[date] = None
    status: LoanStatus
    fine_cents: int
    notes: Optional[str] = None


class LoanListResponse(BaseModel):
    """Response for GET /v1/loans"""

    count: int
    loans: List[LoanResponse]


class MemberFinesResponse(BaseModel):
    """Response for GET /v1/members/{member_id}/fines"""

    member_id: int
    outstanding_fines_cents: int


class SweepResponse(BaseModel):
    """Response for POST /v1/loans/sweep"""

    updated: int


class StatsResponse(BaseModel):
    """Response for GET /v1/loans/stats"""

    total_loans: int
    active: int
    borrowed: int
    overdue: int
    returned: int
    lost: int
    damaged: int
    total_fines_cents: int
