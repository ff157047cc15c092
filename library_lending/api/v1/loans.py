"""/v1/loans - borrow, return, extend and administer loans"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from library_lending.api.v1.schemas import (
    BorrowRequest,
    ExtendRequest,
    LoanUpdateRequest,
    LoanResponse,
    LoanListResponse,
    StatsResponse,
    SweepResponse,
)
from library_lending.api.v1.errors import to_http_exception
from library_lending.api.dependencies import get_lending_service
from library_lending.domain.exceptions import LendingError
from library_lending.domain.models import LoanFilter, LoanStatus, LoanUpdate
from library_lending.infrastructure.database.models import Loan
from library_lending.services.lending import LendingService

router = APIRouter()


def to_loan_response(loan: Loan) -> LoanResponse:
    return LoanResponse(
        loan_id=loan.id,
        book_id=loan.book_id,
        member_id=loan.member_id,
        borrow_date=loan.borrow_date,
        due_date=loan.due_date,
        return_date=loan.return_date,
        status=LoanStatus(loan.status),
        fine_cents=loan.fine_cents,
        notes=loan.notes,
    )


@router.post("/loans", response_model=LoanResponse, status_code=201)
def borrow_book(request_body: BorrowRequest, service: LendingService = Depends(get_lending_service)):
    """
    Lend a book to a member.

    Rejections carry the first failing rule as reason: MemberNotActive,
    NoCopiesAvailable, DuplicateLoan, BorrowLimitReached or FineCeilingExceeded.
    """
    try:
        loan = service.borrow(
            book_id=request_body.book_id,
            member_id=request_body.member_id,
            borrow_date=request_body.borrow_date,
            due_date=request_body.due_date,
            notes=request_body.notes,
        )
    except LendingError as e:
        raise to_http_exception(e)
    return to_loan_response(loan)


@router.get("/loans", response_model=LoanListResponse)
def list_loans(
    member_id: Optional[int] = Query(None),
    book_id: Optional[int] = Query(None),
    status: Optional[LoanStatus] = Query(None),
    borrowed_from: Optional[date] = Query(None, description="Earliest borrow date (inclusive)"),
    borrowed_to: Optional[date] = Query(None, description="Latest borrow date (inclusive)"),
    due_on: Optional[date] = Query(None, description="Only loans due on this day"),
    service: LendingService = Depends(get_lending_service),
):
    """List loans, optionally narrowed by member, book, status or dates"""
    criteria = LoanFilter(
        member_id=member_id,
        book_id=book_id,
        status=status,
        borrowed_from=borrowed_from,
        borrowed_to=borrowed_to,
        due_on=due_on,
    )
    try:
        loans = service.list_loans(criteria)
    except LendingError as e:
        raise to_http_exception(e)
    return LoanListResponse(count=len(loans), loans=[to_loan_response(loan) for loan in loans])


@router.get("/loans/stats", response_model=StatsResponse)
def get_borrowing_stats(service: LendingService = Depends(get_lending_service)):
    """Loan counts per status and total fines"""
    try:
        stats = service.borrowing_stats()
    except LendingError as e:
        raise to_http_exception(e)
    return StatsResponse(
        total_loans=stats.total_loans,
        active=stats.active,
        borrowed=stats.borrowed,
        overdue=stats.overdue,
        returned=stats.returned,
        lost=stats.lost,
        damaged=stats.damaged,
        total_fines_cents=stats.total_fines_cents,
    )


@router.post("/loans/sweep", response_model=SweepResponse)
def run_sweep(service: LendingService = Depends(get_lending_service)):
    """Mark past-due loans OVERDUE and refresh their fines (for an external scheduler)"""
    try:
        updated = service.sweep()
    except LendingError as e:
        raise to_http_exception(e)
    return SweepResponse(updated=updated)


@router.get("/loans/{loan_id}", response_model=LoanResponse)
def get_loan(loan_id: int, service: LendingService = Depends(get_lending_service)):
    try:
        loan = service.get_loan(loan_id)
    except LendingError as e:
        raise to_http_exception(e)
    if loan is None:
        raise HTTPException(status_code=404, detail={"reason": "NotFound", "message": f"Loan not found with ID: {loan_id}"})
    return to_loan_response(loan)


@router.post("/loans/{loan_id}/return", response_model=LoanResponse)
def return_book(loan_id: int, service: LendingService = Depends(get_lending_service)):
    """Close a loan today; the fine is computed from its due date"""
    try:
        loan = service.return_loan(loan_id)
    except LendingError as e:
        raise to_http_exception(e)
    return to_loan_response(loan)


@router.post("/loans/{loan_id}/extend", response_model=LoanResponse)
def extend_loan(loan_id: int, request_body: ExtendRequest, service: LendingService = Depends(get_lending_service)):
    try:
        loan = service.extend_due_date(loan_id, request_body.days)
    except LendingError as e:
        raise to_http_exception(e)
    return to_loan_response(loan)


@router.patch("/loans/{loan_id}", response_model=LoanResponse)
def update_loan(loan_id: int, request_body: LoanUpdateRequest, service: LendingService = Depends(get_lending_service)):
    """Administrative update of due date, notes or status (RETURNED, LOST, DAMAGED)"""
    changes = LoanUpdate(
        due_date=request_body.due_date,
        status=request_body.status,
        notes=request_body.notes,
    )
    try:
        loan = service.update_loan(loan_id, changes)
    except LendingError as e:
        raise to_http_exception(e)
    return to_loan_response(loan)


@router.delete("/loans/{loan_id}", status_code=204)
def delete_loan(loan_id: int, service: LendingService = Depends(get_lending_service)):
    """Delete a loan record; an active loan's copy goes back on the shelf first"""
    try:
        service.delete_loan(loan_id)
    except LendingError as e:
        raise to_http_exception(e)
    return Response(status_code=204)
