"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import Callable
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from library_lending.config import settings
from library_lending.domain.models import LendingPolicy
from library_lending.infrastructure.database.session import get_db
from library_lending.services.lending import LendingService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Callable[[], date]:
    """Provide the source of 'today' for due dates and fines"""
    return date.today


def get_policy() -> LendingPolicy:
    """Provide lending rules built from settings"""
    return LendingPolicy.from_settings(settings)


def get_lending_service(
    request: Request,
    db: Session = Depends(get_db),
    today: Callable[[], date] = Depends(get_clock),
    policy: LendingPolicy = Depends(get_policy),
) -> LendingService:
    """Provide a lifecycle service bound to this request's session"""
    return LendingService(db, policy, today=today, request_id=get_request_id(request))
