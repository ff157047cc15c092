"""GET /v1/members/{member_id}/fines - member's outstanding fines"""

from fastapi import APIRouter, Depends

from library_lending.api.v1.schemas import MemberFinesResponse
from library_lending.api.v1.errors import to_http_exception
from library_lending.api.dependencies import get_lending_service
from library_lending.domain.exceptions import LendingError
from library_lending.services.lending import LendingService

router = APIRouter()


@router.get("/members/{member_id}/fines", response_model=MemberFinesResponse)
def get_member_fines(member_id: int, service: LendingService = Depends(get_lending_service)):
    """
    Total fines a member owes.

    Returned loans count at their frozen fine, active loans at today's fine.
    """
    try:
        total = service.member_outstanding_fines(member_id)
    except LendingError as e:
        raise to_http_exception(e)
    return MemberFinesResponse(member_id=member_id, outstanding_fines_cents=total)
