from fastapi import APIRouter

from tmtickets.core.modules.counter.models import TicketNumber
from tmtickets.web.deps import AppDep
from tmtickets.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["tickets"])


@router.get(
    "/tickets/next-number",
    summary="Allocate ticket number",
    description=(
        "Allocate the next ticket number from the shared counter. Numbers are unique and strictly "
        "increasing across all callers. Under heavy concurrent load the request may fail with 503; "
        "retrying the request is safe."
    ),
    operation_id="nextTicketNumber",
    responses={
        200: {"description": "Allocated ticket number"},
        503: {"model": ErrorResponse, "description": "Counter contended, retry later"},
    },
)
async def next_ticket_number(app: AppDep) -> TicketNumber:
    return TicketNumber(ticket_number=await app.next_ticket_number())
