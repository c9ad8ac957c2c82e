from typing import Annotated, Any

from fastapi import APIRouter, Body

from tmtickets.core.modules.draft.models import DraftList, SavedDraft
from tmtickets.web.deps import AppDep, JobNumberQuery
from tmtickets.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["drafts"])

DRAFT_BODY_EXAMPLE = {
    "id": "3f1c2a9e-7d5b-4c1e-9a0f-2b6d8e4f1a7c",
    "jobNumber": "J-6014",
    "jobName": "North Plant Retrofit",
    "date": "2025-03-14T08:30:00Z",
    "customer": "Acme Industrial",
    "technician": "R. Diaz",
    "workPerformed": "Replaced relay panel",
    "materials": [{"item": "Relay", "qty": 2}],
    "labor": [{"tech": "R. Diaz", "hours": 3.5}],
}


@router.post(
    "/tickets/draft",
    summary="Save draft",
    description=(
        "Save a draft ticket. The whole document is replaced on every save. `jobNumber` is required; "
        "`id` is generated when absent. The server adds `savedAt`."
    ),
    operation_id="saveDraft",
    status_code=201,
    responses={
        201: {"description": "Draft saved"},
        400: {"model": ErrorResponse, "description": "Missing body or jobNumber, or invalid id"},
    },
)
async def save_draft(
    app: AppDep,
    body: Annotated[dict[str, Any] | None, Body(examples=[DRAFT_BODY_EXAMPLE])] = None,
) -> SavedDraft:
    return await app.save_draft(body)


@router.get(
    "/tickets/draft",
    summary="List drafts by job number",
    description="List the drafts of a job, newest ticket date first.",
    operation_id="listDrafts",
    response_model_exclude_none=True,
    responses={
        200: {"description": "Drafts of the job (possibly empty)"},
        400: {"model": ErrorResponse, "description": "Missing jobNumber"},
    },
)
async def list_drafts(
    app: AppDep,
    job_number: JobNumberQuery = None,
) -> DraftList:
    return DraftList(items=await app.list_drafts(job_number))


@router.get(
    "/tickets/draft/{draft_id}",
    summary="Get draft",
    description="Return the stored draft document as saved.",
    operation_id="getDraft",
    responses={
        200: {"description": "Draft document"},
        404: {"model": ErrorResponse, "description": "Draft not found"},
    },
)
async def get_draft(draft_id: str, app: AppDep) -> dict[str, Any]:
    return await app.get_draft(draft_id)


@router.delete(
    "/tickets/draft/{draft_id}",
    summary="Delete draft",
    operation_id="deleteDraft",
    status_code=204,
    responses={
        204: {"description": "Draft deleted"},
        404: {"model": ErrorResponse, "description": "Draft not found"},
    },
)
async def delete_draft(draft_id: str, app: AppDep) -> None:
    await app.delete_draft(draft_id)
