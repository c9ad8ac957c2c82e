"""Reference data endpoints."""

from fastapi import APIRouter

from tmtickets.core.modules.reference.models import (
    JobDetail,
    JobSummary,
    ReferenceItems,
    ReferencePartition,
    TechnicianSummary,
)
from tmtickets.web.deps import AppDep, PrefixQuery
from tmtickets.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["reference"])


@router.get(
    "/reference/job-numbers",
    summary="List job numbers",
    description="List up to 50 job numbers whose row key starts with the prefix.",
    operation_id="listJobNumbers",
)
async def list_job_numbers(app: AppDep, prefix: PrefixQuery = None) -> ReferenceItems[JobSummary]:
    return ReferenceItems[JobSummary](items=await app.list_job_numbers(prefix))


@router.get(
    "/reference/job-numbers/{job_number}",
    summary="Get job number",
    description="Look a job up by row key or job number column, trying the value as given, upper- and lower-case.",
    operation_id="getJobNumber",
    responses={
        200: {"description": "Job details"},
        404: {"model": ErrorResponse, "description": "Job number not found"},
    },
)
async def get_job_number(job_number: str, app: AppDep) -> JobDetail:
    return await app.get_job_number(job_number)


@router.get(
    "/reference/technicians",
    summary="List technicians",
    description="List up to 100 technicians whose name starts with the prefix.",
    operation_id="listTechnicians",
)
async def list_technicians(app: AppDep, prefix: PrefixQuery = None) -> ReferenceItems[TechnicianSummary]:
    return ReferenceItems[TechnicianSummary](items=await app.list_technicians(prefix))


@router.get(
    "/reference/{partition}",
    summary="Get reference partition",
    description="Return every entity of a reference partition.",
    operation_id="getReferencePartition",
)
async def get_reference_partition(partition: str, app: AppDep) -> ReferencePartition:
    return ReferencePartition(partition=partition, items=await app.get_reference_partition(partition))
