"""Reference data: job numbers and technicians.

Reference rows come from spreadsheet imports, so the same attribute shows up
under several column names. The tuples below list the accepted spellings in
order of preference. API responses keep the PascalCase keys the mobile client
reads (RowKey, JobNumber, ...).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from tmtickets.utils import as_text

JOB_NUMBERS_PARTITION = "job-numbers"
TECHNICIANS_PARTITION = "technician"

JOB_NUMBER_COLUMNS = ("rowKey", "JobNumber", "jobNumber")
DESCRIPTION_COLUMNS = ("Description", "description", "JobName", "jobName", "NAME", "Name")
CUSTOMER_COLUMNS = ("CustomerName", "customerName", "Customer", "customer")
PROJECT_MANAGER_COLUMNS = ("projectManager", "ProjectManager", "pmName", "PMName", "pm")
TECH_NAME_COLUMNS = ("techName", "TechName", "name", "Name")


def first_value(entity: dict[str, Any], columns: tuple[str, ...]) -> str | None:
    """Text of the first non-empty column among ``columns``."""
    for column in columns:
        value = as_text(entity.get(column))
        if value:
            return value
    return None


class ReferenceModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class JobSummary(ReferenceModel):
    """Job number row as shown in job pickers."""

    row_key: str
    job_number: str
    description: str | None = None
    customer_name: str | None = None
    status: str | None = None

    @classmethod
    def from_entity(cls, entity: dict[str, Any]) -> "JobSummary":
        return cls(**_job_fields(entity))


class JobDetail(JobSummary):
    """Single job number lookup, including the project manager."""

    partition_key: str
    project_manager: str | None = Field(None, alias="projectManager")

    @classmethod
    def from_entity(cls, entity: dict[str, Any]) -> "JobDetail":
        return cls(
            **_job_fields(entity),
            partition_key=as_text(entity.get("partition")),
            project_manager=first_value(entity, PROJECT_MANAGER_COLUMNS),
        )


class TechnicianSummary(ReferenceModel):
    row_key: str
    tech_name: str

    @classmethod
    def from_entity(cls, entity: dict[str, Any]) -> "TechnicianSummary":
        row_key = as_text(entity.get("rowKey"))
        return cls(row_key=row_key, tech_name=first_value(entity, TECH_NAME_COLUMNS) or row_key)


class ReferenceItems[T](BaseModel):
    items: list[T]


class ReferencePartition(BaseModel):
    partition: str
    items: list[dict[str, Any]]


def _job_fields(entity: dict[str, Any]) -> dict[str, Any]:
    row_key = as_text(entity.get("rowKey"))
    return {
        "row_key": row_key,
        "job_number": first_value(entity, ("JobNumber", "jobNumber")) or row_key,
        "description": first_value(entity, DESCRIPTION_COLUMNS),
        "customer_name": first_value(entity, CUSTOMER_COLUMNS),
        "status": first_value(entity, ("Status",)),
    }
