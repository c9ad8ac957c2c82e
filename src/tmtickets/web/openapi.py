from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="TM Tickets API",
            version="0.1.0",
            summary="Service ticket numbering, drafts and reference data",
            routes=app.routes,
        )

        openapi_schema["tags"] = [
            {"name": "tickets", "description": "Ticket number allocation"},
            {"name": "drafts", "description": "Draft tickets and listing by job number"},
            {"name": "reference", "description": "Job numbers and technicians"},
        ]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Missing jobNumber", "type": "validation_error"},
                {"message": "Draft 'abc' not found", "type": "not_found"},
                {"message": "Sequence contention, try again", "type": "sequence_contention"},
            ]
        }
    }
