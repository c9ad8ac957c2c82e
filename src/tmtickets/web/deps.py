from typing import Annotated, cast

from fastapi import Depends, Query, Request

from tmtickets.app import App


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]

# Shared query parameters
PrefixQuery = Annotated[str | None, Query(description="Optional case-insensitive prefix")]
JobNumberQuery = Annotated[str | None, Query(alias="jobNumber", description="Job number to list drafts for")]
