from tmtickets.web.routers.drafts import router as drafts_router
from tmtickets.web.routers.reference import router as reference_router
from tmtickets.web.routers.tickets import router as tickets_router

__all__ = [
    "drafts_router",
    "reference_router",
    "tickets_router",
]
