"""API routers."""

from complaint_desk.routers.complaints import departments_router
from complaint_desk.routers.complaints import router as complaints_router

__all__ = [
    "complaints_router",
    "departments_router",
]
