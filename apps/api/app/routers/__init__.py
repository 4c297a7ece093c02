"""API routers."""

from app.routers.internal import router as internal_router

__all__ = ["internal_router"]
