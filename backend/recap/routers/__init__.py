"""API routers for the Recap backend."""

from .meetings import router as meetings_router
from .transcribe import router as transcribe_router

__all__ = ["meetings_router", "transcribe_router"]
