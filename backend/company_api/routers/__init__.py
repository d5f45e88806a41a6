# API routers
from .companies import router as companies_router

__all__ = ["companies_router"]
