# API routes module
# Contains all API endpoint definitions

from .scan_routes import router as scan_router

__all__ = ["scan_router"]
