"""
API routers package.
"""

from api.routers.psp import router as psp_router
from api.routers.query import router as query_router

__all__ = ["psp_router", "query_router"]
