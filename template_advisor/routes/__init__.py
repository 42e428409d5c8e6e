"""
API routers for the template advisor
"""

from .search import router as search_router
from .templates import router as templates_router

__all__ = ["search_router", "templates_router"]
