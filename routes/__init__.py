"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.stock_check import router as stock_check_router

__all__ = [
    "stock_check_router",
]
