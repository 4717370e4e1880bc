"""
Routers package for Reports module
"""

from fastapi import APIRouter

from .financial import router as financial_router
from .sales import router as sales_router
from .operations import router as operations_router
from .dashboard import router as dashboard_router

reports_router = APIRouter()
reports_router.include_router(financial_router)
reports_router.include_router(sales_router)
reports_router.include_router(operations_router)

__all__ = ["reports_router", "dashboard_router"]
