"""
Services package for Reports module
"""

from .base import BaseReportService
from .financial import FinancialReportService
from .sales import SalesReportService
from .operations import OperationsReportService
from .dashboard import DashboardService

__all__ = [
    "BaseReportService",
    "FinancialReportService",
    "SalesReportService",
    "OperationsReportService",
    "DashboardService"
]
