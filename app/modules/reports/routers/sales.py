"""
Shop Sales Report Router
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from ..services.sales import SalesReportService
from ..schemas import SalesReport


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/sales", response_model=SalesReport)
def get_sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    shop_id: Optional[UUID] = Query(None, description="Filter by shop"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    """Ventas completadas: totales, por día, por método de pago y top 10 productos."""
    return SalesReportService(db, auth_context.tenant_id, start_date, end_date).get_sales_report(shop_id)
