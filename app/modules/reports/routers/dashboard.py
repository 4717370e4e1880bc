"""
Dashboard Router
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES
from app.modules.auth.schemas import AuthContext
from ..services.dashboard import DashboardService
from ..schemas import DashboardOverview, RevenueByMonth, CategoryAmount, StatusCount


router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/overview", response_model=DashboardOverview)
def get_overview(
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    return DashboardService(db, auth_context.tenant_id).get_overview()


@router.get("/revenue-by-month", response_model=RevenueByMonth)
def get_revenue_by_month(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    """Ingresos cobrados por mes del año (por defecto el año en curso)."""
    return DashboardService(db, auth_context.tenant_id).get_revenue_by_month(year)


@router.get("/expenses-by-category", response_model=list[CategoryAmount])
def get_expenses_by_category(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    return DashboardService(db, auth_context.tenant_id, start_date, end_date).get_expenses_by_category()


@router.get("/job-status-distribution", response_model=list[StatusCount])
def get_job_status_distribution(
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    return DashboardService(db, auth_context.tenant_id).get_job_status_distribution()
