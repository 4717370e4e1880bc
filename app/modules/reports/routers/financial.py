"""
Financial Reports Router
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from ..services.financial import FinancialReportService
from ..schemas import (
    RevenueReport, ExpenseReport, OutstandingReport, ProfitLossReport,
    KPISummary, CustomerRevenue
)
from ..utils import (
    create_csv_response, csv_filename, prepare_revenue_csv,
    prepare_expenses_csv, prepare_outstanding_csv, CSV_HEADERS
)


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/revenue", response_model=None)
def get_revenue_report(
    start_date: Optional[date] = Query(None, description="Start date for the report period"),
    end_date: Optional[date] = Query(None, description="End date (inclusive)"),
    group_by: str = Query("month", pattern="^(day|month)$"),
    export: Optional[str] = Query(None, pattern="^(csv)$", description="Export format: csv"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    """Ingresos cobrados (facturas pagadas) por período y top 20 de clientes."""
    service = FinancialReportService(db, auth_context.tenant_id, start_date, end_date)
    report_data = service.get_revenue_report(group_by=group_by)

    if export == "csv":
        return create_csv_response(
            prepare_revenue_csv(report_data),
            csv_filename("revenue", start_date, end_date),
            CSV_HEADERS["revenue"]
        )
    return RevenueReport(**report_data)


@router.get("/expenses", response_model=None)
def get_expense_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    export: Optional[str] = Query(None, pattern="^(csv)$"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    service = FinancialReportService(db, auth_context.tenant_id, start_date, end_date)
    report_data = service.get_expense_report()

    if export == "csv":
        return create_csv_response(
            prepare_expenses_csv(report_data),
            csv_filename("expenses", start_date, end_date),
            CSV_HEADERS["expenses"]
        )
    return ExpenseReport(**report_data)


@router.get("/outstanding", response_model=None)
def get_outstanding_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    export: Optional[str] = Query(None, pattern="^(csv)$"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    """Facturas con saldo pendiente, por cliente y con antigüedad de deuda."""
    service = FinancialReportService(db, auth_context.tenant_id, start_date, end_date)
    report_data = service.get_outstanding_report()

    if export == "csv":
        return create_csv_response(
            prepare_outstanding_csv(report_data),
            csv_filename("outstanding", start_date, end_date),
            CSV_HEADERS["outstanding"]
        )
    return OutstandingReport(**report_data)


@router.get("/profit-loss", response_model=ProfitLossReport)
def get_profit_loss(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    return FinancialReportService(db, auth_context.tenant_id, start_date, end_date).get_profit_loss()


@router.get("/kpi", response_model=KPISummary)
def get_kpi_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    return FinancialReportService(db, auth_context.tenant_id, start_date, end_date).get_kpis()


@router.get("/top-customers", response_model=list[CustomerRevenue])
def get_top_customers(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(5, ge=1, le=50),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    return FinancialReportService(db, auth_context.tenant_id, start_date, end_date).get_top_customers(limit)
