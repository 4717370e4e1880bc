from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from ..services.operations import OperationsReportService
from ..schemas import PipelineSummary, ServiceCategory


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/pipeline", response_model=PipelineSummary)
def get_pipeline(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    """Trabajos activos, leads abiertos y facturas pendientes."""
    return OperationsReportService(db, auth_context.tenant_id, start_date, end_date).get_pipeline()


@router.get("/service-analytics", response_model=list[ServiceCategory])
def get_service_analytics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(MANAGER_ROLES)),
    db: Session = Depends(get_db)
):
    return OperationsReportService(db, auth_context.tenant_id, start_date, end_date).get_service_analytics()
