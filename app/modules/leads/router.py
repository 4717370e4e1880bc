from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.leads.service import LeadService
from app.modules.leads.models import LeadStatus, LeadPriority
from app.modules.leads.schemas import (
    LeadCreate, LeadUpdate, LeadOut, LeadList, LeadActivityCreate, LeadActivityOut,
    LeadConversionResult, LeadSummary
)

leads_router = APIRouter(prefix="/leads", tags=["Leads"])


@leads_router.post("", response_model=LeadOut, status_code=status.HTTP_201_CREATED)
def create_lead(
    data: LeadCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).create_lead(data, auth_context.tenant_id)


@leads_router.get("", response_model=LeadList)
def list_leads(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    priority: Optional[LeadPriority] = None,
    assigned_to: Optional[UUID] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = True,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).get_leads(
        auth_context.tenant_id, limit, offset, status_filter, priority, assigned_to, search, is_active
    )


@leads_router.get("/summary", response_model=LeadSummary)
def lead_summary(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Totales por estado y próximos seguimientos (7 días)."""
    return LeadService(db).get_summary(auth_context.tenant_id)


@leads_router.get("/{lead_id}", response_model=LeadOut)
def get_lead(
    lead_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).get_lead(lead_id, auth_context.tenant_id)


@leads_router.put("/{lead_id}", response_model=LeadOut)
def update_lead(
    lead_id: UUID,
    data: LeadUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).update_lead(lead_id, data, auth_context.tenant_id)


@leads_router.delete("/{lead_id}")
def archive_lead(
    lead_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return LeadService(db).archive_lead(lead_id, auth_context.tenant_id)


@leads_router.post("/{lead_id}/activities", response_model=LeadActivityOut, status_code=status.HTTP_201_CREATED)
def add_lead_activity(
    lead_id: UUID,
    data: LeadActivityCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).add_activity(lead_id, data, auth_context.tenant_id, auth_context.user_id)


@leads_router.get("/{lead_id}/activities", response_model=List[LeadActivityOut])
def list_lead_activities(
    lead_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).get_activities(lead_id, auth_context.tenant_id)


@leads_router.post("/{lead_id}/convert", response_model=LeadConversionResult)
def convert_lead(
    lead_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return LeadService(db).convert_lead(lead_id, auth_context.tenant_id)
