from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from app.modules.leads.models import Lead, LeadActivity, LeadStatus, LeadPriority, LeadActivityType
from app.modules.leads.schemas import (
    LeadCreate, LeadUpdate, LeadList, LeadActivityCreate, LeadConversionResult,
    LeadOut, LeadSummary, LeadStatusCount
)
from app.modules.customers.models import Customer
from app.common.scoping import ensure_member

logger = logging.getLogger(__name__)

CONTACT_ACTIVITY_TYPES = (LeadActivityType.CALL, LeadActivityType.EMAIL, LeadActivityType.MEETING)
FOLLOW_UP_WINDOW_DAYS = 7


class LeadService:
    def __init__(self, db: Session):
        self.db = db

    def create_lead(self, data: LeadCreate, tenant_id: UUID) -> Lead:
        ensure_member(self.db, data.assigned_to, tenant_id, "Assignee")
        lead = Lead(
            tenant_id=tenant_id,
            metadata_=data.metadata or {},
            **data.model_dump(exclude={"metadata"})
        )
        self.db.add(lead)
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def get_leads(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[LeadStatus] = None,
        priority: Optional[LeadPriority] = None,
        assigned_to: Optional[UUID] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = True
    ) -> LeadList:
        query = self.db.query(Lead).filter(Lead.tenant_id == tenant_id)
        if status_filter:
            query = query.filter(Lead.status == status_filter)
        if priority:
            query = query.filter(Lead.priority == priority)
        if assigned_to:
            query = query.filter(Lead.assigned_to == assigned_to)
        if is_active is not None:
            query = query.filter(Lead.is_active.is_(is_active))
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Lead.name.ilike(term),
                Lead.company.ilike(term),
                Lead.email.ilike(term),
                Lead.phone.ilike(term)
            ))
        total = query.count()
        items = query.order_by(Lead.created_at.desc()).offset(offset).limit(limit).all()
        return LeadList(items=items, total=total, limit=limit, offset=offset)

    def get_lead(self, lead_id: UUID, tenant_id: UUID) -> Lead:
        lead = self.db.query(Lead).filter(Lead.id == lead_id, Lead.tenant_id == tenant_id).first()
        if not lead:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
        return lead

    def update_lead(self, lead_id: UUID, data: LeadUpdate, tenant_id: UUID) -> Lead:
        lead = self.get_lead(lead_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if "assigned_to" in update_data:
            ensure_member(self.db, update_data["assigned_to"], tenant_id, "Assignee")
        if "metadata" in update_data:
            lead.metadata_ = {**(lead.metadata_ or {}), **(update_data.pop("metadata") or {})}
        for field, value in update_data.items():
            setattr(lead, field, value)
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def archive_lead(self, lead_id: UUID, tenant_id: UUID) -> dict:
        lead = self.get_lead(lead_id, tenant_id)
        lead.archive()
        self.db.commit()
        return {"message": "Lead archived", "id": str(lead_id)}

    def add_activity(self, lead_id: UUID, data: LeadActivityCreate, tenant_id: UUID, user_id: UUID) -> LeadActivity:
        lead = self.get_lead(lead_id, tenant_id)
        activity = LeadActivity(
            lead_id=lead.id,
            created_by=user_id,
            **data.model_dump(exclude={"update_status"})
        )
        self.db.add(activity)

        if data.type in CONTACT_ACTIVITY_TYPES:
            lead.last_contacted_at = datetime.now(timezone.utc)
        if data.follow_up_date:
            lead.next_follow_up = data.follow_up_date
        if data.update_status:
            lead.status = data.update_status

        self.db.commit()
        self.db.refresh(activity)
        return activity

    def get_activities(self, lead_id: UUID, tenant_id: UUID) -> List[LeadActivity]:
        lead = self.get_lead(lead_id, tenant_id)
        return self.db.query(LeadActivity).filter(
            LeadActivity.lead_id == lead.id
        ).order_by(LeadActivity.created_at.desc()).all()

    def convert_lead(self, lead_id: UUID, tenant_id: UUID) -> LeadConversionResult:
        """Crea un cliente con los datos del lead y lo marca como convertido."""
        lead = self.get_lead(lead_id, tenant_id)
        if lead.status == LeadStatus.CONVERTED or lead.converted_customer_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lead is already converted")

        customer = Customer(
            tenant_id=tenant_id,
            name=lead.name,
            company=lead.company,
            email=lead.email,
            phone=lead.phone,
            how_did_you_hear=lead.source,
            notes=lead.notes,
            balance=Decimal("0")
        )
        self.db.add(customer)
        self.db.flush()

        lead.status = LeadStatus.CONVERTED
        lead.converted_customer_id = customer.id
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"Lead {lead.id} converted to customer {customer.id}")
        return LeadConversionResult(lead=LeadOut.model_validate(lead), customer_id=customer.id)

    def get_summary(self, tenant_id: UUID) -> LeadSummary:
        rows = self.db.query(Lead.status, func.count(Lead.id)).filter(
            Lead.tenant_id == tenant_id
        ).group_by(Lead.status).all()

        upcoming = self.db.query(Lead).filter(
            Lead.tenant_id == tenant_id,
            Lead.is_active.is_(True),
            Lead.next_follow_up.isnot(None),
            Lead.next_follow_up <= date.today() + timedelta(days=FOLLOW_UP_WINDOW_DAYS)
        ).order_by(Lead.next_follow_up).limit(5).all()

        by_status = [LeadStatusCount(status=row[0], count=row[1]) for row in rows]
        return LeadSummary(
            total_leads=sum(s.count for s in by_status),
            by_status=by_status,
            upcoming_follow_ups=upcoming
        )
