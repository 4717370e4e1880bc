"""
Servicio de trabajos (órdenes de imprenta).

Cada trabajo nuevo genera su factura en la misma transacción; los cambios de
estado quedan registrados en job_status_history.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID, uuid4
import base64
import logging

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session, selectinload

from app.modules.jobs.models import Job, JobItem, JobStatusHistory, JobStatus
from app.modules.jobs.schemas import JobCreate, JobUpdate, JobItemIn, JobList, JobStats, JobStatusStat
from app.modules.customers.models import Customer
from app.modules.invoices.models import Invoice
from app.modules.invoices.service import InvoiceService
from app.modules.payments.models import Payment
from app.modules.inventory.models import InventoryMovement
from app.common.scoping import ensure_member
from app.common.sequences import next_document_number
from app.common.validators import money
from app.core.config import settings

logger = logging.getLogger(__name__)


def build_job_items(items: List[JobItemIn]) -> List[JobItem]:
    return [
        JobItem(
            category=item.category,
            description=item.description,
            paper_size=item.paper_size,
            quantity=item.quantity,
            unit_price=money(item.unit_price),
            total_price=money(item.quantity * item.unit_price),
            discount_amount=money(item.discount_amount),
            discount_reason=item.discount_reason,
            specifications=item.specifications
        )
        for item in items
    ]


class JobService:
    def __init__(self, db: Session):
        self.db = db

    def _check_customer(self, customer_id: UUID, tenant_id: UUID) -> Customer:
        customer = self.db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id
        ).first()
        if not customer:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
        return customer

    def add_history(self, job: Job, job_status: JobStatus, comment: Optional[str], user_id: Optional[UUID]):
        job.status_history.append(JobStatusHistory(status=job_status, comment=comment, changed_by=user_id))

    def build_job(
        self,
        tenant_id: UUID,
        user_id: Optional[UUID],
        items: List[JobItem],
        history_comment: str,
        **fields
    ) -> Job:
        """Crea trabajo, items, historial y factura sin hacer commit."""
        job = Job(
            tenant_id=tenant_id,
            job_number=next_document_number(self.db, tenant_id, "JOB"),
            created_by=user_id,
            attachments=[],
            **fields
        )
        job.items = items
        if job.final_price is None:
            job.final_price = money(sum((i.total_price for i in items), Decimal("0")))
        if job.order_date is None:
            job.order_date = date.today()
        if job.status == JobStatus.COMPLETED:
            job.completion_date = date.today()

        self.add_history(job, job.status or JobStatus.NEW, history_comment, user_id)
        self.db.add(job)
        self.db.flush()

        InvoiceService(self.db).build_job_invoice(job, tenant_id)
        return job

    def create_job(self, data: JobCreate, tenant_id: UUID, user_id: UUID) -> Job:
        self._check_customer(data.customer_id, tenant_id)
        ensure_member(self.db, data.assigned_to, tenant_id, "Assignee")
        fields = data.model_dump(exclude={"items"})
        job = self.build_job(tenant_id, user_id, build_job_items(data.items), "Job created", **fields)
        self.db.commit()
        self.db.refresh(job)
        logger.info(f"Job {job.job_number} created for tenant {tenant_id}")
        return job

    def get_jobs(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[JobStatus] = None,
        priority=None,
        customer_id: Optional[UUID] = None,
        assigned_to: Optional[UUID] = None,
        search: Optional[str] = None
    ) -> JobList:
        query = self.db.query(Job).filter(Job.tenant_id == tenant_id)
        if status_filter:
            query = query.filter(Job.status == status_filter)
        if priority:
            query = query.filter(Job.priority == priority)
        if customer_id:
            query = query.filter(Job.customer_id == customer_id)
        if assigned_to:
            query = query.filter(Job.assigned_to == assigned_to)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Job.title.ilike(term),
                Job.job_number.ilike(term),
                Job.description.ilike(term)
            ))

        total = query.count()
        items = query.order_by(Job.created_at.desc()).offset(offset).limit(limit).all()
        return JobList(items=items, total=total, limit=limit, offset=offset)

    def get_job(self, job_id: UUID, tenant_id: UUID) -> Job:
        job = self.db.query(Job).options(
            selectinload(Job.items),
            selectinload(Job.status_history)
        ).filter(
            Job.id == job_id,
            Job.tenant_id == tenant_id
        ).first()
        if not job:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        return job

    def update_job(self, job_id: UUID, data: JobUpdate, tenant_id: UUID, user_id: UUID) -> Job:
        job = self.get_job(job_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"items", "status_comment"})
        if "assigned_to" in update_data:
            ensure_member(self.db, update_data["assigned_to"], tenant_id, "Assignee")
        previous_status = job.status

        if data.items is not None:
            job.items = build_job_items(data.items)
            if "final_price" not in update_data:
                job.final_price = money(sum((i.total_price for i in job.items), Decimal("0")))

        for field, value in update_data.items():
            setattr(job, field, value)

        status_changed = data.status is not None and data.status != previous_status
        if status_changed or data.status_comment:
            comment = data.status_comment
            if comment is None:
                comment = f"Status changed from {previous_status.value} to {job.status.value}"
            self.add_history(job, job.status, comment, user_id)

        if status_changed and job.status == JobStatus.COMPLETED:
            job.completion_date = date.today()
            self.db.flush()
            invoice_service = InvoiceService(self.db)
            if not invoice_service.job_has_invoice(job.id, tenant_id):
                invoice_service.build_job_invoice(job, tenant_id)

        self.db.commit()
        self.db.refresh(job)
        return job

    def delete_job(self, job_id: UUID, tenant_id: UUID) -> dict:
        job = self.get_job(job_id, tenant_id)
        self.db.query(Invoice).filter(Invoice.job_id == job.id, Invoice.tenant_id == tenant_id).update(
            {Invoice.job_id: None}, synchronize_session=False
        )
        self.db.query(Payment).filter(Payment.job_id == job.id, Payment.tenant_id == tenant_id).update(
            {Payment.job_id: None}, synchronize_session=False
        )
        self.db.query(InventoryMovement).filter(
            InventoryMovement.job_id == job.id, InventoryMovement.tenant_id == tenant_id
        ).update(
            {InventoryMovement.job_id: None}, synchronize_session=False
        )
        self.db.delete(job)
        self.db.commit()
        return {"message": "Job deleted", "id": str(job_id)}

    def get_stats(self, tenant_id: UUID) -> JobStats:
        rows = self.db.query(
            Job.status,
            func.count(Job.id),
            func.coalesce(func.sum(Job.final_price), 0)
        ).filter(Job.tenant_id == tenant_id).group_by(Job.status).all()

        by_status = [
            JobStatusStat(status=row[0], count=row[1], total_value=money(row[2]))
            for row in rows
        ]
        return JobStats(total_jobs=sum(s.count for s in by_status), by_status=by_status)

    async def add_attachment(self, job_id: UUID, file: UploadFile, tenant_id: UUID, user_id: UUID) -> dict:
        """Guarda el archivo inline como data URL en `attachments`."""
        job = self.get_job(job_id, tenant_id)
        content = await file.read()
        if len(content) > settings.MAX_ATTACHMENT_SIZE:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File exceeds maximum size of {settings.MAX_ATTACHMENT_SIZE} bytes"
            )

        mime_type = file.content_type or "application/octet-stream"
        attachment = {
            "id": str(uuid4()),
            "original_name": file.filename or "attachment",
            "mime_type": mime_type,
            "size": len(content),
            "file_data": f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}",
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
            "uploaded_by": str(user_id) if user_id else None,
        }
        job.attachments = list(job.attachments or []) + [attachment]
        self.db.commit()
        return attachment

    def remove_attachment(self, job_id: UUID, attachment_id: str, tenant_id: UUID) -> dict:
        job = self.get_job(job_id, tenant_id)
        attachments = list(job.attachments or [])
        remaining = [a for a in attachments if a.get("id") != attachment_id]
        if len(remaining) == len(attachments):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")

        job.attachments = remaining
        self.db.commit()
        return {"message": "Attachment removed", "id": attachment_id}
