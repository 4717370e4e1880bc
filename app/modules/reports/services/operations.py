"""
Operational reports: work pipeline and service analytics.
"""

from typing import Any, Dict, List

from sqlalchemy import desc, func

from app.common.validators import money
from app.modules.invoices.models import Invoice, InvoiceStatus
from app.modules.jobs.models import Job, JobItem, JobStatus
from app.modules.leads.models import Lead, LeadStatus
from .base import BaseReportService

CLOSED_JOB_STATUSES = [JobStatus.COMPLETED, JobStatus.CANCELLED]
CLOSED_LEAD_STATUSES = [LeadStatus.CONVERTED, LeadStatus.LOST]


class OperationsReportService(BaseReportService):

    def get_pipeline(self) -> Dict[str, Any]:
        jobs = self._apply_datetime_filter(
            self.db.query(Job).filter(
                Job.tenant_id == self.tenant_id,
                Job.status.notin_(CLOSED_JOB_STATUSES)
            ),
            Job.created_at
        ).all()

        jobs_by_status: Dict[str, int] = {}
        for job in jobs:
            jobs_by_status[job.status.value] = jobs_by_status.get(job.status.value, 0) + 1

        open_leads = self._apply_datetime_filter(
            self.db.query(func.count(Lead.id)).filter(
                Lead.tenant_id == self.tenant_id,
                Lead.is_active.is_(True),
                Lead.status.notin_(CLOSED_LEAD_STATUSES)
            ),
            Lead.created_at
        ).scalar()

        pending_query = self._apply_date_filter(
            self.db.query(
                func.count(Invoice.id).label("count"),
                func.coalesce(func.sum(Invoice.balance), 0).label("amount")
            ).filter(
                Invoice.tenant_id == self.tenant_id,
                Invoice.status.in_([InvoiceStatus.SENT, InvoiceStatus.PARTIAL]),
                Invoice.balance > 0
            ),
            Invoice.invoice_date
        )
        pending = pending_query.one()

        return {
            **self.period(),
            "active_jobs": len(jobs),
            "active_jobs_by_status": jobs_by_status,
            "active_jobs_value": money(sum(money(j.final_price or j.quoted_price) for j in jobs)),
            "open_leads": open_leads or 0,
            "pending_invoices": pending.count or 0,
            "pending_invoices_amount": money(pending.amount)
        }

    def get_service_analytics(self) -> List[Dict[str, Any]]:
        """Job items grouped by category: quantity, revenue and number of jobs"""
        revenue = func.sum(JobItem.total_price)
        query = self.db.query(
            JobItem.category,
            func.sum(JobItem.quantity).label("quantity"),
            revenue.label("revenue"),
            func.count(func.distinct(JobItem.job_id)).label("job_count")
        ).join(Job, Job.id == JobItem.job_id).filter(
            Job.tenant_id == self.tenant_id,
            Job.status != JobStatus.CANCELLED
        )
        rows = self._apply_date_filter(query, Job.order_date).group_by(
            JobItem.category
        ).order_by(desc(revenue)).all()

        return [
            {
                "category": row.category or "Uncategorized",
                "quantity": money(row.quantity),
                "revenue": money(row.revenue),
                "job_count": row.job_count
            }
            for row in rows
        ]
