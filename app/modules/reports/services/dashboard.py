"""
Dashboard service: resumen del tenant para la pantalla principal.
"""

from calendar import monthrange
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, desc

from app.common.validators import money
from app.modules.customers.models import Customer
from app.modules.expenses.models import Expense
from app.modules.invoices.models import Invoice, InvoiceStatus
from app.modules.jobs.models import Job, JobStatus
from app.modules.vendors.models import Vendor
from .base import BaseReportService
from .financial import FinancialReportService, OPEN_STATUSES

RECENT_JOBS_LIMIT = 5


class DashboardService(BaseReportService):

    def _job_counts(self) -> Dict[str, int]:
        rows = self.db.query(Job.status, func.count(Job.id)).filter(
            Job.tenant_id == self.tenant_id
        ).group_by(Job.status).all()
        counts = {s.value: 0 for s in JobStatus}
        for job_status, count in rows:
            counts[job_status.value] = count
        return counts

    def get_overview(self) -> Dict[str, Any]:
        today = date.today()
        month_start = today.replace(day=1)
        month_end = today.replace(day=monthrange(today.year, today.month)[1])
        this_month = FinancialReportService(self.db, self.tenant_id, month_start, month_end)

        outstanding = self.db.query(func.coalesce(func.sum(Invoice.balance), 0)).filter(
            Invoice.tenant_id == self.tenant_id,
            Invoice.status.in_(OPEN_STATUSES),
            Invoice.balance > 0
        ).scalar()

        recent = self.db.query(Job, Customer.name).outerjoin(
            Customer, Customer.id == Job.customer_id
        ).filter(Job.tenant_id == self.tenant_id).order_by(
            desc(Job.created_at)
        ).limit(RECENT_JOBS_LIMIT).all()

        job_counts = self._job_counts()
        return {
            "customers": self.db.query(func.count(Customer.id)).filter(
                Customer.tenant_id == self.tenant_id, Customer.is_active.is_(True)
            ).scalar() or 0,
            "vendors": self.db.query(func.count(Vendor.id)).filter(
                Vendor.tenant_id == self.tenant_id, Vendor.is_active.is_(True)
            ).scalar() or 0,
            "jobs": {"total": sum(job_counts.values()), "by_status": job_counts},
            "month_revenue": this_month.total_revenue(),
            "month_expenses": this_month.total_expenses(),
            "outstanding_balance": money(outstanding),
            "recent_jobs": [
                {
                    "id": job.id,
                    "job_number": job.job_number,
                    "title": job.title,
                    "status": job.status.value,
                    "customer_name": customer_name,
                    "due_date": job.due_date
                }
                for job, customer_name in recent
            ]
        }

    def get_revenue_by_month(self, year: Optional[int] = None) -> Dict[str, Any]:
        year = year or date.today().year
        months = {m: {"month": m, "revenue": Decimal("0"), "count": 0} for m in range(1, 13)}

        yearly = FinancialReportService(self.db, self.tenant_id, date(year, 1, 1), date(year, 12, 31))
        for row in yearly.revenue_by_period("month"):
            bucket = months[int(row["period"][5:7])]
            bucket["revenue"] = row["revenue"]
            bucket["count"] = row["count"]

        return {
            "year": year,
            "months": list(months.values()),
            "total": money(sum(m["revenue"] for m in months.values()))
        }

    def get_expenses_by_category(self) -> List[Dict[str, Any]]:
        amount = func.sum(Expense.amount)
        rows = self._apply_date_filter(
            self.db.query(Expense.category, amount.label("amount"), func.count(Expense.id).label("count")).filter(
                Expense.tenant_id == self.tenant_id
            ),
            Expense.expense_date
        ).group_by(Expense.category).order_by(desc(amount)).all()
        return [
            {"category": row.category, "amount": money(row.amount), "count": row.count}
            for row in rows
        ]

    def get_job_status_distribution(self) -> List[Dict[str, Any]]:
        return [{"status": s, "count": c} for s, c in self._job_counts().items()]
