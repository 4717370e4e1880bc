"""
Financial Report Service

Revenue, expenses, outstanding balances, profit and loss and KPIs.
Revenue always means amount_paid of invoices in status paid, filtered by paid_date.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import desc, func

from app.common.validators import money
from app.modules.customers.models import Customer
from app.modules.expenses.models import Expense
from app.modules.invoices.models import Invoice, InvoiceStatus
from app.modules.vendors.models import Vendor
from .base import BaseReportService

OPEN_STATUSES = [InvoiceStatus.SENT, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE]
TOP_CUSTOMERS_LIMIT = 20


class FinancialReportService(BaseReportService):

    def _outstanding_invoices(self):
        query = self.db.query(Invoice).filter(
            Invoice.tenant_id == self.tenant_id,
            Invoice.status.in_(OPEN_STATUSES),
            Invoice.balance > 0
        )
        return self._apply_date_filter(query, Invoice.invoice_date)

    def total_revenue(self) -> Decimal:
        query = self._sum_query(Invoice.amount_paid).filter(
            Invoice.tenant_id == self.tenant_id,
            Invoice.status == InvoiceStatus.PAID
        )
        return self._money(self._apply_datetime_filter(query, Invoice.paid_date))

    def total_expenses(self) -> Decimal:
        query = self._sum_query(Expense.amount).filter(Expense.tenant_id == self.tenant_id)
        return self._money(self._apply_date_filter(query, Expense.expense_date))

    def pending_balance(self) -> Decimal:
        query = self._sum_query(Invoice.balance).filter(
            Invoice.tenant_id == self.tenant_id,
            Invoice.status.in_(OPEN_STATUSES),
            Invoice.balance > 0
        )
        return self._money(self._apply_date_filter(query, Invoice.invoice_date))

    def get_top_customers(self, limit: int = 5) -> List[Dict[str, Any]]:
        revenue = func.sum(Invoice.amount_paid)
        query = self.db.query(
            Invoice.customer_id,
            Customer.name,
            Customer.company,
            Customer.email,
            revenue.label("revenue"),
            func.count(Invoice.id).label("invoice_count")
        ).outerjoin(
            Customer, Customer.id == Invoice.customer_id
        ).filter(
            Invoice.tenant_id == self.tenant_id,
            Invoice.status == InvoiceStatus.PAID
        )
        rows = self._apply_datetime_filter(query, Invoice.paid_date).group_by(
            Invoice.customer_id, Customer.name, Customer.company, Customer.email
        ).order_by(desc(revenue)).limit(limit).all()

        return [
            {
                "customer_id": row.customer_id,
                "customer_name": row.name or "Walk-in customer",
                "company": row.company,
                "email": row.email,
                "revenue": money(row.revenue),
                "invoice_count": row.invoice_count
            }
            for row in rows
        ]

    def revenue_by_period(self, granularity: str = "month") -> List[Dict[str, Any]]:
        label = self._period_label(Invoice.paid_date, granularity)
        query = self.db.query(
            label.label("period"),
            func.sum(Invoice.amount_paid).label("revenue"),
            func.count(Invoice.id).label("count")
        ).filter(
            Invoice.tenant_id == self.tenant_id,
            Invoice.status == InvoiceStatus.PAID
        )
        rows = self._apply_datetime_filter(query, Invoice.paid_date).group_by(label).order_by(label).all()
        return [
            {"period": row.period, "revenue": money(row.revenue), "count": row.count}
            for row in rows
        ]

    def get_revenue_report(self, group_by: str = "month") -> Dict[str, Any]:
        by_period = self.revenue_by_period("day" if group_by == "day" else "month")
        return {
            **self.period(),
            "group_by": group_by,
            "total_revenue": self.total_revenue(),
            "invoice_count": sum(p["count"] for p in by_period),
            "by_period": by_period,
            "top_customers": self.get_top_customers(TOP_CUSTOMERS_LIMIT)
        }

    def get_expense_report(self) -> Dict[str, Any]:
        amount = func.sum(Expense.amount)

        category_rows = self._apply_date_filter(
            self.db.query(Expense.category, amount.label("amount"), func.count(Expense.id).label("count")).filter(
                Expense.tenant_id == self.tenant_id
            ),
            Expense.expense_date
        ).group_by(Expense.category).order_by(desc(amount)).all()

        vendor_rows = self._apply_date_filter(
            self.db.query(
                Expense.vendor_id, Vendor.name, amount.label("amount"), func.count(Expense.id).label("count")
            ).outerjoin(Vendor, Vendor.id == Expense.vendor_id).filter(Expense.tenant_id == self.tenant_id),
            Expense.expense_date
        ).group_by(Expense.vendor_id, Vendor.name).order_by(desc(amount)).limit(20).all()

        month = self._period_label(Expense.expense_date, "month")
        month_rows = self._apply_date_filter(
            self.db.query(month.label("month"), amount.label("amount"), func.count(Expense.id).label("count")).filter(
                Expense.tenant_id == self.tenant_id
            ),
            Expense.expense_date
        ).group_by(month).order_by(month).all()

        return {
            **self.period(),
            "total_expenses": self.total_expenses(),
            "by_category": [
                {"category": row.category, "amount": money(row.amount), "count": row.count}
                for row in category_rows
            ],
            "by_vendor": [
                {
                    "vendor_id": row.vendor_id,
                    "vendor_name": row.name or "No vendor",
                    "amount": money(row.amount),
                    "count": row.count
                }
                for row in vendor_rows
            ],
            "by_month": [
                {"month": row.month, "amount": money(row.amount), "count": row.count}
                for row in month_rows
            ]
        }

    def get_outstanding_report(self) -> Dict[str, Any]:
        today = date.today()
        invoices = self._outstanding_invoices().all()
        invoices.sort(key=lambda i: (i.due_date is None, i.due_date or today))

        customer_names = {
            c.id: c.name for c in self.db.query(Customer.id, Customer.name).filter(
                Customer.id.in_({i.customer_id for i in invoices if i.customer_id})
            ).all()
        } if invoices else {}

        aging = {"current": Decimal("0"), "days_1_30": Decimal("0"), "days_31_60": Decimal("0"), "days_60_plus": Decimal("0")}
        by_customer: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
        rows = []
        total = Decimal("0")

        for invoice in invoices:
            balance = money(invoice.balance)
            total += balance
            days_overdue = (today - invoice.due_date).days if invoice.due_date else 0

            if days_overdue <= 0:
                aging["current"] += balance
            elif days_overdue <= 30:
                aging["days_1_30"] += balance
            elif days_overdue <= 60:
                aging["days_31_60"] += balance
            else:
                aging["days_60_plus"] += balance

            name = customer_names.get(invoice.customer_id, "Walk-in customer")
            entry = by_customer.setdefault(invoice.customer_id, {
                "customer_id": invoice.customer_id,
                "customer_name": name,
                "outstanding": Decimal("0"),
                "invoice_count": 0
            })
            entry["outstanding"] += balance
            entry["invoice_count"] += 1

            rows.append({
                "invoice_id": invoice.id,
                "invoice_number": invoice.invoice_number,
                "customer_id": invoice.customer_id,
                "customer_name": name,
                "invoice_date": invoice.invoice_date,
                "due_date": invoice.due_date,
                "status": invoice.status.value,
                "total_amount": money(invoice.total_amount),
                "amount_paid": money(invoice.amount_paid),
                "balance": balance,
                "days_overdue": max(days_overdue, 0)
            })

        return {
            **self.period(),
            "total_outstanding": money(total),
            "invoices": rows,
            "by_customer": sorted(by_customer.values(), key=lambda c: c["outstanding"], reverse=True),
            "aging": aging
        }

    def get_profit_loss(self) -> Dict[str, Any]:
        revenue = self.total_revenue()
        expenses = self.total_expenses()
        gross_profit = revenue - expenses
        return {
            **self.period(),
            "revenue": revenue,
            "expenses": expenses,
            "gross_profit": money(gross_profit),
            "profit_margin": self._percentage(gross_profit, revenue)
        }

    def get_kpis(self) -> Dict[str, Any]:
        revenue = self.total_revenue()
        expenses = self.total_expenses()
        active_customers = self.db.query(func.count(Customer.id)).filter(
            Customer.tenant_id == self.tenant_id,
            Customer.is_active.is_(True)
        ).scalar()
        return {
            **self.period(),
            "total_revenue": revenue,
            "total_expenses": expenses,
            "gross_profit": money(revenue - expenses),
            "active_customers": active_customers or 0,
            "pending_invoices": self.pending_balance()
        }
