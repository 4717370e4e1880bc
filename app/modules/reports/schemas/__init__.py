"""
Pydantic schemas for Reports module
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class ReportPeriod(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None


# Revenue
class RevenuePeriod(BaseModel):
    period: str
    revenue: Decimal
    count: int


class CustomerRevenue(BaseModel):
    customer_id: Optional[UUID] = None
    customer_name: str
    company: Optional[str] = None
    email: Optional[str] = None
    revenue: Decimal
    invoice_count: int


class RevenueReport(ReportPeriod):
    group_by: str
    total_revenue: Decimal
    invoice_count: int
    by_period: List[RevenuePeriod]
    top_customers: List[CustomerRevenue]


# Expenses
class CategoryAmount(BaseModel):
    category: str
    amount: Decimal
    count: int


class VendorAmount(BaseModel):
    vendor_id: Optional[UUID] = None
    vendor_name: str
    amount: Decimal
    count: int


class MonthAmount(BaseModel):
    month: str
    amount: Decimal
    count: int


class ExpenseReport(ReportPeriod):
    total_expenses: Decimal
    by_category: List[CategoryAmount]
    by_vendor: List[VendorAmount]
    by_month: List[MonthAmount]


# Outstanding
class OutstandingInvoice(BaseModel):
    invoice_id: UUID
    invoice_number: str
    customer_id: Optional[UUID] = None
    customer_name: str
    invoice_date: date
    due_date: Optional[date] = None
    status: str
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    days_overdue: int


class CustomerOutstanding(BaseModel):
    customer_id: Optional[UUID] = None
    customer_name: str
    outstanding: Decimal
    invoice_count: int


class AgingBuckets(BaseModel):
    current: Decimal
    days_1_30: Decimal
    days_31_60: Decimal
    days_60_plus: Decimal


class OutstandingReport(ReportPeriod):
    total_outstanding: Decimal
    invoices: List[OutstandingInvoice]
    by_customer: List[CustomerOutstanding]
    aging: AgingBuckets


# Shop sales
class SalesTotals(BaseModel):
    sales_count: int
    total_revenue: Decimal
    total_discount: Decimal
    total_tax: Decimal
    average_sale: Decimal


class SalesByDay(BaseModel):
    date: str
    total: Decimal
    count: int


class SalesByMethod(BaseModel):
    payment_method: str
    total: Decimal
    count: int


class ProductSales(BaseModel):
    product_id: UUID
    name: str
    quantity: Decimal
    revenue: Decimal


class SalesReport(ReportPeriod):
    totals: SalesTotals
    by_day: List[SalesByDay]
    by_payment_method: List[SalesByMethod]
    top_products: List[ProductSales]


# Profit & KPIs
class ProfitLossReport(ReportPeriod):
    revenue: Decimal
    expenses: Decimal
    gross_profit: Decimal
    profit_margin: float


class KPISummary(ReportPeriod):
    total_revenue: Decimal
    total_expenses: Decimal
    gross_profit: Decimal
    active_customers: int
    pending_invoices: Decimal


class PipelineSummary(ReportPeriod):
    active_jobs: int
    active_jobs_by_status: Dict[str, int]
    active_jobs_value: Decimal
    open_leads: int
    pending_invoices: int
    pending_invoices_amount: Decimal


class ServiceCategory(BaseModel):
    category: str
    quantity: Decimal
    revenue: Decimal
    job_count: int


# Dashboard
class JobCounts(BaseModel):
    total: int
    by_status: Dict[str, int]


class RecentJob(BaseModel):
    id: UUID
    job_number: str
    title: str
    status: str
    customer_name: Optional[str] = None
    due_date: Optional[date] = None


class DashboardOverview(BaseModel):
    customers: int
    vendors: int
    jobs: JobCounts
    month_revenue: Decimal
    month_expenses: Decimal
    outstanding_balance: Decimal
    recent_jobs: List[RecentJob]


class MonthRevenue(BaseModel):
    month: int
    revenue: Decimal
    count: int


class RevenueByMonth(BaseModel):
    year: int
    months: List[MonthRevenue]
    total: Decimal


class StatusCount(BaseModel):
    status: str
    count: int
