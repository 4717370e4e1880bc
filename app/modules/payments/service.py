from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.payments.models import Payment, PaymentType, PaymentStatus
from app.modules.payments.schemas import PaymentCreate, PaymentUpdate, PaymentList, PaymentStats, PaymentTypeStat
from app.modules.customers.service import CustomerService
from app.modules.vendors.service import VendorService
from app.modules.jobs.models import Job
from app.modules.invoices.models import Invoice
from app.common.scoping import ensure_tenant_row
from app.common.sequences import next_document_number
from app.common.validators import money


class PaymentService:
    def __init__(self, db: Session):
        self.db = db

    def create_payment(self, data: PaymentCreate, tenant_id: UUID, user_id: UUID) -> Payment:
        """
        Registrar pago. Un income con cliente reduce su saldo; un expense con
        proveedor reduce el saldo del proveedor.
        """
        prefix = "PAY-IN" if data.type == PaymentType.INCOME else "PAY-OUT"
        amount = money(data.amount)
        ensure_tenant_row(self.db, Job, data.job_id, tenant_id, "Job")
        ensure_tenant_row(self.db, Invoice, data.invoice_id, tenant_id, "Invoice")

        if data.customer_id:
            CustomerService(self.db).adjust_balance(data.customer_id, tenant_id, -amount)
        if data.vendor_id:
            VendorService(self.db).adjust_balance(data.vendor_id, tenant_id, -amount)

        payment = Payment(
            tenant_id=tenant_id,
            payment_number=next_document_number(self.db, tenant_id, prefix),
            created_by=user_id,
            **data.model_dump(exclude={"amount", "payment_date"}),
            amount=amount,
            payment_date=data.payment_date or date.today()
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def get_payments(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        payment_type: Optional[PaymentType] = None,
        status_filter: Optional[PaymentStatus] = None,
        customer_id: Optional[UUID] = None,
        vendor_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> PaymentList:
        query = self.db.query(Payment).filter(Payment.tenant_id == tenant_id)
        if payment_type:
            query = query.filter(Payment.type == payment_type)
        if status_filter:
            query = query.filter(Payment.status == status_filter)
        if customer_id:
            query = query.filter(Payment.customer_id == customer_id)
        if vendor_id:
            query = query.filter(Payment.vendor_id == vendor_id)
        if start_date:
            query = query.filter(Payment.payment_date >= start_date)
        if end_date:
            query = query.filter(Payment.payment_date <= end_date)

        total = query.count()
        items = query.order_by(Payment.payment_date.desc(), Payment.created_at.desc()).offset(offset).limit(limit).all()
        return PaymentList(items=items, total=total, limit=limit, offset=offset)

    def get_payment(self, payment_id: UUID, tenant_id: UUID) -> Payment:
        payment = self.db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.tenant_id == tenant_id
        ).first()
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
        return payment

    def update_payment(self, payment_id: UUID, data: PaymentUpdate, tenant_id: UUID) -> Payment:
        payment = self.get_payment(payment_id, tenant_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(payment, field, value)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def delete_payment(self, payment_id: UUID, tenant_id: UUID) -> dict:
        payment = self.get_payment(payment_id, tenant_id)
        self.db.delete(payment)
        self.db.commit()
        return {"message": "Payment deleted", "id": str(payment_id)}

    def get_stats(self, tenant_id: UUID) -> PaymentStats:
        rows = self.db.query(
            Payment.type,
            func.count(Payment.id),
            func.coalesce(func.sum(Payment.amount), 0)
        ).filter(
            Payment.tenant_id == tenant_id,
            Payment.status == PaymentStatus.COMPLETED
        ).group_by(Payment.type).all()

        by_type = [PaymentTypeStat(type=row[0], count=row[1], total=money(row[2])) for row in rows]
        totals = {stat.type: stat.total for stat in by_type}
        return PaymentStats(
            by_type=by_type,
            total_income=totals.get(PaymentType.INCOME, Decimal("0.00")),
            total_expense=totals.get(PaymentType.EXPENSE, Decimal("0.00"))
        )
