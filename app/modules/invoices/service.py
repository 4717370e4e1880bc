"""
Servicio de facturas.

Los montos derivados (impuesto, descuento, total, saldo y estado) los calcula
el propio modelo; aquí solo se arman subtotal e items y se validan las reglas
de negocio (facturas pagadas o canceladas, sobrepagos, aislamiento por tenant).
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Dict, Any
from uuid import UUID
import logging
import secrets

from fastapi import HTTPException, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session, joinedload

from app.modules.invoices.models import Invoice, InvoiceStatus, InvoiceSourceType, DiscountType
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceList, InvoicePaymentCreate,
    InvoicePaymentResult, InvoiceOut, InvoiceStats, PublicInvoice, InvoiceItem
)
from app.modules.customers.models import Customer
from app.modules.payments.models import Payment, PaymentType, PaymentStatus
from app.modules.tenants.models import Tenant
from app.common.sequences import next_document_number
from app.common.validators import money
from app.core.config import settings

logger = logging.getLogger(__name__)

NET_30_DAYS = 30
DEFAULT_JOB_INVOICE_TERMS = "Payment is due within 30 days of the invoice date. Thank you for your business."


def serialize_items(items: List[InvoiceItem]) -> List[Dict[str, Any]]:
    """Items en formato JSON-safe para la columna `items`."""
    return [
        {
            "description": item.description,
            "category": item.category,
            "quantity": float(item.quantity),
            "unit_price": float(money(item.unit_price)),
            "total": float(money(item.quantity * item.unit_price)),
        }
        for item in items
    ]


def items_subtotal(items: List[Dict[str, Any]]) -> Decimal:
    return money(sum((Decimal(str(i.get("total") or 0)) for i in items), Decimal("0")))


def invoice_payment_link(invoice: Invoice) -> str:
    if invoice.payment_token:
        return f"{settings.FRONTEND_URL}/pay-invoice/{invoice.payment_token}"
    return f"{settings.FRONTEND_URL}/invoices/{invoice.id}"


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db

    def _check_customer(self, customer_id: Optional[UUID], tenant_id: UUID) -> Optional[Customer]:
        if customer_id is None:
            return None
        customer = self.db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id
        ).first()
        if not customer:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
        return customer

    def build_invoice(
        self,
        tenant_id: UUID,
        items: List[Dict[str, Any]],
        source_type: InvoiceSourceType = InvoiceSourceType.MANUAL,
        subtotal: Optional[Decimal] = None,
        **fields
    ) -> Invoice:
        """
        Crea la factura dentro de la transacción actual (sin commit).
        Usado por trabajos, ventas y recetas además del endpoint manual.
        """
        invoice = Invoice(
            tenant_id=tenant_id,
            invoice_number=next_document_number(self.db, tenant_id, "INV"),
            source_type=source_type,
            items=items,
            subtotal=items_subtotal(items) if items else money(subtotal),
            payment_token=secrets.token_hex(16),
            **fields
        )
        if invoice.invoice_date is None:
            invoice.invoice_date = date.today()
        if invoice.due_date is None:
            invoice.due_date = invoice.invoice_date + timedelta(days=NET_30_DAYS)
        invoice.calculate_totals()
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def create_invoice(self, data: InvoiceCreate, tenant_id: UUID) -> Invoice:
        self._check_customer(data.customer_id, tenant_id)
        if data.job_id:
            from app.modules.jobs.models import Job
            job = self.db.query(Job).filter(Job.id == data.job_id, Job.tenant_id == tenant_id).first()
            if not job:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

        invoice = self.build_invoice(
            tenant_id,
            serialize_items(data.items),
            source_type=InvoiceSourceType.JOB if data.job_id else InvoiceSourceType.MANUAL,
            subtotal=data.subtotal,
            customer_id=data.customer_id,
            job_id=data.job_id,
            invoice_date=data.invoice_date,
            due_date=data.due_date,
            tax_rate=data.tax_rate,
            discount_type=data.discount_type,
            discount_value=data.discount_value,
            discount_reason=data.discount_reason,
            payment_terms=data.payment_terms,
            notes=data.notes,
            terms_and_conditions=data.terms_and_conditions,
            status=data.status,
            sent_date=datetime.now(timezone.utc) if data.status == InvoiceStatus.SENT else None
        )
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def build_job_invoice(self, job, tenant_id: UUID) -> Invoice:
        """
        Factura de un trabajo: un item por JobItem (o una línea al final_price).
        Los descuentos por item se suman en un descuento fijo de la factura.
        """
        items = []
        discount_total = Decimal("0")
        discount_reason = None

        for job_item in job.items:
            line_total = money(Decimal(str(job_item.quantity)) * money(job_item.unit_price))
            items.append({
                "description": job_item.description,
                "category": job_item.category,
                "quantity": float(job_item.quantity),
                "unit_price": float(money(job_item.unit_price)),
                "total": float(line_total),
            })
            item_discount = money(job_item.discount_amount)
            if item_discount > 0:
                discount_total += item_discount
                if discount_reason is None and job_item.discount_reason:
                    discount_reason = job_item.discount_reason

        if not items:
            price = money(job.final_price)
            items.append({
                "description": job.title,
                "category": job.job_type,
                "quantity": 1,
                "unit_price": float(price),
                "total": float(price),
            })

        fields = {}
        if discount_total > 0:
            fields = {
                "discount_type": DiscountType.FIXED,
                "discount_value": money(discount_total),
                "discount_reason": discount_reason or "Item discounts applied",
            }

        invoice = self.build_invoice(
            tenant_id,
            items,
            source_type=InvoiceSourceType.JOB,
            customer_id=job.customer_id,
            job_id=job.id,
            payment_terms="Net 30",
            terms_and_conditions=DEFAULT_JOB_INVOICE_TERMS,
            notes=f"Invoice for job {job.job_number}",
            status=InvoiceStatus.DRAFT,
            **fields
        )
        logger.info(f"Invoice {invoice.invoice_number} generated for job {job.job_number}")
        return invoice

    def job_has_invoice(self, job_id: UUID, tenant_id: UUID) -> bool:
        return self.db.query(Invoice.id).filter(
            Invoice.job_id == job_id,
            Invoice.tenant_id == tenant_id
        ).first() is not None

    def create_from_job(self, job_id: UUID, tenant_id: UUID) -> Invoice:
        from app.modules.jobs.models import Job

        job = self.db.query(Job).options(joinedload(Job.items)).filter(
            Job.id == job_id,
            Job.tenant_id == tenant_id
        ).first()
        if not job:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        if self.job_has_invoice(job.id, tenant_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice already exists for this job")

        invoice = self.build_job_invoice(job, tenant_id)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def get_invoices(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[InvoiceStatus] = None,
        customer_id: Optional[UUID] = None,
        job_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None
    ) -> InvoiceList:
        query = self.db.query(Invoice).filter(Invoice.tenant_id == tenant_id)

        if status_filter:
            query = query.filter(Invoice.status == status_filter)
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if job_id:
            query = query.filter(Invoice.job_id == job_id)
        if start_date:
            query = query.filter(Invoice.invoice_date >= start_date)
        if end_date:
            query = query.filter(Invoice.invoice_date <= end_date)
        if search:
            term = f"%{search}%"
            query = query.outerjoin(Customer, Invoice.customer_id == Customer.id).filter(or_(
                Invoice.invoice_number.ilike(term),
                Customer.name.ilike(term)
            ))

        total = query.count()
        items = query.order_by(Invoice.created_at.desc()).offset(offset).limit(limit).all()
        return InvoiceList(items=items, total=total, limit=limit, offset=offset)

    def get_invoice(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        invoice = self.db.query(Invoice).options(
            joinedload(Invoice.customer),
            joinedload(Invoice.job)
        ).filter(
            Invoice.id == invoice_id,
            Invoice.tenant_id == tenant_id
        ).first()
        if not invoice:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
        return invoice

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate, tenant_id: UUID) -> Invoice:
        invoice = self.get_invoice(invoice_id, tenant_id)
        if invoice.status in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot update a {invoice.status.value} invoice"
            )

        update_data = data.model_dump(exclude_unset=True, exclude={"items"})
        if "customer_id" in update_data:
            self._check_customer(update_data["customer_id"], tenant_id)

        if data.items is not None:
            invoice.items = serialize_items(data.items)
            invoice.subtotal = items_subtotal(invoice.items)
            update_data.pop("subtotal", None)

        for field, value in update_data.items():
            setattr(invoice, field, value)

        if update_data.get("status") == InvoiceStatus.SENT and not invoice.sent_date:
            invoice.sent_date = datetime.now(timezone.utc)

        invoice.calculate_totals()
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def delete_invoice(self, invoice_id: UUID, tenant_id: UUID) -> dict:
        invoice = self.get_invoice(invoice_id, tenant_id)
        if invoice.status == InvoiceStatus.PAID:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete a paid invoice")

        self.db.query(Payment).filter(Payment.invoice_id == invoice.id).update(
            {Payment.invoice_id: None}, synchronize_session=False
        )
        self.db.delete(invoice)
        self.db.commit()
        return {"message": "Invoice deleted", "id": str(invoice_id)}

    def send_invoice(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        """Marca la factura como enviada y notifica al cliente por WhatsApp."""
        invoice = self.get_invoice(invoice_id, tenant_id)
        if invoice.status == InvoiceStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot send a cancelled invoice")

        if invoice.status == InvoiceStatus.DRAFT:
            invoice.status = InvoiceStatus.SENT
        invoice.sent_date = datetime.now(timezone.utc)
        invoice.calculate_totals()
        self.db.commit()
        self.db.refresh(invoice)

        customer = invoice.customer
        if customer and customer.phone:
            from app.modules.whatsapp.notifications import notify_template
            from app.modules.whatsapp.templates import format_currency
            notify_template(self.db, tenant_id, customer.phone, "invoice_notification", [
                customer.name,
                invoice.invoice_number,
                format_currency(invoice.total_amount),
                invoice_payment_link(invoice),
            ])
        return invoice

    def cancel_invoice(self, invoice_id: UUID, tenant_id: UUID) -> Invoice:
        invoice = self.get_invoice(invoice_id, tenant_id)
        if invoice.status == InvoiceStatus.PAID:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot cancel a paid invoice")
        if invoice.status == InvoiceStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice is already cancelled")

        invoice.status = InvoiceStatus.CANCELLED
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def record_payment(
        self,
        invoice_id: UUID,
        data: InvoicePaymentCreate,
        tenant_id: UUID,
        user_id: Optional[UUID] = None
    ) -> InvoicePaymentResult:
        """
        Registra un pago contra la factura.

        Después del commit, sin afectar la respuesta si fallan:
        - sincroniza el saldo del cliente
        - registra el asiento contable del cobro
        """
        invoice = self.get_invoice(invoice_id, tenant_id)
        if invoice.status == InvoiceStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot record payment on a cancelled invoice")

        amount = money(data.amount)
        if money(invoice.amount_paid) + amount > money(invoice.total_amount):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment amount exceeds invoice total")

        invoice.amount_paid = money(invoice.amount_paid) + amount
        invoice.calculate_totals()

        payment = Payment(
            tenant_id=tenant_id,
            payment_number=next_document_number(self.db, tenant_id, "PAY-IN"),
            type=PaymentType.INCOME,
            customer_id=invoice.customer_id,
            job_id=invoice.job_id,
            invoice_id=invoice.id,
            amount=amount,
            payment_method=data.payment_method,
            payment_date=data.payment_date or date.today(),
            reference_number=data.reference_number,
            status=PaymentStatus.COMPLETED,
            notes=data.notes or f"Payment for invoice {invoice.invoice_number}",
            created_by=user_id
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(invoice)
        self.db.refresh(payment)

        if invoice.customer_id:
            try:
                from app.modules.customers.service import CustomerService
                CustomerService(self.db).sync_balance(invoice.customer_id, tenant_id)
            except Exception as e:
                self.db.rollback()
                logger.warning(f"Customer balance sync failed for invoice {invoice.invoice_number}: {e}")

        try:
            from app.modules.accounting.service import AccountingService
            AccountingService(self.db).record_invoice_payment(
                tenant_id, invoice, amount, data.payment_method, user_id
            )
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Payment journal not posted for invoice {invoice.invoice_number}: {e}")

        self.db.refresh(invoice)
        return InvoicePaymentResult(
            invoice=InvoiceOut.model_validate(invoice),
            payment_id=payment.id,
            payment_number=payment.payment_number
        )

    def get_stats(self, tenant_id: UUID) -> InvoiceStats:
        base = self.db.query(Invoice).filter(Invoice.tenant_id == tenant_id)

        def count(*statuses):
            return base.filter(Invoice.status.in_(statuses)).count()

        total_revenue = self.db.query(func.coalesce(func.sum(Invoice.total_amount), 0)).filter(
            Invoice.tenant_id == tenant_id,
            Invoice.status == InvoiceStatus.PAID
        ).scalar()
        outstanding = self.db.query(func.coalesce(func.sum(Invoice.balance), 0)).filter(
            Invoice.tenant_id == tenant_id,
            Invoice.status.notin_([InvoiceStatus.PAID, InvoiceStatus.CANCELLED])
        ).scalar()

        return InvoiceStats(
            total_invoices=base.count(),
            paid=count(InvoiceStatus.PAID),
            unpaid=count(InvoiceStatus.SENT, InvoiceStatus.DRAFT),
            overdue=count(InvoiceStatus.OVERDUE),
            total_revenue=money(total_revenue),
            outstanding_amount=money(outstanding)
        )

    def get_public_invoice(self, payment_token: str) -> PublicInvoice:
        invoice = self.db.query(Invoice).filter(Invoice.payment_token == payment_token).first()
        if not invoice:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")

        tenant = self.db.query(Tenant).filter(Tenant.id == invoice.tenant_id).first()
        return PublicInvoice(
            invoice_number=invoice.invoice_number,
            total_amount=invoice.total_amount,
            balance=invoice.balance,
            status=invoice.status,
            due_date=invoice.due_date,
            currency=settings.DEFAULT_CURRENCY,
            business_name=tenant.name if tenant else None
        )
