from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.modules.quotes.models import Quote, QuoteItem, QuoteStatus
from app.modules.quotes.schemas import QuoteCreate, QuoteUpdate, QuoteItemIn, QuoteList, QuoteConversionResult, QuoteOut
from app.modules.customers.models import Customer
from app.modules.jobs.models import JobItem, JobStatus, JobPriority
from app.modules.jobs.service import JobService
from app.modules.invoices.models import Invoice
from app.common.sequences import next_document_number
from app.common.validators import money
from app.core.config import settings

logger = logging.getLogger(__name__)


def build_quote_items(items: List[QuoteItemIn]) -> List[QuoteItem]:
    return [
        QuoteItem(
            description=item.description,
            quantity=item.quantity,
            unit_price=money(item.unit_price),
            discount_amount=money(item.discount_amount),
            total=money(item.quantity * item.unit_price - item.discount_amount),
            metadata_=item.metadata
        )
        for item in items
    ]


def apply_quote_totals(quote: Quote):
    """subtotal = Σ qty × precio, discount_total = Σ descuentos, total = subtotal − descuentos."""
    subtotal = sum((Decimal(str(i.quantity)) * Decimal(str(i.unit_price)) for i in quote.items), Decimal("0"))
    discount_total = sum((Decimal(str(i.discount_amount or 0)) for i in quote.items), Decimal("0"))
    quote.subtotal = money(subtotal)
    quote.discount_total = money(discount_total)
    quote.total_amount = money(subtotal - discount_total)


class QuoteService:
    def __init__(self, db: Session):
        self.db = db

    def _ensure_not_accepted(self, quote: Quote, action: str):
        if quote.status == QuoteStatus.ACCEPTED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot {action} an accepted quote"
            )

    def create_quote(self, data: QuoteCreate, tenant_id: UUID, user_id: UUID) -> Quote:
        customer = self.db.query(Customer.id).filter(
            Customer.id == data.customer_id,
            Customer.tenant_id == tenant_id
        ).first()
        if not customer:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

        quote = Quote(
            tenant_id=tenant_id,
            quote_number=next_document_number(self.db, tenant_id, "QTE"),
            created_by=user_id,
            status=QuoteStatus.DRAFT,
            **data.model_dump(exclude={"items"})
        )
        quote.items = build_quote_items(data.items)
        apply_quote_totals(quote)

        self.db.add(quote)
        self.db.commit()
        self.db.refresh(quote)
        return quote

    def get_quotes(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[QuoteStatus] = None,
        customer_id: Optional[UUID] = None,
        search: Optional[str] = None
    ) -> QuoteList:
        query = self.db.query(Quote).options(selectinload(Quote.items)).filter(Quote.tenant_id == tenant_id)
        if status_filter:
            query = query.filter(Quote.status == status_filter)
        if customer_id:
            query = query.filter(Quote.customer_id == customer_id)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(Quote.title.ilike(term), Quote.quote_number.ilike(term)))

        total = query.count()
        items = query.order_by(Quote.created_at.desc()).offset(offset).limit(limit).all()
        return QuoteList(items=items, total=total, limit=limit, offset=offset)

    def get_quote(self, quote_id: UUID, tenant_id: UUID) -> Quote:
        quote = self.db.query(Quote).options(selectinload(Quote.items)).filter(
            Quote.id == quote_id,
            Quote.tenant_id == tenant_id
        ).first()
        if not quote:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")
        return quote

    def update_quote(self, quote_id: UUID, data: QuoteUpdate, tenant_id: UUID) -> Quote:
        quote = self.get_quote(quote_id, tenant_id)
        self._ensure_not_accepted(quote, "update")

        for field, value in data.model_dump(exclude_unset=True, exclude={"items"}).items():
            setattr(quote, field, value)
        if data.items is not None:
            quote.items = build_quote_items(data.items)
        apply_quote_totals(quote)

        self.db.commit()
        self.db.refresh(quote)
        return quote

    def delete_quote(self, quote_id: UUID, tenant_id: UUID) -> dict:
        quote = self.get_quote(quote_id, tenant_id)
        self._ensure_not_accepted(quote, "delete")
        self.db.delete(quote)
        self.db.commit()
        return {"message": "Quote deleted", "id": str(quote_id)}

    def send_quote(self, quote_id: UUID, tenant_id: UUID) -> Quote:
        quote = self.get_quote(quote_id, tenant_id)
        quote.status = QuoteStatus.SENT
        self.db.commit()
        self.db.refresh(quote)

        customer = quote.customer
        if customer and customer.phone:
            from app.modules.whatsapp.notifications import notify_template
            notify_template(self.db, tenant_id, customer.phone, "quote_delivery", [
                customer.name,
                quote.quote_number,
                quote.title,
                f"{settings.FRONTEND_URL}/quotes/{quote.id}",
            ])
        return quote

    def convert_to_job(self, quote_id: UUID, tenant_id: UUID, user_id: UUID) -> QuoteConversionResult:
        """Crea un trabajo (con su factura) a partir de la cotización y la marca como aceptada."""
        quote = self.get_quote(quote_id, tenant_id)
        self._ensure_not_accepted(quote, "convert")

        job_items = [
            JobItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=money(Decimal(str(item.quantity)) * Decimal(str(item.unit_price))),
                discount_amount=item.discount_amount or 0,
                discount_reason="Quote discount" if item.discount_amount else None,
                specifications=item.metadata_
            )
            for item in quote.items
        ]

        job = JobService(self.db).build_job(
            tenant_id,
            user_id,
            job_items,
            f"Job created from quote {quote.quote_number}",
            customer_id=quote.customer_id,
            title=quote.title,
            description=quote.description,
            status=JobStatus.NEW,
            priority=JobPriority.MEDIUM,
            quote_id=quote.id,
            quoted_price=quote.total_amount,
            final_price=quote.total_amount,
            notes=quote.notes
        )

        quote.status = QuoteStatus.ACCEPTED
        quote.accepted_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(quote)

        invoice = self.db.query(Invoice.id).filter(Invoice.job_id == job.id).first()
        logger.info(f"Quote {quote.quote_number} converted to job {job.job_number}")
        return QuoteConversionResult(
            quote=QuoteOut.model_validate(quote),
            job_id=job.id,
            job_number=job.job_number,
            invoice_id=invoice.id if invoice else None
        )
