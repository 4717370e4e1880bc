from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from app.modules.customers.models import Customer
from app.modules.customers.schemas import CustomerCreate, CustomerUpdate, CustomerList
from app.common.validators import money

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def create_customer(self, data: CustomerCreate, tenant_id: UUID) -> Customer:
        customer = Customer(tenant_id=tenant_id, balance=Decimal("0"), **data.model_dump())
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def get_customers(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> CustomerList:
        query = self.db.query(Customer).filter(Customer.tenant_id == tenant_id)

        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Customer.name.ilike(term),
                Customer.company.ilike(term),
                Customer.email.ilike(term),
                Customer.phone.ilike(term)
            ))
        if is_active is not None:
            query = query.filter(Customer.is_active == is_active)

        total = query.count()
        items = query.order_by(Customer.name).offset(offset).limit(limit).all()
        return CustomerList(items=items, total=total, limit=limit, offset=offset)

    def get_customer(self, customer_id: UUID, tenant_id: UUID) -> Customer:
        customer = self.db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id
        ).first()
        if not customer:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
        return customer

    def update_customer(self, customer_id: UUID, data: CustomerUpdate, tenant_id: UUID) -> Customer:
        customer = self.get_customer(customer_id, tenant_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(customer, field, value)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: UUID, tenant_id: UUID) -> dict:
        """Desactiva el cliente; las facturas y trabajos conservan la referencia."""
        customer = self.get_customer(customer_id, tenant_id)
        customer.archive()
        self.db.commit()
        return {"message": "Customer deactivated", "id": str(customer.id)}

    def restore_customer(self, customer_id: UUID, tenant_id: UUID) -> Customer:
        customer = self.get_customer(customer_id, tenant_id)
        customer.restore()
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def sync_balance(self, customer_id: UUID, tenant_id: UUID, commit: bool = True) -> Customer:
        """balance = suma de saldos de facturas no canceladas del cliente."""
        from app.modules.invoices.models import Invoice, InvoiceStatus

        customer = self.get_customer(customer_id, tenant_id)
        outstanding = self.db.query(func.coalesce(func.sum(Invoice.balance), 0)).filter(
            Invoice.tenant_id == tenant_id,
            Invoice.customer_id == customer.id,
            Invoice.status != InvoiceStatus.CANCELLED
        ).scalar()

        customer.balance = money(outstanding)
        if commit:
            self.db.commit()
            self.db.refresh(customer)
        else:
            self.db.flush()
        return customer

    def sync_all_balances(self, tenant_id: UUID) -> int:
        customer_ids = [row.id for row in self.db.query(Customer.id).filter(Customer.tenant_id == tenant_id)]
        for customer_id in customer_ids:
            self.sync_balance(customer_id, tenant_id, commit=False)
        self.db.commit()
        logger.info(f"Synced balances for {len(customer_ids)} customers of tenant {tenant_id}")
        return len(customer_ids)

    def adjust_balance(self, customer_id: UUID, tenant_id: UUID, delta: Decimal) -> Customer:
        customer = self.get_customer(customer_id, tenant_id)
        customer.balance = money((customer.balance or 0) + delta)
        self.db.flush()
        return customer
