from app.database.database import Base
from sqlalchemy import Column, String, Text, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from app.common.mixins import BaseMixin, SoftDeleteMixin


class Customer(Base, BaseMixin, SoftDeleteMixin):
    """Cliente del tenant. `balance` se sincroniza con los saldos de sus facturas."""
    __tablename__ = "customers"

    name = Column(String(200), nullable=False, index=True)
    company = Column(String(200), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(30), nullable=True)

    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False, default="USA")

    tax_id = Column(String(50), nullable=True)
    credit_limit = Column(Numeric(12, 2), nullable=True)
    how_did_you_hear = Column(String(100), nullable=True)
    referral_name = Column(String(200), nullable=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Sabito
    sabito_customer_id = Column(String(100), nullable=True, index=True)
    sabito_source_referral_id = Column(String(100), nullable=True)
    sabito_source_type = Column(String(50), nullable=True)
    sabito_business_id = Column(String(100), nullable=True)

    invoices = relationship("Invoice", back_populates="customer")
    jobs = relationship("Job", back_populates="customer")

    __table_args__ = (
        UniqueConstraint("tenant_id", "sabito_customer_id", name="uq_customer_tenant_sabito_id"),
    )
