"""
Plan de cuentas, asientos contables y saldos por período.
"""
from app.database.database import Base
from sqlalchemy import Column, String, Boolean, Integer, DateTime, Date, ForeignKey, Numeric, Enum, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from datetime import date
import enum
from app.common.mixins import BaseMixin, TimestampMixin


class AccountType(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"
    COGS = "cogs"
    OTHER = "other"


class JournalEntryStatus(str, enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


class Account(Base, BaseMixin):
    __tablename__ = "accounts"

    code = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    type = Column(Enum(AccountType), nullable=False)
    category = Column(String(100), nullable=True)
    parent_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_ = Column("metadata", JSON, nullable=True)

    parent = relationship("Account", remote_side="Account.id")

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),
    )


class JournalEntry(Base, BaseMixin):
    __tablename__ = "journal_entries"

    reference = Column(String(100), nullable=True, index=True)
    description = Column(Text, nullable=True)
    entry_date = Column(Date, nullable=False, default=date.today)
    status = Column(Enum(JournalEntryStatus), nullable=False, default=JournalEntryStatus.DRAFT)
    source = Column(String(50), nullable=True)  # payroll, invoice_payment, manual
    source_id = Column(UUID(as_uuid=True), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    posted_at = Column(DateTime(timezone=True), nullable=True)

    lines = relationship("JournalEntryLine", back_populates="entry", cascade="all, delete-orphan")


class JournalEntryLine(Base, TimestampMixin):
    __tablename__ = "journal_entry_lines"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    journal_entry_id = Column(UUID(as_uuid=True), ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True)
    debit = Column(Numeric(14, 2), nullable=False, default=0)
    credit = Column(Numeric(14, 2), nullable=False, default=0)
    description = Column(String(255), nullable=True)

    entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account")


class AccountBalance(Base, BaseMixin):
    """Acumulado de débitos y créditos por cuenta, año fiscal y mes"""
    __tablename__ = "account_balances"

    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True)
    fiscal_year = Column(Integer, nullable=False)
    period = Column(Integer, nullable=False)
    debit = Column(Numeric(14, 2), nullable=False, default=0)
    credit = Column(Numeric(14, 2), nullable=False, default=0)
    balance = Column(Numeric(14, 2), nullable=False, default=0)  # debit - credit

    account = relationship("Account")

    __table_args__ = (
        UniqueConstraint("account_id", "fiscal_year", "period", name="uq_account_balance_period"),
    )
