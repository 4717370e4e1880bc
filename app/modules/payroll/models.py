from app.database.database import Base
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Numeric, Enum, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
import enum
from app.common.mixins import BaseMixin, TimestampMixin


class PayrollRunStatus(str, enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"


class PayrollRun(Base, BaseMixin):
    __tablename__ = "payroll_runs"

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    pay_date = Column(Date, nullable=False)
    status = Column(Enum(PayrollRunStatus), nullable=False, default=PayrollRunStatus.DRAFT)
    total_gross = Column(Numeric(14, 2), nullable=False, default=0)
    total_net = Column(Numeric(14, 2), nullable=False, default=0)
    total_tax = Column(Numeric(14, 2), nullable=False, default=0)  # income tax + SSNIT empleado
    total_employer_contributions = Column(Numeric(14, 2), nullable=False, default=0)
    journal_entry_id = Column(UUID(as_uuid=True), ForeignKey("journal_entries.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    posted_at = Column(DateTime(timezone=True), nullable=True)

    entries = relationship("PayrollEntry", back_populates="run", cascade="all, delete-orphan")


class PayrollEntry(Base, TimestampMixin):
    __tablename__ = "payroll_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    payroll_run_id = Column(UUID(as_uuid=True), ForeignKey("payroll_runs.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False, index=True)
    gross_pay = Column(Numeric(12, 2), nullable=False, default=0)
    income_tax = Column(Numeric(12, 2), nullable=False, default=0)
    ssnit_employee = Column(Numeric(12, 2), nullable=False, default=0)
    ssnit_employer = Column(Numeric(12, 2), nullable=False, default=0)
    net_pay = Column(Numeric(12, 2), nullable=False, default=0)
    taxes = Column(JSON, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)  # incluye settings_used

    run = relationship("PayrollRun", back_populates="entries")
    employee = relationship("Employee")

    @property
    def employee_name(self):
        return self.employee.full_name if self.employee else None
