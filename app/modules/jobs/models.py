from app.database.database import Base
from sqlalchemy import Column, String, Integer, DateTime, Date, ForeignKey, Numeric, Enum, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from datetime import date
import enum
from app.common.mixins import BaseMixin, TimestampMixin


class JobStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class JobPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ColorType(str, enum.Enum):
    BLACK_WHITE = "black_white"
    COLOR = "color"
    SPOT_COLOR = "spot_color"


class Job(Base, BaseMixin):
    """Orden de trabajo de imprenta"""
    __tablename__ = "jobs"

    job_number = Column(String(50), nullable=False, index=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.NEW, index=True)
    priority = Column(Enum(JobPriority), nullable=False, default=JobPriority.MEDIUM)
    job_type = Column(String(100), nullable=True)
    quote_id = Column(UUID(as_uuid=True), ForeignKey("quotes.id"), nullable=True)
    quantity = Column(Integer, nullable=True)

    # Especificaciones de impresión
    paper_type = Column(String(100), nullable=True)
    paper_size = Column(String(50), nullable=True)
    color_type = Column(Enum(ColorType), nullable=True)
    finishing_options = Column(JSON, nullable=True)

    estimated_cost = Column(Numeric(12, 2), nullable=True)
    actual_cost = Column(Numeric(12, 2), nullable=True)
    quoted_price = Column(Numeric(12, 2), nullable=True)
    final_price = Column(Numeric(12, 2), nullable=True)

    order_date = Column(Date, nullable=False, default=date.today)
    start_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    completion_date = Column(Date, nullable=True)

    assigned_to = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="jobs")
    items = relationship("JobItem", back_populates="job", cascade="all, delete-orphan", order_by="JobItem.created_at")
    status_history = relationship(
        "JobStatusHistory", back_populates="job", cascade="all, delete-orphan",
        order_by="JobStatusHistory.created_at"
    )
    invoices = relationship("Invoice", back_populates="job")

    __table_args__ = (
        UniqueConstraint("tenant_id", "job_number", name="uq_job_tenant_number"),
    )


class JobItem(Base, TimestampMixin):
    __tablename__ = "job_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    description = Column(String(500), nullable=False)
    paper_size = Column(String(50), nullable=True)
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_price = Column(Numeric(12, 2), nullable=False, default=0)  # quantity * unit_price
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_reason = Column(String(255), nullable=True)
    specifications = Column(JSON, nullable=True)

    job = relationship("Job", back_populates="items")


class JobStatusHistory(Base, TimestampMixin):
    __tablename__ = "job_status_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(JobStatus), nullable=False)
    comment = Column(Text, nullable=True)
    changed_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    job = relationship("Job", back_populates="status_history")
