from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, Enum, Text, JSON, Date, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
import enum
from app.common.mixins import BaseMixin, SoftDeleteMixin, TimestampMixin


class LeadStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    LOST = "lost"
    CONVERTED = "converted"


class LeadPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LeadActivityType(str, enum.Enum):
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    NOTE = "note"
    TASK = "task"


class Lead(Base, BaseMixin, SoftDeleteMixin):
    """Prospecto del CRM; al convertirse queda enlazado al cliente creado."""
    __tablename__ = "leads"

    name = Column(String(200), nullable=False, index=True)
    company = Column(String(200), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    source = Column(String(100), nullable=False, default="unknown")
    status = Column(Enum(LeadStatus), nullable=False, default=LeadStatus.NEW, index=True)
    priority = Column(Enum(LeadPriority), nullable=False, default=LeadPriority.MEDIUM)
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    next_follow_up = Column(Date, nullable=True)
    last_contacted_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    converted_customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True)
    converted_job_id = Column(UUID(as_uuid=True), ForeignKey("jobs.id"), nullable=True)

    activities = relationship(
        "LeadActivity",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="LeadActivity.created_at.desc()"
    )


class LeadActivity(Base, TimestampMixin):
    __tablename__ = "lead_activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(LeadActivityType), nullable=False, default=LeadActivityType.NOTE)
    subject = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    next_step = Column(String(255), nullable=True)
    follow_up_date = Column(Date, nullable=True)

    lead = relationship("Lead", back_populates="activities")
