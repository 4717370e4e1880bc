from app.database.database import Base
from sqlalchemy import Column, String, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TimestampMixin


class SabitoTenantMapping(Base, TimestampMixin):
    """Relación negocio de Sabito -> tenant. `metadata` guarda last_synced_at y last_sync_result."""
    __tablename__ = "sabito_tenant_mappings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    sabito_business_id = Column(String(100), nullable=False, unique=True, index=True)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False, unique=True, index=True)
    business_name = Column(String(200), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True, default=dict)

    tenant = relationship("Tenant")
