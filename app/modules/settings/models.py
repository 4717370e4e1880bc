from app.database.database import Base
from sqlalchemy import Column, String, Text, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin


class Setting(Base, TenantMixin, TimestampMixin):
    """Configuración clave/valor por tenant (payroll, whatsapp, organization, ...)"""
    __tablename__ = "settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    key = Column(String(100), nullable=False)
    value = Column(JSON, nullable=False, default=dict)
    description = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "key", name="uq_setting_tenant_key"),
    )
