"""
Numeración de documentos por tenant.

Cada tipo de documento (JOB, INV, QTE, EXP, PAY-IN, PAY-OUT, SALE, RX) lleva un
contador por período: mensual (YYYYMM) o diario (YYYYMMDD). El número resultante
tiene la forma PREFIX-PERIOD-NNNN, p. ej. INV-202410-0007.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Session

from app.database.database import Base
from app.common.mixins import TenantMixin, TimestampMixin

MONTHLY = "%Y%m"
DAILY = "%Y%m%d"


class DocumentSequence(Base, TenantMixin, TimestampMixin):
    """Tabla para manejar secuencias de numeración por tenant, prefijo y período"""
    __tablename__ = "document_sequences"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    prefix = Column(String(20), nullable=False)
    period = Column(String(8), nullable=False)
    current_number = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("tenant_id", "prefix", "period", name="uq_sequence_tenant_prefix_period"),
    )


def next_document_number(
    db: Session,
    tenant_id,
    prefix: str,
    period_format: str = MONTHLY,
    when: Optional[datetime] = None,
) -> str:
    """Reserva el siguiente número de la secuencia. Debe llamarse dentro de la transacción del documento."""
    when = when or datetime.now(timezone.utc)
    period = when.strftime(period_format)

    sequence = db.query(DocumentSequence).filter(
        DocumentSequence.tenant_id == tenant_id,
        DocumentSequence.prefix == prefix,
        DocumentSequence.period == period
    ).with_for_update().first()

    if not sequence:
        sequence = DocumentSequence(
            tenant_id=tenant_id,
            prefix=prefix,
            period=period,
            current_number=0
        )
        db.add(sequence)
        db.flush()

    sequence.current_number += 1
    db.flush()

    return f"{prefix}-{period}-{sequence.current_number:04d}"
