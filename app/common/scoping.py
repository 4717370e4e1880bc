"""
Validación de referencias entre tablas dentro del mismo tenant.

Un id que apunta a una fila de otro tenant se trata igual que uno inexistente:
404 con el nombre del recurso.
"""
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.auth.models import UserTenant, MembershipStatus


def ensure_tenant_row(db: Session, model, row_id: Optional[UUID], tenant_id: UUID, label: str) -> None:
    if row_id is None:
        return
    exists = db.query(model.id).filter(model.id == row_id, model.tenant_id == tenant_id).first()
    if not exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def ensure_member(db: Session, user_id: Optional[UUID], tenant_id: UUID, label: str = "User") -> None:
    """El usuario debe tener una membresía activa en el tenant."""
    if user_id is None:
        return
    membership = db.query(UserTenant.id).filter(
        UserTenant.user_id == user_id,
        UserTenant.tenant_id == tenant_id,
        UserTenant.status == MembershipStatus.ACTIVE
    ).first()
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
