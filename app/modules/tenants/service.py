from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.modules.tenants.models import Tenant
from app.modules.tenants.schemas import TenantUpdate, MemberCreate, MemberUpdate, MemberOut, MemberList
from app.modules.auth.models import User, UserTenant, MembershipRole, MembershipStatus
from app.modules.auth.utils import hash_password

logger = logging.getLogger(__name__)


def _member_out(membership: UserTenant) -> MemberOut:
    return MemberOut(
        id=membership.id,
        user_id=membership.user_id,
        name=membership.user.name,
        email=membership.user.email,
        phone=membership.user.phone,
        role=membership.role,
        status=membership.status,
        is_default=membership.is_default,
        joined_at=membership.joined_at
    )


class TenantService:
    def __init__(self, db: Session):
        self.db = db

    def get_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if not tenant:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant no encontrado")
        return tenant

    def update_tenant(self, tenant_id: UUID, data: TenantUpdate) -> Tenant:
        tenant = self.get_tenant(tenant_id)
        update_data = data.model_dump(exclude_unset=True)

        if "metadata" in update_data:
            merged = dict(tenant.metadata_ or {})
            merged.update(update_data.pop("metadata") or {})
            tenant.metadata_ = merged

        for field, value in update_data.items():
            setattr(tenant, field, value)

        self.db.commit()
        self.db.refresh(tenant)
        return tenant

    def list_members(self, tenant_id: UUID) -> MemberList:
        memberships = self.db.query(UserTenant).filter(
            UserTenant.tenant_id == tenant_id
        ).order_by(UserTenant.created_at.asc()).all()
        return MemberList(items=[_member_out(m) for m in memberships], total=len(memberships))

    def add_member(self, tenant_id: UUID, data: MemberCreate, invited_by: UUID) -> MemberOut:
        """Agregar usuario al tenant. Crea la cuenta si el email no existe."""
        email = data.email.strip().lower()
        user = self.db.query(User).filter(User.email == email).first()

        if user:
            existing = self.db.query(UserTenant).filter(
                UserTenant.user_id == user.id,
                UserTenant.tenant_id == tenant_id
            ).first()
            if existing:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="El usuario ya es miembro de este tenant"
                )
        else:
            if not data.name or not data.password:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Para un usuario nuevo se requieren nombre y contraseña"
                )
            user = User(name=data.name, email=email, password=hash_password(data.password), is_active=True)
            self.db.add(user)
            self.db.flush()

        has_memberships = self.db.query(UserTenant).filter(UserTenant.user_id == user.id).count() > 0

        membership = UserTenant(
            user_id=user.id,
            tenant_id=tenant_id,
            role=data.role,
            status=MembershipStatus.ACTIVE,
            is_default=not has_memberships,
            invited_by=invited_by
        )
        self.db.add(membership)
        self.db.commit()
        self.db.refresh(membership)

        logger.info(f"User {email} added to tenant {tenant_id} as {data.role.value}")
        return _member_out(membership)

    def update_member(self, tenant_id: UUID, membership_id: UUID, data: MemberUpdate) -> MemberOut:
        membership = self.db.query(UserTenant).filter(
            UserTenant.id == membership_id,
            UserTenant.tenant_id == tenant_id
        ).first()
        if not membership:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Miembro no encontrado")

        if membership.role == MembershipRole.OWNER:
            demoted = data.role is not None and data.role != MembershipRole.OWNER
            disabled = data.status is not None and data.status != MembershipStatus.ACTIVE
            if demoted or disabled:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="No se puede degradar ni desactivar al propietario"
                )

        if data.role is not None:
            membership.role = data.role
        if data.status is not None:
            membership.status = data.status

        self.db.commit()
        self.db.refresh(membership)
        return _member_out(membership)
