from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.tenants.service import TenantService
from app.modules.tenants.schemas import TenantOut, TenantUpdate, MemberCreate, MemberUpdate, MemberOut, MemberList

tenant_router = APIRouter(prefix="/tenants", tags=["Tenants"])


@tenant_router.get("/current", response_model=TenantOut)
def get_current_tenant(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """Tenant resuelto para este request (header X-Tenant-ID o membresía por defecto)."""
    return TenantService(db).get_tenant(auth_context.tenant_id)


@tenant_router.put("/current", response_model=TenantOut)
def update_current_tenant(
    data: TenantUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    return TenantService(db).update_tenant(auth_context.tenant_id, data)


@tenant_router.get("/current/members", response_model=MemberList)
def list_members(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return TenantService(db).list_members(auth_context.tenant_id)


@tenant_router.post("/current/members", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
def add_member(
    data: MemberCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    """
    Agregar un miembro al tenant.

    Solo propietarios y administradores. Si el email no tiene cuenta,
    se crea con el nombre y contraseña indicados.
    """
    return TenantService(db).add_member(auth_context.tenant_id, data, auth_context.user_id)


@tenant_router.patch("/current/members/{membership_id}", response_model=MemberOut)
def update_member(
    membership_id: UUID,
    data: MemberUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    return TenantService(db).update_member(auth_context.tenant_id, membership_id, data)
