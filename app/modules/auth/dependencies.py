"""
Dependencias de autenticación para FastAPI.
"""
from typing import List
from uuid import UUID
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, selectinload

from app.database.database import get_db
from app.modules.auth.models import User, UserTenant, MembershipStatus, MembershipRole
from app.modules.auth.schemas import AuthContext, MembershipOut
from app.modules.auth.utils import verify_token
from app.modules.tenants.models import TenantStatus

# Security scheme
security = HTTPBearer(auto_error=False)

ALL_ROLES = [role.value for role in MembershipRole]
MANAGER_ROLES = ["owner", "admin", "manager"]
ADMIN_ROLES = ["owner", "admin"]


def membership_to_out(membership: UserTenant) -> MembershipOut:
    return MembershipOut(
        id=membership.id,
        tenant_id=membership.tenant_id,
        tenant_name=membership.tenant.name,
        tenant_slug=membership.tenant.slug,
        role=membership.role,
        status=membership.status,
        is_default=membership.is_default,
        joined_at=membership.joined_at
    )


def sort_memberships(memberships: List[UserTenant]) -> List[UserTenant]:
    """Default primero, luego por antigüedad."""
    return sorted(
        memberships,
        key=lambda m: (not m.is_default, m.created_at or m.joined_at)
    )


class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Obtener usuario actual desde token JWT.
        No requiere tenant (para endpoints de cuenta).
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudieron validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )

        if credentials is None:
            raise credentials_exception

        payload = verify_token(credentials.credentials)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        try:
            user_uuid = UUID(user_id)
        except (TypeError, ValueError):
            raise credentials_exception

        user = db.query(User).options(
            selectinload(User.memberships).selectinload(UserTenant.tenant)
        ).filter(User.id == user_uuid).first()

        if user is None or not user.is_active:
            raise credentials_exception

        return user

    @staticmethod
    def get_auth_context(
        request: Request,
        user: User = Depends(get_current_user.__func__),
    ) -> AuthContext:
        """
        Obtener contexto de autenticación completo con tenant.

        Con X-Tenant-ID el usuario debe tener membresía activa en ese tenant.
        Sin header se usa la membresía por defecto o la más antigua.
        """
        active = sort_memberships([
            m for m in user.memberships if m.status == MembershipStatus.ACTIVE
        ])

        requested = getattr(request.state, "tenant_id", None)
        if requested is None and request.headers.get("X-Tenant-ID"):
            try:
                requested = UUID(request.headers["X-Tenant-ID"])
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="ID de tenant inválido"
                )

        if requested is not None:
            membership = next((m for m in active if m.tenant_id == requested), None)
            if membership is None:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="No tienes acceso a este tenant"
                )
        else:
            if not active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="El usuario no pertenece a ningún tenant activo"
                )
            membership = active[0]

        if membership.tenant.status != TenantStatus.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="El tenant está suspendido"
            )

        request.state.tenant_id = membership.tenant_id

        return AuthContext(
            user_id=user.id,
            tenant_id=membership.tenant_id,
            user_role=membership.role.value,
            tenants=[membership_to_out(m) for m in active]
        )

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependencia para requerir roles específicos.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if auth_context.user_role not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {', '.join(allowed_roles)}"
                )
            return auth_context
        return role_checker

    @staticmethod
    def require_admin():
        """Dependencia para requerir rol de owner o admin."""
        return AuthDependencies.require_role(ADMIN_ROLES)

    @staticmethod
    def require_manager():
        """Owner, admin o manager: operaciones financieras."""
        return AuthDependencies.require_role(MANAGER_ROLES)

    @staticmethod
    def require_any_role():
        """Dependencia que requiere cualquier rol activo en el tenant."""
        return AuthDependencies.require_role(ALL_ROLES)


# Instancias de dependencias
get_current_user = AuthDependencies.get_current_user
get_auth_context = AuthDependencies.get_auth_context
require_admin = AuthDependencies.require_admin
require_manager = AuthDependencies.require_manager
require_any_role = AuthDependencies.require_any_role
