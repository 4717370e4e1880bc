from datetime import datetime, timedelta, timezone
from typing import List
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError

from app.modules.auth.models import User, UserTenant, MembershipRole, MembershipStatus
from app.modules.auth.schemas import (
    SignupRequest, UserUpdate, PasswordChangeRequest, TokenResponse,
    UserOut, UserWithMemberships, PasswordChangeResponse
)
from app.modules.auth.utils import hash_password, verify_password, create_access_token
from app.modules.auth.dependencies import membership_to_out, sort_memberships
from app.modules.tenants.models import Tenant, TenantPlan, TenantStatus
from app.modules.settings.service import SettingService, ORGANIZATION_KEY
from app.common.validators import slugify
from app.core.config import settings

logger = logging.getLogger(__name__)

TRIAL_DAYS = 30


class AuthService:
    """
    Servicio de autenticación multi-tenant.
    """

    def __init__(self, db: Session):
        self.db = db

    def _generate_unique_slug(self, name: str) -> str:
        base = slugify(name)
        candidate = base
        counter = 1
        while self.db.query(Tenant.id).filter(Tenant.slug == candidate).first():
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    def _token_response(self, user: User, memberships: List[UserTenant]) -> TokenResponse:
        ordered = sort_memberships(memberships)
        token = create_access_token({"sub": str(user.id)})
        return TokenResponse(
            access_token=token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserOut.model_validate(user),
            memberships=[membership_to_out(m) for m in ordered],
            default_tenant_id=ordered[0].tenant_id if ordered else None
        )

    def signup(self, data: SignupRequest) -> TokenResponse:
        """
        Crear un tenant nuevo con su usuario propietario en una sola transacción.
        """
        email = data.admin_email.strip().lower()
        if self.db.query(User).filter(User.email == email).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ya existe una cuenta con este email. Inicia sesión."
            )

        company_name = (data.company_name or "").strip() or "My Workspace"

        try:
            tenant = Tenant(
                name=company_name,
                slug=self._generate_unique_slug(company_name),
                plan=data.plan,
                status=TenantStatus.ACTIVE,
                business_type=data.business_type,
                metadata_={
                    "website": data.company_website,
                    "email": data.company_email,
                    "phone": data.company_phone,
                    "signup_source": "self_service",
                },
                trial_ends_at=(
                    datetime.now(timezone.utc) + timedelta(days=TRIAL_DAYS)
                    if data.plan == TenantPlan.TRIAL else None
                )
            )
            self.db.add(tenant)

            user = User(
                name=data.admin_name.strip(),
                email=email,
                password=hash_password(data.password),
                phone=data.admin_phone,
                is_active=True
            )
            self.db.add(user)
            self.db.flush()

            membership = UserTenant(
                user_id=user.id,
                tenant_id=tenant.id,
                role=MembershipRole.OWNER,
                status=MembershipStatus.ACTIVE,
                is_default=True
            )
            self.db.add(membership)

            setting_service = SettingService(self.db)
            setting_service.seed_defaults(tenant.id)
            setting_service.upsert(tenant.id, ORGANIZATION_KEY, {
                "name": company_name,
                "email": data.company_email,
                "phone": data.company_phone,
            }, commit=False)

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No se pudo crear el workspace: datos duplicados"
            )

        self.db.refresh(user)
        logger.info(f"Tenant {tenant.slug} created with owner {user.email}")
        return self._token_response(user, list(user.memberships))

    def login(self, email: str, password: str) -> TokenResponse:
        """Login con email y contraseña. Retorna token y membresías activas."""
        user = self.db.query(User).options(
            selectinload(User.memberships).selectinload(UserTenant.tenant)
        ).filter(User.email == email.strip().lower()).first()

        if not user or not verify_password(password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email o contraseña inválidos"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="La cuenta está inactiva"
            )

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)

        active = [m for m in user.memberships if m.status == MembershipStatus.ACTIVE]
        return self._token_response(user, active)

    def get_me(self, user: User) -> UserWithMemberships:
        ordered = sort_memberships(list(user.memberships))
        return UserWithMemberships(
            **UserOut.model_validate(user).model_dump(),
            memberships=[membership_to_out(m) for m in ordered]
        )

    def update_details(self, user: User, data: UserUpdate) -> User:
        update_data = data.model_dump(exclude_unset=True)
        if "email" in update_data and update_data["email"]:
            email = update_data["email"].strip().lower()
            exists = self.db.query(User).filter(User.email == email, User.id != user.id).first()
            if exists:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="El email ya está en uso"
                )
            update_data["email"] = email

        for field, value in update_data.items():
            setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user: User, data: PasswordChangeRequest) -> PasswordChangeResponse:
        if not verify_password(data.current_password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="La contraseña actual es incorrecta"
            )

        user.password = hash_password(data.new_password)
        self.db.commit()
        self.db.refresh(user)

        return PasswordChangeResponse(
            access_token=create_access_token({"sub": str(user.id)}),
            user=UserOut.model_validate(user)
        )

    def get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
        return user
