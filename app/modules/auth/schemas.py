from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from app.common.validators import validate_phone, format_to_e164
from app.modules.auth.models import MembershipRole, MembershipStatus
from app.modules.tenants.models import BusinessType, TenantPlan


def _normalize_phone(v):
    if v is None or v.strip() == "":
        return None
    if not validate_phone(v):
        raise ValueError('Número de teléfono inválido. Use formato internacional (+233XXXXXXXXX) o local (0XXXXXXXXX)')
    return format_to_e164(v)


class SignupRequest(BaseModel):
    """Alta de un tenant nuevo con su usuario propietario."""
    company_name: Optional[str] = Field(None, max_length=150)
    company_email: Optional[EmailStr] = None
    company_phone: Optional[str] = Field(None, max_length=30)
    company_website: Optional[str] = Field(None, max_length=255)
    business_type: BusinessType = BusinessType.PRINTING_PRESS
    plan: TenantPlan = TenantPlan.TRIAL
    admin_name: str = Field(..., min_length=2, max_length=150)
    admin_email: EmailStr
    admin_phone: Optional[str] = Field(None, max_length=30)
    password: str = Field(..., min_length=8)

    @field_validator('admin_phone')
    @classmethod
    def validate_admin_phone(cls, v):
        return _normalize_phone(v)


class UserOut(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    phone: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator('phone')
    @classmethod
    def validate_phone_number(cls, v):
        return _normalize_phone(v)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., description="Contraseña actual")
    new_password: str = Field(..., min_length=8, description="Nueva contraseña")


class MembershipOut(BaseModel):
    id: UUID
    tenant_id: UUID
    tenant_name: str
    tenant_slug: str
    role: MembershipRole
    status: MembershipStatus
    is_default: bool
    joined_at: Optional[datetime] = None


class UserWithMemberships(UserOut):
    memberships: List[MembershipOut] = []


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
    memberships: List[MembershipOut] = []
    default_tenant_id: Optional[UUID] = None


class PasswordChangeResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class AuthContext(BaseModel):
    user_id: UUID
    tenant_id: Optional[UUID] = None
    user_role: Optional[str] = None
    tenants: List[MembershipOut] = []
