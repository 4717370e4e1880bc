from pydantic import BaseModel, EmailStr, Field, AliasChoices
from typing import Optional, Dict, Any, List
from uuid import UUID
from datetime import datetime
from app.modules.tenants.models import TenantStatus, TenantPlan, BusinessType
from app.modules.auth.models import MembershipRole, MembershipStatus


class TenantOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    status: TenantStatus
    plan: TenantPlan
    business_type: BusinessType
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    trial_ends_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    business_type: Optional[BusinessType] = None
    metadata: Optional[Dict[str, Any]] = None


class MemberCreate(BaseModel):
    """Agregar un miembro por email; si el usuario no existe se crea."""
    email: EmailStr
    role: MembershipRole = MembershipRole.STAFF
    name: Optional[str] = Field(None, min_length=2, max_length=150)
    password: Optional[str] = Field(None, min_length=8)


class MemberUpdate(BaseModel):
    role: Optional[MembershipRole] = None
    status: Optional[MembershipStatus] = None


class MemberOut(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: MembershipRole
    status: MembershipStatus
    is_default: bool
    joined_at: Optional[datetime] = None


class MemberList(BaseModel):
    items: List[MemberOut]
    total: int
