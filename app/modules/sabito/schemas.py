from pydantic import BaseModel, Field, AliasChoices, field_validator
from typing import Optional, Dict, Any, List
from uuid import UUID
from datetime import datetime


class MappingCreate(BaseModel):
    sabito_business_id: str = Field(..., min_length=1, max_length=100)
    business_name: Optional[str] = Field(None, max_length=200)


class MappingOut(BaseModel):
    id: UUID
    sabito_business_id: str
    tenant_id: UUID
    business_name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


class SyncResult(BaseModel):
    success: bool
    business_id: str
    customers_processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[Dict[str, Any]] = []
    error: Optional[str] = None


class SyncStatus(BaseModel):
    mapped: bool
    sabito_business_id: Optional[str] = None
    business_name: Optional[str] = None
    last_synced_at: Optional[str] = None
    last_sync_result: Optional[Dict[str, Any]] = None


class WebhookCustomer(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class CustomerWebhookData(BaseModel):
    sabito_customer_id: Optional[str] = Field(None, validation_alias=AliasChoices("sabitoCustomerId", "sabito_customer_id"))
    source_referral_id: Optional[str] = Field(None, validation_alias=AliasChoices("sourceReferralId", "source_referral_id"))
    source_type: Optional[str] = Field(None, validation_alias=AliasChoices("sourceType", "source_type"))
    business_id: Optional[str] = Field(None, validation_alias=AliasChoices("businessId", "business_id"))
    business_name: Optional[str] = Field(None, validation_alias=AliasChoices("businessName", "business_name"))
    customer: Optional[WebhookCustomer] = None

    @field_validator("sabito_customer_id", "source_referral_id", "business_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else None


class CustomerWebhookEvent(BaseModel):
    event: Optional[str] = None
    data: Optional[CustomerWebhookData] = None


class CustomerWebhookResult(BaseModel):
    success: bool = True
    message: str
    customer_id: UUID
    sabito_customer_id: str
