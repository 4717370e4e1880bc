from pydantic import BaseModel, Field, AliasChoices
from typing import Optional, List, Dict, Any
from uuid import UUID
from decimal import Decimal
from datetime import date, datetime

from app.modules.accounting.models import AccountType, JournalEntryStatus


class AccountCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    type: AccountType
    category: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[AccountType] = None
    category: Optional[str] = None
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None


class AccountOut(BaseModel):
    id: UUID
    code: str
    name: str
    type: AccountType
    category: Optional[str] = None
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    is_active: bool
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True


class AccountList(BaseModel):
    items: List[AccountOut]
    total: int
    limit: int
    offset: int


class AccountTypeSummary(BaseModel):
    type: AccountType
    count: int


class AccountSummary(BaseModel):
    total_accounts: int
    by_type: List[AccountTypeSummary]


class JournalLineIn(BaseModel):
    account_id: UUID
    debit: Decimal = Field(Decimal("0"), ge=0)
    credit: Decimal = Field(Decimal("0"), ge=0)
    description: Optional[str] = Field(None, max_length=255)


class JournalEntryCreate(BaseModel):
    reference: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    entry_date: Optional[date] = None
    status: JournalEntryStatus = JournalEntryStatus.DRAFT
    source: Optional[str] = Field("manual", max_length=50)
    source_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = None
    lines: List[JournalLineIn]


class JournalLineOut(BaseModel):
    id: UUID
    account_id: UUID
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None

    class Config:
        from_attributes = True


class JournalEntryOut(BaseModel):
    id: UUID
    reference: Optional[str] = None
    description: Optional[str] = None
    entry_date: date
    status: JournalEntryStatus
    source: Optional[str] = None
    source_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_by: Optional[UUID] = None
    posted_at: Optional[datetime] = None
    created_at: datetime
    lines: List[JournalLineOut] = []

    class Config:
        from_attributes = True


class JournalEntryList(BaseModel):
    items: List[JournalEntryOut]
    total: int
    limit: int
    offset: int


class TrialBalanceRow(BaseModel):
    account_id: UUID
    code: str
    name: str
    type: AccountType
    debit: Decimal
    credit: Decimal
    balance: Decimal


class TrialBalanceSummary(BaseModel):
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool


class TrialBalance(BaseModel):
    fiscal_year: Optional[int] = None
    period: Optional[int] = None
    accounts: List[TrialBalanceRow]
    summary: TrialBalanceSummary
