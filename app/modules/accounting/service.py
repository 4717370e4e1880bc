"""
Servicio contable: plan de cuentas, asientos y balance de comprobación.

Los asientos en estado `posted` actualizan `account_balances` por
(cuenta, año fiscal, mes) en la misma transacción.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.modules.accounting.models import (
    Account, AccountBalance, AccountType, JournalEntry, JournalEntryLine, JournalEntryStatus
)
from app.modules.accounting.schemas import (
    AccountCreate, AccountUpdate, AccountList, AccountSummary, AccountTypeSummary,
    JournalEntryCreate, JournalEntryList, TrialBalance, TrialBalanceRow, TrialBalanceSummary
)
from app.modules.payments.models import PaymentMethod
from app.common.validators import money
from app.core.config import settings

logger = logging.getLogger(__name__)

# (account, debit, credit, description)
LineSpec = Tuple[Account, Decimal, Decimal, Optional[str]]

CASH_METHODS = (PaymentMethod.CASH, PaymentMethod.MOBILE_MONEY)

# Plan de cuentas estándar: (código, nombre, tipo, categoría)
STANDARD_ACCOUNTS = [
    ("1000", "Cash on Hand", AccountType.ASSET, "Current Assets"),
    ("1100", "Accounts Receivable", AccountType.ASSET, "Current Assets"),
    ("1200", "Undeposited Funds", AccountType.ASSET, "Current Assets"),
    ("1300", "Inventory", AccountType.ASSET, "Current Assets"),
    ("2000", "Salaries Payable", AccountType.LIABILITY, "Current Liabilities"),
    ("2100", "PAYE Tax Payable", AccountType.LIABILITY, "Current Liabilities"),
    ("2200", "SSNIT Payable", AccountType.LIABILITY, "Current Liabilities"),
    ("2300", "Accounts Payable", AccountType.LIABILITY, "Current Liabilities"),
    ("3000", "Owner's Equity", AccountType.EQUITY, "Equity"),
    ("4000", "Service Revenue", AccountType.INCOME, "Operating Revenue"),
    ("4100", "Sales Revenue", AccountType.INCOME, "Operating Revenue"),
    ("5000", "Salaries and Wages", AccountType.EXPENSE, "Payroll"),
    ("5100", "Employer SSNIT Contribution", AccountType.EXPENSE, "Payroll"),
    ("5200", "Rent", AccountType.EXPENSE, "Operating Expenses"),
    ("5300", "Utilities", AccountType.EXPENSE, "Operating Expenses"),
    ("6000", "Cost of Materials", AccountType.COGS, "Cost of Sales"),
]


class AccountingService:
    def __init__(self, db: Session):
        self.db = db

    # ===== CUENTAS =====

    def create_account(self, data: AccountCreate, tenant_id: UUID) -> Account:
        existing = self.db.query(Account.id).filter(
            Account.tenant_id == tenant_id,
            Account.code == data.code
        ).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Account code {data.code} already exists"
            )
        if data.parent_id:
            self.get_account(data.parent_id, tenant_id)

        account = Account(
            tenant_id=tenant_id,
            metadata_=data.metadata,
            **data.model_dump(exclude={"metadata"})
        )
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def get_accounts(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = None
    ) -> AccountList:
        query = self.db.query(Account).filter(Account.tenant_id == tenant_id)
        if account_type:
            query = query.filter(Account.type == account_type)
        if is_active is not None:
            query = query.filter(Account.is_active == is_active)

        total = query.count()
        items = query.order_by(Account.code).offset(offset).limit(limit).all()
        return AccountList(items=items, total=total, limit=limit, offset=offset)

    def get_account(self, account_id: UUID, tenant_id: UUID) -> Account:
        account = self.db.query(Account).filter(
            Account.id == account_id,
            Account.tenant_id == tenant_id
        ).first()
        if not account:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
        return account

    def update_account(self, account_id: UUID, data: AccountUpdate, tenant_id: UUID) -> Account:
        account = self.get_account(account_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("parent_id"):
            if update_data["parent_id"] == account.id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="An account cannot be its own parent")
            self.get_account(update_data["parent_id"], tenant_id)
        if "metadata" in update_data:
            account.metadata_ = update_data.pop("metadata")
        for field, value in update_data.items():
            setattr(account, field, value)
        self.db.commit()
        self.db.refresh(account)
        return account

    def delete_account(self, account_id: UUID, tenant_id: UUID) -> dict:
        account = self.get_account(account_id, tenant_id)
        in_use = self.db.query(JournalEntryLine.id).filter(JournalEntryLine.account_id == account.id).first()
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Account has journal lines; deactivate it instead"
            )
        self.db.query(AccountBalance).filter(AccountBalance.account_id == account.id).delete(synchronize_session=False)
        self.db.delete(account)
        self.db.commit()
        return {"message": "Account deleted", "id": str(account_id)}

    def get_summary(self, tenant_id: UUID) -> AccountSummary:
        rows = self.db.query(Account.type, func.count(Account.id)).filter(
            Account.tenant_id == tenant_id
        ).group_by(Account.type).all()
        by_type = [AccountTypeSummary(type=r[0], count=r[1]) for r in rows]
        return AccountSummary(total_accounts=sum(t.count for t in by_type), by_type=by_type)

    def ensure_accounts(self, tenant_id: UUID, codes: Optional[Iterable[str]] = None) -> List[Account]:
        """
        Crea las cuentas del plan estándar que falten (todas, o solo `codes`).
        Las existentes no se tocan. Retorna las cuentas creadas.
        """
        wanted = set(codes) if codes is not None else None
        existing = {
            code for (code,) in self.db.query(Account.code).filter(Account.tenant_id == tenant_id).all()
        }

        created = []
        for code, name, account_type, category in STANDARD_ACCOUNTS:
            if (wanted is not None and code not in wanted) or code in existing:
                continue
            account = Account(tenant_id=tenant_id, code=code, name=name, type=account_type, category=category)
            self.db.add(account)
            created.append(account)

        self.db.commit()
        if created:
            logger.info(f"Created accounts {[a.code for a in created]} for tenant {tenant_id}")
        return created

    def get_accounts_by_code(self, tenant_id: UUID, codes: Iterable[str]) -> Dict[str, Account]:
        codes = list(codes)
        accounts = self.db.query(Account).filter(
            Account.tenant_id == tenant_id,
            Account.code.in_(codes),
            Account.is_active.is_(True)
        ).all()
        return {a.code: a for a in accounts}

    def require_accounts(self, tenant_id: UUID, codes: Iterable[str]) -> Dict[str, Account]:
        codes = list(codes)
        found = self.get_accounts_by_code(tenant_id, codes)
        missing = [code for code in codes if code not in found]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Missing required accounts: {', '.join(missing)}"
            )
        return found

    # ===== ASIENTOS =====

    def _validate_lines(self, lines: List[LineSpec]):
        if len(lines) < 2:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least two lines are required")
        total_debit = money(sum((money(l[1]) for l in lines), Decimal("0")))
        total_credit = money(sum((money(l[2]) for l in lines), Decimal("0")))
        if total_debit != total_credit:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Debits must equal credits")

    def _apply_balances(self, tenant_id: UUID, entry: JournalEntry, lines: List[LineSpec]):
        fiscal_year, period = entry.entry_date.year, entry.entry_date.month
        for account, debit, credit, _ in lines:
            row = self.db.query(AccountBalance).filter(
                AccountBalance.account_id == account.id,
                AccountBalance.fiscal_year == fiscal_year,
                AccountBalance.period == period
            ).with_for_update().first()
            if not row:
                row = AccountBalance(
                    tenant_id=tenant_id,
                    account_id=account.id,
                    fiscal_year=fiscal_year,
                    period=period,
                    debit=Decimal("0"),
                    credit=Decimal("0"),
                    balance=Decimal("0")
                )
                self.db.add(row)
            row.debit = money(Decimal(str(row.debit)) + money(debit))
            row.credit = money(Decimal(str(row.credit)) + money(credit))
            row.balance = money(row.debit - row.credit)
            self.db.flush()

    def build_entry(
        self,
        tenant_id: UUID,
        lines: List[LineSpec],
        reference: Optional[str] = None,
        description: Optional[str] = None,
        entry_date: Optional[date] = None,
        entry_status: JournalEntryStatus = JournalEntryStatus.POSTED,
        source: Optional[str] = None,
        source_id: Optional[UUID] = None,
        metadata: Optional[dict] = None,
        user_id: Optional[UUID] = None
    ) -> JournalEntry:
        """Valida y agrega el asiento a la sesión, sin commit."""
        self._validate_lines(lines)

        entry = JournalEntry(
            tenant_id=tenant_id,
            reference=reference,
            description=description,
            entry_date=entry_date or date.today(),
            status=entry_status,
            source=source,
            source_id=source_id,
            metadata_=metadata,
            created_by=user_id,
            posted_at=datetime.now(timezone.utc) if entry_status == JournalEntryStatus.POSTED else None
        )
        entry.lines = [
            JournalEntryLine(account_id=account.id, debit=money(debit), credit=money(credit), description=desc)
            for account, debit, credit, desc in lines
        ]
        self.db.add(entry)
        self.db.flush()

        if entry_status == JournalEntryStatus.POSTED:
            self._apply_balances(tenant_id, entry, lines)
        return entry

    def create_journal_entry(self, data: JournalEntryCreate, tenant_id: UUID, user_id: UUID) -> JournalEntry:
        account_ids = {line.account_id for line in data.lines}
        accounts = {
            a.id: a for a in self.db.query(Account).filter(
                Account.tenant_id == tenant_id,
                Account.id.in_(account_ids)
            ).all()
        }
        if len(data.lines) >= 2 and len(accounts) != len(account_ids):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="One or more accounts not found")

        lines = [(accounts.get(l.account_id), l.debit, l.credit, l.description) for l in data.lines]
        entry = self.build_entry(
            tenant_id,
            lines,
            reference=data.reference,
            description=data.description,
            entry_date=data.entry_date,
            entry_status=data.status,
            source=data.source,
            source_id=data.source_id,
            metadata=data.metadata,
            user_id=user_id
        )
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def get_journal_entries(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        entry_status: Optional[JournalEntryStatus] = None,
        source: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> JournalEntryList:
        query = self.db.query(JournalEntry).options(selectinload(JournalEntry.lines)).filter(
            JournalEntry.tenant_id == tenant_id
        )
        if entry_status:
            query = query.filter(JournalEntry.status == entry_status)
        if source:
            query = query.filter(JournalEntry.source == source)
        if start_date:
            query = query.filter(JournalEntry.entry_date >= start_date)
        if end_date:
            query = query.filter(JournalEntry.entry_date <= end_date)

        total = query.count()
        items = query.order_by(JournalEntry.entry_date.desc(), JournalEntry.created_at.desc()).offset(offset).limit(limit).all()
        return JournalEntryList(items=items, total=total, limit=limit, offset=offset)

    def get_journal_entry(self, entry_id: UUID, tenant_id: UUID) -> JournalEntry:
        entry = self.db.query(JournalEntry).options(selectinload(JournalEntry.lines)).filter(
            JournalEntry.id == entry_id,
            JournalEntry.tenant_id == tenant_id
        ).first()
        if not entry:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
        return entry

    def get_trial_balance(self, tenant_id: UUID, fiscal_year: Optional[int] = None, period: Optional[int] = None) -> TrialBalance:
        query = self.db.query(
            Account.id,
            Account.code,
            Account.name,
            Account.type,
            func.coalesce(func.sum(AccountBalance.debit), 0),
            func.coalesce(func.sum(AccountBalance.credit), 0)
        ).join(AccountBalance, AccountBalance.account_id == Account.id).filter(
            Account.tenant_id == tenant_id
        )
        if fiscal_year:
            query = query.filter(AccountBalance.fiscal_year == fiscal_year)
        if period:
            query = query.filter(AccountBalance.period == period)

        rows = query.group_by(Account.id, Account.code, Account.name, Account.type).order_by(Account.code).all()

        accounts = []
        for account_id, code, name, account_type, debit, credit in rows:
            debit, credit = money(debit), money(credit)
            accounts.append(TrialBalanceRow(
                account_id=account_id, code=code, name=name, type=account_type,
                debit=debit, credit=credit, balance=money(debit - credit)
            ))

        total_debit = money(sum((a.debit for a in accounts), Decimal("0")))
        total_credit = money(sum((a.credit for a in accounts), Decimal("0")))
        return TrialBalance(
            fiscal_year=fiscal_year,
            period=period,
            accounts=accounts,
            summary=TrialBalanceSummary(
                total_debit=total_debit,
                total_credit=total_credit,
                is_balanced=total_debit == total_credit
            )
        )

    # ===== INTEGRACIONES =====

    def record_invoice_payment(
        self,
        tenant_id: UUID,
        invoice,
        amount: Decimal,
        payment_method: PaymentMethod,
        user_id: Optional[UUID] = None
    ) -> Optional[JournalEntry]:
        """
        Dr caja (efectivo / mobile money) o fondos no depositados, Cr cuentas por cobrar.
        Lanza HTTPException si faltan cuentas; el llamador decide si es best-effort.
        """
        amount = money(amount)
        if amount <= 0:
            return None

        deposit_code = (
            settings.ACCOUNTING_CASH_ACCOUNT_CODE if payment_method in CASH_METHODS
            else settings.ACCOUNTING_UNDEPOSITED_ACCOUNT_CODE
        )
        ar_code = settings.ACCOUNTING_AR_ACCOUNT_CODE
        accounts = self.require_accounts(tenant_id, [deposit_code, ar_code])

        entry = self.build_entry(
            tenant_id,
            [
                (accounts[deposit_code], amount, Decimal("0"), f"Payment received for {invoice.invoice_number}"),
                (accounts[ar_code], Decimal("0"), amount, f"Settle receivable {invoice.invoice_number}"),
            ],
            reference=invoice.invoice_number,
            description=f"Payment for invoice {invoice.invoice_number}",
            source="invoice_payment",
            source_id=invoice.id,
            metadata={"payment_method": payment_method.value},
            user_id=user_id
        )
        self.db.commit()
        logger.info(f"Payment journal {entry.id} posted for invoice {invoice.invoice_number}")
        return entry
