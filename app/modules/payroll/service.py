"""
Nómina: cálculo de corridas y contabilización.

Tasas (configurables por tenant en el setting `payroll`):
- income_tax_rate: impuesto sobre la renta retenido
- ssnit_employee_rate: aporte SSNIT del empleado
- ssnit_employer_rate: aporte SSNIT del empleador
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.modules.payroll.models import PayrollRun, PayrollEntry, PayrollRunStatus
from app.modules.payroll.schemas import PayrollRunCreate, PayrollRunList
from app.modules.employees.models import Employee, EmployeeStatus
from app.modules.accounting.service import AccountingService
from app.modules.settings.service import SettingService, PAYROLL_KEY
from app.common.validators import money

logger = logging.getLogger(__name__)

SALARY_EXPENSE = "5000"
EMPLOYER_SSNIT_EXPENSE = "5100"
NET_PAY_PAYABLE = "2000"
TAX_PAYABLE = "2100"
SSNIT_PAYABLE = "2200"
PAYROLL_ACCOUNT_CODES = [SALARY_EXPENSE, EMPLOYER_SSNIT_EXPENSE, NET_PAY_PAYABLE, TAX_PAYABLE, SSNIT_PAYABLE]


def calculate_pay(gross, rates: Dict[str, float]) -> Dict[str, Decimal]:
    gross = money(gross)
    income_tax = money(gross * Decimal(str(rates["income_tax_rate"])))
    ssnit_employee = money(gross * Decimal(str(rates["ssnit_employee_rate"])))
    ssnit_employer = money(gross * Decimal(str(rates["ssnit_employer_rate"])))
    return {
        "gross_pay": gross,
        "income_tax": income_tax,
        "ssnit_employee": ssnit_employee,
        "ssnit_employer": ssnit_employer,
        "net_pay": money(gross - income_tax - ssnit_employee),
    }


class PayrollService:
    def __init__(self, db: Session):
        self.db = db

    def get_rates(self, tenant_id: UUID) -> Dict[str, float]:
        value = SettingService(self.db).get_value(tenant_id, PAYROLL_KEY)
        return {
            "income_tax_rate": float(value["income_tax_rate"]),
            "ssnit_employee_rate": float(value["ssnit_employee_rate"]),
            "ssnit_employer_rate": float(value["ssnit_employer_rate"]),
        }

    def create_run(self, data: PayrollRunCreate, tenant_id: UUID, user_id: UUID) -> PayrollRun:
        query = self.db.query(Employee).filter(
            Employee.tenant_id == tenant_id,
            Employee.is_active.is_(True),
            Employee.status != EmployeeStatus.TERMINATED
        )
        if data.employee_ids:
            query = query.filter(Employee.id.in_(data.employee_ids))
        employees = query.all()

        if not employees:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No active employees found for this payroll run"
            )

        rates = self.get_rates(tenant_id)
        run = PayrollRun(
            tenant_id=tenant_id,
            period_start=data.period_start,
            period_end=data.period_end,
            pay_date=data.pay_date,
            status=PayrollRunStatus.DRAFT,
            notes=data.notes,
            created_by=user_id
        )

        totals = {"gross": Decimal("0"), "net": Decimal("0"), "tax": Decimal("0"), "employer": Decimal("0")}
        for employee in employees:
            pay = calculate_pay(employee.salary_amount, rates)
            run.entries.append(PayrollEntry(
                employee_id=employee.id,
                taxes={
                    "income_tax": float(pay["income_tax"]),
                    "ssnit_employee": float(pay["ssnit_employee"]),
                    "ssnit_employer": float(pay["ssnit_employer"]),
                },
                metadata_={"settings_used": rates, "salary_type": employee.salary_type.value},
                **pay
            ))
            totals["gross"] += pay["gross_pay"]
            totals["net"] += pay["net_pay"]
            totals["tax"] += pay["income_tax"] + pay["ssnit_employee"]
            totals["employer"] += pay["ssnit_employer"]

        run.total_gross = money(totals["gross"])
        run.total_net = money(totals["net"])
        run.total_tax = money(totals["tax"])
        run.total_employer_contributions = money(totals["employer"])

        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        logger.info(f"Payroll run {run.id} created with {len(employees)} employees")
        return run

    def get_runs(self, tenant_id: UUID, limit: int = 100, offset: int = 0,
                 status_filter: Optional[PayrollRunStatus] = None) -> PayrollRunList:
        query = self.db.query(PayrollRun).filter(PayrollRun.tenant_id == tenant_id)
        if status_filter:
            query = query.filter(PayrollRun.status == status_filter)
        total = query.count()
        items = query.order_by(PayrollRun.pay_date.desc()).offset(offset).limit(limit).all()
        return PayrollRunList(items=items, total=total, limit=limit, offset=offset)

    def get_run(self, run_id: UUID, tenant_id: UUID) -> PayrollRun:
        run = self.db.query(PayrollRun).options(
            selectinload(PayrollRun.entries).selectinload(PayrollEntry.employee)
        ).filter(
            PayrollRun.id == run_id,
            PayrollRun.tenant_id == tenant_id
        ).first()
        if not run:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payroll run not found")
        return run

    def post_run(self, run_id: UUID, tenant_id: UUID, user_id: UUID) -> PayrollRun:
        """
        Contabiliza la corrida:
        Dr 5000 bruto, Dr 5100 SSNIT empleador /
        Cr 2000 neto, Cr 2100 impuesto + SSNIT empleado, Cr 2200 SSNIT empleador
        """
        run = self.get_run(run_id, tenant_id)
        if run.status == PayrollRunStatus.POSTED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payroll run is already posted")

        accounting = AccountingService(self.db)
        accounts = accounting.require_accounts(tenant_id, PAYROLL_ACCOUNT_CODES)

        gross = money(run.total_gross)
        employer = money(run.total_employer_contributions)
        net = money(run.total_net)
        withholding = money(run.total_tax)
        zero = Decimal("0")

        entry = accounting.build_entry(
            tenant_id,
            [
                (accounts[SALARY_EXPENSE], gross, zero, "Gross salaries"),
                (accounts[EMPLOYER_SSNIT_EXPENSE], employer, zero, "Employer SSNIT contribution"),
                (accounts[NET_PAY_PAYABLE], zero, net, "Net salaries payable"),
                (accounts[TAX_PAYABLE], zero, withholding, "PAYE and employee SSNIT payable"),
                (accounts[SSNIT_PAYABLE], zero, employer, "Employer SSNIT payable"),
            ],
            reference=f"PR-{run.pay_date.strftime('%Y%m%d')}-{str(run.id)[:6]}",
            description=f"Payroll {run.period_start.isoformat()} to {run.period_end.isoformat()}",
            entry_date=run.pay_date,
            source="payroll",
            source_id=run.id,
            user_id=user_id
        )

        run.status = PayrollRunStatus.POSTED
        run.journal_entry_id = entry.id
        run.posted_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(run)
        logger.info(f"Payroll run {run.id} posted as journal entry {entry.reference}")
        return run
