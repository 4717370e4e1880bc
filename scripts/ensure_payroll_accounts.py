"""
Create the accounts that payroll posting and invoice payments need
(1000, 1100, 1200, 2000, 2100, 2200, 5000, 5100). Existing codes are skipped.

    docker compose exec api python scripts/ensure_payroll_accounts.py --tenant-id <uuid>
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import logging
from uuid import UUID

from app.database.database import SessionLocal
import app.database.models  # noqa: F401
from app.core.config import settings
from app.modules.accounting.service import AccountingService
from app.modules.payroll.service import PAYROLL_ACCOUNT_CODES
from app.modules.tenants.models import Tenant

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("ensure_payroll_accounts")

REQUIRED_CODES = [
    settings.ACCOUNTING_CASH_ACCOUNT_CODE,
    settings.ACCOUNTING_AR_ACCOUNT_CODE,
    settings.ACCOUNTING_UNDEPOSITED_ACCOUNT_CODE,
    *PAYROLL_ACCOUNT_CODES,
]


def main():
    parser = argparse.ArgumentParser(description="Ensure payroll and payment accounts exist for a tenant")
    parser.add_argument("--tenant-id", required=True, type=UUID)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        if not db.query(Tenant.id).filter(Tenant.id == args.tenant_id).first():
            logger.error(f"Tenant {args.tenant_id} not found")
            sys.exit(1)
        created = AccountingService(db).ensure_accounts(args.tenant_id, REQUIRED_CODES)
    finally:
        db.close()

    if created:
        logger.info(f"Created: {', '.join(a.code for a in created)}")
    else:
        logger.info("All required accounts already exist")


if __name__ == "__main__":
    main()
