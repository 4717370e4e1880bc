"""
Seed script: Populate a demo printing-press tenant with realistic data.

What it creates:
- Tenant + owner user with credentials.
- Standard chart of accounts.
- Customers (~N) and vendors.
- Jobs with items; each job gets its invoice automatically.
- Payments on part of the invoices, expenses and leads.

Run inside the API container to use the 'postgres' host and project PYTHONPATH:
    docker compose exec api python scripts/seed_demo_data.py \
        --company-name "Accra Print House" \
        --email owner@accraprint.com \
        --password DemoPrint!2026 \
        --customers 25 --jobs 40

Note: This is intended for development environments only.
"""

# Add project root to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import logging
import random
from datetime import date, timedelta
from decimal import Decimal

from app.database.database import SessionLocal
import app.database.models  # noqa: F401
from app.modules.auth.models import User
from app.modules.auth.schemas import SignupRequest
from app.modules.auth.service import AuthService
from app.modules.accounting.service import AccountingService
from app.modules.customers.schemas import CustomerCreate
from app.modules.customers.service import CustomerService
from app.modules.vendors.schemas import VendorCreate
from app.modules.vendors.service import VendorService
from app.modules.jobs.models import JobStatus, JobPriority
from app.modules.jobs.schemas import JobCreate, JobItemIn
from app.modules.jobs.service import JobService
from app.modules.invoices.models import Invoice, InvoiceStatus
from app.modules.invoices.schemas import InvoicePaymentCreate
from app.modules.invoices.service import InvoiceService
from app.modules.expenses.schemas import ExpenseCreate
from app.modules.expenses.service import ExpenseService
from app.modules.expenses.models import ExpenseStatus
from app.modules.leads.models import LeadStatus
from app.modules.leads.schemas import LeadCreate
from app.modules.leads.service import LeadService
from app.modules.payments.models import PaymentMethod

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("seed_demo_data")

FIRST_NAMES = ["Kwame", "Ama", "Kofi", "Akosua", "Yaw", "Efua", "Kojo", "Abena", "Kwesi", "Adwoa"]
LAST_NAMES = ["Mensah", "Owusu", "Boateng", "Asante", "Appiah", "Osei", "Agyeman", "Darko"]
BUSINESSES = ["Church", "Academy", "Pharmacy", "Supermarket", "Hotel", "Clinic", "Foods", "Motors"]
SERVICES = [
    ("Business Cards", "A6", Decimal("0.50")),
    ("Flyers", "A5", Decimal("0.80")),
    ("Banners", "3x6ft", Decimal("120.00")),
    ("Brochures", "A4", Decimal("2.50")),
    ("Stickers", "A4", Decimal("1.20")),
    ("Calendars", "A3", Decimal("15.00")),
]
VENDORS = [
    ("Tema Paper Supplies", "Paper"),
    ("Ink World Ghana", "Ink & Toner"),
    ("Kumasi Print Machines", "Equipment"),
    ("ECG", "Utilities"),
]
EXPENSE_CATEGORIES = ["Paper", "Ink & Toner", "Utilities", "Rent", "Transport", "Maintenance"]
LEAD_SOURCES = ["referral", "walk_in", "facebook", "website", "instagram"]


def pick(seq):
    return random.choice(seq)


def random_phone() -> str:
    return f"+23324{random.randint(1000000, 9999999)}"


def create_owner(db, args):
    existing = db.query(User).filter(User.email == args.email.lower()).first()
    if existing:
        logger.error(f"User {args.email} already exists; use another --email")
        sys.exit(1)

    result = AuthService(db).signup(SignupRequest(
        company_name=args.company_name,
        company_email=args.email,
        company_phone=random_phone(),
        admin_name=args.owner_name,
        admin_email=args.email,
        password=args.password,
    ))
    logger.info(f"Tenant created: {args.company_name} ({result.default_tenant_id})")
    return result.default_tenant_id, result.user.id


def seed_customers(db, tenant_id, count):
    service = CustomerService(db)
    customers = []
    for i in range(count):
        first, last = pick(FIRST_NAMES), pick(LAST_NAMES)
        company = f"{last} {pick(BUSINESSES)}" if i % 2 == 0 else None
        customers.append(service.create_customer(CustomerCreate(
            name=f"{first} {last}",
            company=company,
            email=f"{first.lower()}.{last.lower()}{i}@demomail.com",
            phone=random_phone(),
            city=pick(["Accra", "Kumasi", "Tema", "Takoradi"]),
            country="Ghana",
            how_did_you_hear=pick(LEAD_SOURCES),
        ), tenant_id))
    return customers


def seed_vendors(db, tenant_id):
    service = VendorService(db)
    return [
        service.create_vendor(VendorCreate(name=name, category=category, phone=random_phone(), country="Ghana"), tenant_id)
        for name, category in VENDORS
    ]


def seed_jobs(db, tenant_id, user_id, customers, count):
    service = JobService(db)
    jobs = []
    for _ in range(count):
        items = []
        for category, size, price in random.sample(SERVICES, k=random.randint(1, 3)):
            items.append(JobItemIn(
                category=category,
                description=f"{category} ({size})",
                paper_size=size,
                quantity=Decimal(random.choice([1, 2, 50, 100, 250, 500])),
                unit_price=price,
            ))
        order_date = date.today() - timedelta(days=random.randint(0, 120))
        jobs.append(service.create_job(JobCreate(
            customer_id=pick(customers).id,
            title=f"{items[0].category} order",
            status=pick(list(JobStatus)),
            priority=pick(list(JobPriority)),
            order_date=order_date,
            due_date=order_date + timedelta(days=random.randint(2, 14)),
            items=items,
        ), tenant_id, user_id))
    return jobs


def seed_payments(db, tenant_id, user_id, jobs, ratio):
    service = InvoiceService(db)
    paid = 0
    for job in jobs:
        if random.random() > ratio:
            continue
        invoice = db.query(Invoice).filter(Invoice.job_id == job.id, Invoice.tenant_id == tenant_id).first()
        if not invoice or invoice.status == InvoiceStatus.CANCELLED or invoice.total_amount <= 0:
            continue
        service.send_invoice(invoice.id, tenant_id)
        amount = invoice.total_amount if random.random() < 0.7 else (invoice.total_amount / 2).quantize(Decimal("0.01"))
        service.record_payment(invoice.id, InvoicePaymentCreate(
            amount=amount,
            payment_method=pick([PaymentMethod.CASH, PaymentMethod.MOBILE_MONEY, PaymentMethod.BANK_TRANSFER]),
        ), tenant_id, user_id)
        paid += 1
    return paid


def seed_expenses(db, tenant_id, user_id, vendors, count):
    service = ExpenseService(db)
    for _ in range(count):
        service.create_expense(ExpenseCreate(
            vendor_id=pick(vendors).id if random.random() < 0.7 else None,
            category=pick(EXPENSE_CATEGORIES),
            description="Demo expense",
            amount=Decimal(random.randint(50, 2500)),
            expense_date=date.today() - timedelta(days=random.randint(0, 120)),
            status=pick([ExpenseStatus.PAID, ExpenseStatus.PENDING]),
        ), tenant_id, user_id)


def seed_leads(db, tenant_id, count):
    service = LeadService(db)
    for i in range(count):
        first, last = pick(FIRST_NAMES), pick(LAST_NAMES)
        service.create_lead(LeadCreate(
            name=f"{first} {last}",
            company=f"{last} {pick(BUSINESSES)}",
            email=f"lead{i}.{last.lower()}@demomail.com",
            phone=random_phone(),
            source=pick(LEAD_SOURCES),
            status=pick([LeadStatus.NEW, LeadStatus.CONTACTED, LeadStatus.QUALIFIED]),
            next_follow_up=date.today() + timedelta(days=random.randint(0, 14)),
        ), tenant_id)


def main():
    parser = argparse.ArgumentParser(description="Seed a demo printing-press tenant")
    parser.add_argument("--company-name", default="Accra Print House")
    parser.add_argument("--owner-name", default="Demo Owner")
    parser.add_argument("--email", default="owner@accraprint.com")
    parser.add_argument("--password", default="DemoPrint!2026")
    parser.add_argument("--customers", type=int, default=25)
    parser.add_argument("--jobs", type=int, default=40)
    parser.add_argument("--expenses", type=int, default=30)
    parser.add_argument("--leads", type=int, default=15)
    parser.add_argument("--paid-ratio", type=float, default=0.6, help="Share of job invoices that receive a payment")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    db = SessionLocal()
    try:
        tenant_id, user_id = create_owner(db, args)
        AccountingService(db).ensure_accounts(tenant_id)
        customers = seed_customers(db, tenant_id, args.customers)
        vendors = seed_vendors(db, tenant_id)
        jobs = seed_jobs(db, tenant_id, user_id, customers, args.jobs)
        paid = seed_payments(db, tenant_id, user_id, jobs, args.paid_ratio)
        seed_expenses(db, tenant_id, user_id, vendors, args.expenses)
        seed_leads(db, tenant_id, args.leads)
    finally:
        db.close()

    logger.info(
        f"Seed complete: {len(customers)} customers, {len(vendors)} vendors, "
        f"{len(jobs)} jobs, {paid} payments, {args.expenses} expenses, {args.leads} leads"
    )
    logger.info(f"Login with {args.email} / {args.password}")


if __name__ == "__main__":
    main()
