from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text
import logging

# Import database components
from app.database.database import sync_engine, SessionLocal, Base

# Import middleware and error handlers
from app.common.middleware import TenantMiddleware, RequestIDMiddleware, SecurityHeadersMiddleware
from app.common.errors import register_exception_handlers

# Import routers
from app.modules.auth.router import auth_router
from app.modules.tenants.router import tenant_router
from app.modules.customers.router import customers_router
from app.modules.vendors.router import vendors_router
from app.modules.invoices.router import invoices_router, public_invoices_router
from app.modules.payments.router import payments_router
from app.modules.jobs.router import jobs_router
from app.modules.expenses.router import expenses_router
from app.modules.quotes.router import quotes_router
from app.modules.accounting.router import accounting_router
from app.modules.employees.router import employees_router
from app.modules.payroll.router import payroll_router
from app.modules.inventory.router import inventory_router
from app.modules.settings.router import settings_router
from app.modules.shops.router import shops_router, products_router, sales_router
from app.modules.pharmacies.router import pharmacies_router, drugs_router, prescriptions_router
from app.modules.leads.router import leads_router
from app.modules.whatsapp.router import whatsapp_router
from app.modules.sabito.router import sabito_router, sabito_webhooks_router
from app.modules.pricing.router import pricing_router
from app.modules.reports import reports_router, dashboard_router

# Import models for table creation
import app.database.models  # noqa: F401

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="NEXPro API",
    description="Multi-tenant business management API: jobs, invoicing, inventory, payroll, accounting, shops, pharmacies and leads",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TenantMiddleware)
app.add_middleware(RequestIDMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.ENVIRONMENT == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(tenant_router)
app.include_router(settings_router)
app.include_router(customers_router)
app.include_router(vendors_router)
app.include_router(jobs_router)
app.include_router(quotes_router)
app.include_router(pricing_router)
app.include_router(invoices_router)
app.include_router(public_invoices_router)
app.include_router(payments_router)
app.include_router(expenses_router)
app.include_router(accounting_router)
app.include_router(employees_router)
app.include_router(payroll_router)
app.include_router(inventory_router)
app.include_router(shops_router)
app.include_router(products_router)
app.include_router(sales_router)
app.include_router(pharmacies_router)
app.include_router(drugs_router)
app.include_router(prescriptions_router)
app.include_router(leads_router)
app.include_router(whatsapp_router)
app.include_router(sabito_router)
app.include_router(sabito_webhooks_router)
app.include_router(reports_router)
app.include_router(dashboard_router)

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=sync_engine)


@app.get("/")
async def read_root():
    return {
        "message": "NEXPro API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
def health_check():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        database = "unavailable"
    finally:
        db.close()
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "environment": settings.ENVIRONMENT
    }


@app.on_event("startup")
async def startup_event():
    logger.info("NEXPro API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("NEXPro API shutting down...")
