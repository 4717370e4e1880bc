"""
Importa todos los modelos para registrarlos en Base.metadata
(create_all en desarrollo, Alembic y tests).
"""
import app.common.sequences  # noqa: F401
import app.modules.tenants.models  # noqa: F401
import app.modules.auth.models  # noqa: F401
import app.modules.settings.models  # noqa: F401
import app.modules.customers.models  # noqa: F401
import app.modules.vendors.models  # noqa: F401
import app.modules.jobs.models  # noqa: F401
import app.modules.quotes.models  # noqa: F401
import app.modules.invoices.models  # noqa: F401
import app.modules.payments.models  # noqa: F401
import app.modules.expenses.models  # noqa: F401
import app.modules.accounting.models  # noqa: F401
import app.modules.employees.models  # noqa: F401
import app.modules.payroll.models  # noqa: F401
import app.modules.inventory.models  # noqa: F401
import app.modules.shops.models  # noqa: F401
import app.modules.pharmacies.models  # noqa: F401
import app.modules.leads.models  # noqa: F401
import app.modules.sabito.models  # noqa: F401
import app.modules.pricing.models  # noqa: F401
