"""
Servicio de configuración por tenant.

Las claves conocidas tienen valores por defecto; lo guardado en BD se combina
encima de ellos para que una configuración parcial siga siendo utilizable.
"""
import copy
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.modules.settings.models import Setting

logger = logging.getLogger(__name__)

PAYROLL_KEY = "payroll"
WHATSAPP_KEY = "whatsapp"
ORGANIZATION_KEY = "organization"

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    PAYROLL_KEY: {
        "income_tax_rate": 0.15,
        "ssnit_employee_rate": 0.055,
        "ssnit_employer_rate": 0.13,
    },
    WHATSAPP_KEY: {
        "enabled": False,
        "access_token": None,
        "phone_number_id": None,
        "business_account_id": None,
        "webhook_verify_token": None,
    },
    ORGANIZATION_KEY: {
        "name": None,
        "email": None,
        "phone": None,
        "address": None,
        "currency": "GHS",
        "invoice_terms": None,
    },
}

SECRET_FIELDS = {"access_token"}


def mask_secrets(value: Dict[str, Any]) -> Dict[str, Any]:
    """Oculta tokens al devolver configuración por la API."""
    masked = dict(value)
    for field in SECRET_FIELDS:
        secret = masked.get(field)
        if secret:
            masked[field] = f"****{str(secret)[-4:]}"
    return masked


class SettingService:
    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, tenant_id: UUID, key: str) -> Optional[Setting]:
        return self.db.query(Setting).filter(
            Setting.tenant_id == tenant_id,
            Setting.key == key
        ).first()

    def get_value(self, tenant_id: UUID, key: str) -> Dict[str, Any]:
        """Valor efectivo: defaults de la clave + lo almacenado."""
        value = copy.deepcopy(DEFAULT_SETTINGS.get(key, {}))
        row = self._get_row(tenant_id, key)
        if row and isinstance(row.value, dict):
            value.update(row.value)
        return value

    def get_description(self, tenant_id: UUID, key: str) -> Optional[str]:
        row = self._get_row(tenant_id, key)
        return row.description if row else None

    def upsert(
        self,
        tenant_id: UUID,
        key: str,
        value: Dict[str, Any],
        description: Optional[str] = None,
        commit: bool = True
    ) -> Dict[str, Any]:
        """Crea o actualiza la clave combinando los valores nuevos con los existentes."""
        row = self._get_row(tenant_id, key)
        if row:
            merged = dict(row.value or {})
            merged.update(value)
            row.value = merged
            if description is not None:
                row.description = description
        else:
            row = Setting(tenant_id=tenant_id, key=key, value=dict(value), description=description)
            self.db.add(row)

        if commit:
            self.db.commit()
        else:
            self.db.flush()
        logger.info(f"Setting '{key}' updated for tenant {tenant_id}")
        return self.get_value(tenant_id, key)

    def seed_defaults(self, tenant_id: UUID):
        """Crea las claves por defecto de un tenant nuevo (sin commit)."""
        for key in (PAYROLL_KEY, WHATSAPP_KEY):
            if not self._get_row(tenant_id, key):
                self.db.add(Setting(
                    tenant_id=tenant_id,
                    key=key,
                    value=copy.deepcopy(DEFAULT_SETTINGS[key]),
                    description=f"Default {key} settings"
                ))
        self.db.flush()
