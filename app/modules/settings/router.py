from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, ADMIN_ROLES
from app.modules.settings.service import SettingService, mask_secrets
from app.modules.settings.schemas import SettingUpdate, SettingOut

settings_router = APIRouter(prefix="/settings", tags=["Settings"])


@settings_router.get("/{key}", response_model=SettingOut)
def get_setting(
    key: str,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Valor efectivo de la clave, con los tokens enmascarados."""
    service = SettingService(db)
    return SettingOut(
        key=key,
        value=mask_secrets(service.get_value(auth_context.tenant_id, key)),
        description=service.get_description(auth_context.tenant_id, key)
    )


@settings_router.put("/{key}", response_model=SettingOut)
def update_setting(
    key: str,
    data: SettingUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    service = SettingService(db)
    value = service.upsert(auth_context.tenant_id, key, data.value, data.description)
    return SettingOut(
        key=key,
        value=mask_secrets(value),
        description=service.get_description(auth_context.tenant_id, key)
    )
