import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ADMIN_ROLES
from app.modules.auth.schemas import AuthContext
from app.modules.sabito.schemas import (
    MappingCreate, MappingOut, SyncResult, SyncStatus, CustomerWebhookEvent, CustomerWebhookResult
)
from app.modules.sabito.service import (
    SabitoMappingService, SabitoSyncService, SabitoWebhookService, verify_webhook_request
)

logger = logging.getLogger(__name__)

sabito_router = APIRouter(prefix="/sabito", tags=["Sabito"])
sabito_webhooks_router = APIRouter(prefix="/webhooks/sabito", tags=["Sabito"])


@sabito_router.post("/mapping", response_model=MappingOut, status_code=status.HTTP_201_CREATED)
def create_mapping(
    data: MappingCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """Vincular el tenant actual con un negocio de Sabito."""
    return SabitoMappingService(db).create_mapping(auth_context.tenant_id, data)


@sabito_router.get("/mapping", response_model=MappingOut)
def get_mapping(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    return SabitoMappingService(db).get_current_or_404(auth_context.tenant_id)


@sabito_router.delete("/mapping", status_code=status.HTTP_204_NO_CONTENT)
def delete_mapping(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    SabitoMappingService(db).delete_mapping(auth_context.tenant_id)


@sabito_router.post("/sync", response_model=SyncResult)
def sync_customers(
    full_sync: bool = Query(False),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    """Sincronizar ahora los clientes del negocio vinculado."""
    mapping = SabitoMappingService(db).get_current_or_404(auth_context.tenant_id)
    return SabitoSyncService(db).sync_tenant_customers(mapping, full_sync=full_sync)


@sabito_router.get("/sync/status", response_model=SyncStatus)
def sync_status(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    mapping = SabitoMappingService(db).get_current(auth_context.tenant_id)
    if not mapping:
        return SyncStatus(mapped=False)
    metadata = mapping.metadata_ or {}
    return SyncStatus(
        mapped=True,
        sabito_business_id=mapping.sabito_business_id,
        business_name=mapping.business_name,
        last_synced_at=metadata.get("last_synced_at"),
        last_sync_result=metadata.get("last_sync_result")
    )


@sabito_webhooks_router.post("/customer", response_model=CustomerWebhookResult)
async def receive_customer_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Cliente referido desde Sabito. Autenticado con `X-API-Key` (y
    `X-Sabito-Signature` opcional); el tenant sale del mapeo del negocio o,
    si aún no existe, de `X-Tenant-ID`.
    """
    raw_body = await request.body()
    if not verify_webhook_request(
        raw_body, request.headers.get("X-API-Key"), request.headers.get("X-Sabito-Signature")
    ):
        logger.warning("Sabito webhook authentication failed")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature or API key")

    try:
        event = CustomerWebhookEvent.model_validate(json.loads(raw_body or b"{}"))
    except (ValueError, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    action, result = SabitoWebhookService(db).handle_customer_event(event, getattr(request.state, "tenant_id", None))
    status_code = status.HTTP_201_CREATED if action == "created" else status.HTTP_200_OK
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))
