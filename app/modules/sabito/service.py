"""
Sincronización de clientes desde Sabito.
"""
import hashlib
import hmac
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
from fastapi import HTTPException, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from app.core.config import settings
from app.modules.customers.models import Customer
from app.modules.sabito.models import SabitoTenantMapping
from app.modules.sabito.schemas import MappingCreate, CustomerWebhookEvent, CustomerWebhookResult
from app.modules.tenants.models import Tenant, TenantStatus

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30.0
PAGE_SIZE = 100


class SabitoMappingService:
    def __init__(self, db: Session):
        self.db = db

    def get_current(self, tenant_id: UUID) -> Optional[SabitoTenantMapping]:
        return self.db.query(SabitoTenantMapping).filter(
            SabitoTenantMapping.tenant_id == tenant_id
        ).first()

    def get_current_or_404(self, tenant_id: UUID) -> SabitoTenantMapping:
        mapping = self.get_current(tenant_id)
        if not mapping:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sabito mapping not found")
        return mapping

    def create_mapping(self, tenant_id: UUID, data: MappingCreate) -> SabitoTenantMapping:
        if self.get_current(tenant_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Tenant is already linked to a Sabito business"
            )
        business_id = data.sabito_business_id.strip()
        taken = self.db.query(SabitoTenantMapping.id).filter(
            SabitoTenantMapping.sabito_business_id == business_id
        ).first()
        if taken:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Sabito business is already linked to another tenant"
            )

        mapping = SabitoTenantMapping(
            sabito_business_id=business_id,
            tenant_id=tenant_id,
            business_name=data.business_name,
            metadata_={}
        )
        self.db.add(mapping)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sabito mapping already exists")
        self.db.refresh(mapping)
        logger.info(f"Tenant {tenant_id} linked to Sabito business {business_id}")
        return mapping

    def delete_mapping(self, tenant_id: UUID) -> None:
        mapping = self.get_current_or_404(tenant_id)
        self.db.delete(mapping)
        self.db.commit()


class SabitoSyncService:
    """
    Trae clientes de la API de Sabito y los crea o actualiza en el tenant mapeado.
    Sincronización secuencial: un tenant a la vez, un cliente a la vez.
    """

    def __init__(self, db: Session, transport: Optional[httpx.BaseTransport] = None):
        self.db = db
        self.base_url = settings.SABITO_API_URL.rstrip("/")
        self.api_key = settings.SABITO_API_KEY
        self.transport = transport

    def fetch_customers(self, business_id: str, updated_after: Optional[str] = None) -> List[Dict[str, Any]]:
        if not self.api_key:
            logger.warning("Sabito API key not configured")
            return []

        params = {"businessId": business_id, "limit": PAGE_SIZE, "offset": 0}
        if updated_after:
            params["updatedAfter"] = updated_after

        with httpx.Client(timeout=FETCH_TIMEOUT, transport=self.transport) as client:
            response = client.get(
                f"{self.base_url}/api/customers",
                params=params,
                headers={"X-API-Key": self.api_key, "Content-Type": "application/json"}
            )
            response.raise_for_status()
            body = response.json()

        if isinstance(body, dict):
            return body.get("data") or []
        return body or []

    def sync_customer(self, data: Dict[str, Any], tenant_id: UUID, business_id: str) -> Dict[str, Any]:
        sabito_id = data.get("id")
        sabito_id = str(sabito_id) if sabito_id is not None else None
        email = (data.get("email") or "").strip()
        if not email:
            return {"success": False, "skipped": True, "reason": "Customer missing email", "sabito_customer_id": sabito_id}

        match = [func.lower(Customer.email) == email.lower()]
        if sabito_id:
            match.append(Customer.sabito_customer_id == sabito_id)

        referral_id = data.get("sourceReferralId")
        values = {
            "name": data.get("name") or "Unknown",
            "email": email,
            "phone": data.get("phone") or None,
            "address": data.get("address") or None,
            "city": data.get("city") or None,
            "state": data.get("state") or None,
            "country": data.get("country") or "USA",
            "sabito_customer_id": sabito_id,
            "sabito_source_referral_id": str(referral_id) if referral_id else None,
            "sabito_source_type": data.get("sourceType") or "referral",
            "sabito_business_id": business_id,
            "how_did_you_hear": "Sabito Referral",
            "referral_name": "From Sabito" if referral_id else None,
            "is_active": True,
        }

        # commit por cliente: un error no descarta los ya sincronizados
        try:
            customer = self.db.query(Customer).filter(
                Customer.tenant_id == tenant_id, or_(*match)
            ).first()
            if customer:
                for field, value in values.items():
                    setattr(customer, field, value)
                action = "updated"
            else:
                customer = Customer(tenant_id=tenant_id, **values)
                self.db.add(customer)
                action = "created"
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error syncing Sabito customer {sabito_id}: {e}")
            return {"success": False, "error": str(e), "sabito_customer_id": sabito_id}

        return {"success": True, "action": action, "customer_id": customer.id, "sabito_customer_id": sabito_id}

    def sync_tenant_customers(self, mapping: SabitoTenantMapping, full_sync: bool = False) -> Dict[str, Any]:
        business_id = mapping.sabito_business_id
        label = mapping.business_name or business_id
        logger.info(f"Starting Sabito sync for {label}")

        metadata = dict(mapping.metadata_ or {})
        updated_after = None if full_sync else metadata.get("last_synced_at")

        results = {
            "success": True,
            "business_id": business_id,
            "customers_processed": 0,
            "created": 0,
            "updated": 0,
            "skipped": 0,
            "errors": 0,
            "error_details": [],
        }

        try:
            customers = self.fetch_customers(business_id, updated_after)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching Sabito customers for {label}: {e}")
            results.update(success=False, error=str(e), error_details=[{"error": str(e)}])
            return results

        results["customers_processed"] = len(customers)
        for item in customers:
            result = self.sync_customer(item, mapping.tenant_id, business_id)
            if result["success"]:
                results[result["action"]] += 1
            elif result.get("skipped"):
                results["skipped"] += 1
            else:
                results["errors"] += 1
                results["error_details"].append({
                    "sabito_customer_id": result.get("sabito_customer_id"),
                    "error": result.get("error") or result.get("reason"),
                })

        synced_at = datetime.now(timezone.utc).isoformat()
        metadata["last_synced_at"] = synced_at
        metadata["last_sync_result"] = {
            "customers_processed": results["customers_processed"],
            "created": results["created"],
            "updated": results["updated"],
            "skipped": results["skipped"],
            "errors": results["errors"],
            "error_details": results["error_details"],
            "synced_at": synced_at,
        }
        mapping.metadata_ = metadata
        self.db.commit()

        logger.info(
            f"Sabito sync completed for {label}: processed={results['customers_processed']} "
            f"created={results['created']} updated={results['updated']} "
            f"skipped={results['skipped']} errors={results['errors']}"
        )
        return results

    def sync_all_tenants(self, full_sync: bool = False) -> List[Dict[str, Any]]:
        mappings = self.db.query(SabitoTenantMapping).join(
            Tenant, SabitoTenantMapping.tenant_id == Tenant.id
        ).filter(Tenant.status == TenantStatus.ACTIVE).all()

        if not mappings:
            logger.info("No Sabito tenant mappings to sync")
            return []

        results = []
        for index, mapping in enumerate(mappings):
            if index > 0 and settings.SABITO_SYNC_DELAY_SECONDS > 0:
                time.sleep(settings.SABITO_SYNC_DELAY_SECONDS)
            results.append(self.sync_tenant_customers(mapping, full_sync=full_sync))

        logger.info(
            f"Sabito sync for all tenants: tenants={len(mappings)} "
            f"created={sum(r['created'] for r in results)} "
            f"updated={sum(r['updated'] for r in results)} "
            f"errors={sum(r['errors'] for r in results)}"
        )
        return results


def verify_webhook_request(raw_body: bytes, api_key: Optional[str], signature: Optional[str]) -> bool:
    """
    `X-API-Key` debe coincidir con SABITO_API_KEY. Si viene `X-Sabito-Signature`
    también se valida: HMAC-SHA256 hex del cuerpo crudo con la misma clave.
    """
    expected_key = settings.SABITO_API_KEY
    if not expected_key:
        logger.error("Sabito webhook rejected: SABITO_API_KEY not configured")
        return False
    if not api_key or not hmac.compare_digest(api_key.encode(), expected_key.encode()):
        return False
    if signature:
        expected = hmac.new(expected_key.encode(), raw_body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected.encode(), signature.encode())
    return True


class SabitoWebhookService:
    """Alta o actualización de un cliente referido desde Sabito (evento customer.created)."""

    SUPPORTED_EVENT = "customer.created"

    def __init__(self, db: Session):
        self.db = db

    def resolve_mapping(self, business_id: str, business_name: Optional[str], header_tenant_id: Optional[UUID]) -> SabitoTenantMapping:
        mapping = self.db.query(SabitoTenantMapping).filter(
            SabitoTenantMapping.sabito_business_id == business_id
        ).first()

        if mapping is None:
            # sin mapeo: se crea solo si X-Tenant-ID apunta a un tenant activo
            if header_tenant_id is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"No tenant mapping found for Sabito business ID: {business_id}"
                )
            tenant = self.db.query(Tenant).filter(Tenant.id == header_tenant_id).first()
            if tenant is None or tenant.status != TenantStatus.ACTIVE:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Tenant not found or inactive: {header_tenant_id}"
                )
            mapping = SabitoMappingService(self.db).create_mapping(
                tenant.id, MappingCreate(sabito_business_id=business_id, business_name=business_name or tenant.name)
            )
            logger.info(f"Sabito mapping auto-created for business {business_id} -> tenant {tenant.id}")
            return mapping

        if mapping.tenant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Tenant not found: {mapping.tenant_id}")
        if mapping.tenant.status != TenantStatus.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Tenant is not active: {mapping.tenant.status.value}"
            )
        return mapping

    def handle_customer_event(self, event: CustomerWebhookEvent, header_tenant_id: Optional[UUID] = None):
        if event.event != self.SUPPORTED_EVENT:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported event type: {event.event}")

        data = event.data
        if data is None or not data.sabito_customer_id or data.customer is None or not data.customer.email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing required fields: sabitoCustomerId, customer.email"
            )
        if not data.business_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required field: businessId in data")

        mapping = self.resolve_mapping(data.business_id, data.business_name, header_tenant_id)

        payload = data.customer.model_dump()
        payload.update(
            id=data.sabito_customer_id,
            sourceReferralId=data.source_referral_id,
            sourceType=data.source_type
        )
        result = SabitoSyncService(self.db).sync_customer(payload, mapping.tenant_id, data.business_id)
        if not result["success"]:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save Sabito customer"
            )

        logger.info(f"Sabito webhook: customer {result['customer_id']} {result['action']} for tenant {mapping.tenant_id}")
        return result["action"], CustomerWebhookResult(
            message=f"Customer {result['action']} successfully",
            customer_id=result["customer_id"],
            sabito_customer_id=data.sabito_customer_id
        )
