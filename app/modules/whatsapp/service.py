"""
Servicio de mensajería WhatsApp por tenant.

La configuración (token, phone_number_id) vive en la clave `whatsapp` de
settings de cada tenant. El límite diario se lleva en memoria del proceso.
"""
import hashlib
import hmac
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.common.validators import format_to_e164
from app.modules.settings.service import SettingService, WHATSAPP_KEY
from app.modules.whatsapp.client import WhatsAppClient
from app.modules.whatsapp.templates import TEMPLATES, validate_parameters, build_template_component

logger = logging.getLogger(__name__)


class DailyRateLimiter:
    """Contador de mensajes por tenant y día UTC."""

    def __init__(self, limit: int):
        self.limit = limit
        self._counts: Dict[tuple, int] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(tenant_id) -> tuple:
        return str(tenant_id), datetime.now(timezone.utc).date().isoformat()

    def try_acquire(self, tenant_id) -> bool:
        """Reserva un envío si el tenant no llegó al límite del día."""
        with self._lock:
            key = self._key(tenant_id)
            # descartar días anteriores
            for stale in [k for k in self._counts if k[1] != key[1]]:
                del self._counts[stale]
            if self._counts.get(key, 0) >= self.limit:
                return False
            self._counts[key] = self._counts.get(key, 0) + 1
            return True

    def release(self, tenant_id):
        with self._lock:
            key = self._key(tenant_id)
            if self._counts.get(key, 0) > 0:
                self._counts[key] -= 1

    def used(self, tenant_id) -> int:
        with self._lock:
            return self._counts.get(self._key(tenant_id), 0)

    def reset(self):
        with self._lock:
            self._counts.clear()


rate_limiter = DailyRateLimiter(settings.WHATSAPP_DAILY_LIMIT)


def verify_webhook_signature(raw_body: bytes, signature_header: Optional[str], app_secret: Optional[str] = None) -> bool:
    """Valida `X-Hub-Signature-256: sha256=<hex>` con HMAC-SHA256 del cuerpo crudo."""
    secret = app_secret if app_secret is not None else settings.WHATSAPP_APP_SECRET
    if not secret or not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header[len("sha256="):])


def parse_webhook(payload: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Extrae actualizaciones de estado y mensajes entrantes de entry[].changes[].value"""
    statuses = []
    messages = []
    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            value = change.get("value") or {}
            for item in value.get("statuses") or []:
                statuses.append({
                    "message_id": item.get("id"),
                    "status": item.get("status"),
                    "recipient_id": item.get("recipient_id"),
                    "timestamp": item.get("timestamp"),
                })
            for item in value.get("messages") or []:
                messages.append({
                    "message_id": item.get("id"),
                    "from": item.get("from"),
                    "type": item.get("type"),
                    "text": (item.get("text") or {}).get("body"),
                    "timestamp": item.get("timestamp"),
                })
    return {"statuses": statuses, "messages": messages}


class WhatsAppService:
    def __init__(self, db: Session, transport: Optional[httpx.BaseTransport] = None):
        self.db = db
        self.transport = transport

    def get_config(self, tenant_id: UUID) -> Optional[Dict[str, Any]]:
        """None si la integración está deshabilitada o incompleta."""
        config = SettingService(self.db).get_value(tenant_id, WHATSAPP_KEY)
        if not config.get("enabled") or not config.get("access_token") or not config.get("phone_number_id"):
            return None
        return config

    def _client(self, config: Dict[str, Any]) -> WhatsAppClient:
        return WhatsAppClient(config["access_token"], config["phone_number_id"], transport=self.transport)

    def _send(self, tenant_id: UUID, phone: str, build_payload) -> Dict[str, Any]:
        config = self.get_config(tenant_id)
        if config is None:
            return {"success": False, "error": "WhatsApp is not configured for this tenant"}

        to = format_to_e164(phone)
        if not to:
            return {"success": False, "error": f"Invalid phone number: {phone}"}

        if not rate_limiter.try_acquire(tenant_id):
            logger.warning(f"WhatsApp daily limit reached for tenant {tenant_id}")
            return {"success": False, "error": "Daily message limit reached"}

        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to.lstrip("+"),
            **build_payload(),
        }
        with self._client(config) as client:
            result = client.send_message(payload)

        if result.get("success"):
            logger.info(f"WhatsApp message {result.get('message_id')} sent for tenant {tenant_id}")
        else:
            rate_limiter.release(tenant_id)
            logger.warning(f"WhatsApp send failed for tenant {tenant_id}: {result.get('error')}")
        return result

    def send_template(
        self,
        tenant_id: UUID,
        phone: str,
        template_name: str,
        parameters: List[Any],
        language: Optional[str] = None
    ) -> Dict[str, Any]:
        try:
            validate_parameters(template_name, parameters)
        except ValueError as e:
            return {"success": False, "error": str(e)}

        def build():
            return {
                "type": "template",
                "template": {
                    "name": template_name,
                    "language": {"code": language or TEMPLATES[template_name]["language"]},
                    "components": build_template_component(parameters),
                },
            }
        return self._send(tenant_id, phone, build)

    def send_text(self, tenant_id: UUID, phone: str, body: str) -> Dict[str, Any]:
        def build():
            return {"type": "text", "text": {"preview_url": False, "body": body}}
        return self._send(tenant_id, phone, build)

    def test_connection(self, tenant_id: UUID) -> Dict[str, Any]:
        config = self.get_config(tenant_id)
        if config is None:
            return {"success": False, "error": "WhatsApp is not configured for this tenant"}
        with self._client(config) as client:
            return client.get_phone_number()

    def webhook_token_matches(self, token: Optional[str]) -> bool:
        """Token global o el `webhook_verify_token` de algún tenant."""
        if not token:
            return False
        if settings.WHATSAPP_WEBHOOK_VERIFY_TOKEN and hmac.compare_digest(token, settings.WHATSAPP_WEBHOOK_VERIFY_TOKEN):
            return True
        from app.modules.settings.models import Setting
        rows = self.db.query(Setting.value).filter(Setting.key == WHATSAPP_KEY).all()
        return any(
            isinstance(row[0], dict) and row[0].get("webhook_verify_token") == token
            for row in rows
        )
