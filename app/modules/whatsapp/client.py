"""
Cliente HTTP para la WhatsApp Business Cloud API.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0


class WhatsAppClient:
    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.phone_number_id = phone_number_id
        self.http = httpx.Client(
            base_url=base_url or settings.whatsapp_base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=REQUEST_TIMEOUT,
            transport=transport
        )

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @staticmethod
    def _error_result(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
            message = body.get("error", {}).get("message") or response.text
        except ValueError:
            message = response.text
        if response.status_code == 429:
            return {
                "success": False,
                "error": "Rate limit exceeded",
                "status_code": 429,
                "retry_after": response.headers.get("retry-after"),
                "retryable": True,
            }
        return {
            "success": False,
            "error": message,
            "status_code": response.status_code,
            "retryable": response.status_code >= 500,
        }

    def send_message(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.http.post(f"/{self.phone_number_id}/messages", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp request failed: {e}")
            return {"success": False, "error": str(e), "retryable": True}

        if response.status_code >= 400:
            return self._error_result(response)

        messages = response.json().get("messages") or [{}]
        return {"success": True, "message_id": messages[0].get("id")}

    def get_phone_number(self) -> Dict[str, Any]:
        try:
            response = self.http.get(
                f"/{self.phone_number_id}",
                params={"fields": "verified_name,display_phone_number,quality_rating"}
            )
        except httpx.HTTPError as e:
            return {"success": False, "error": str(e)}

        if response.status_code >= 400:
            return self._error_result(response)
        return {"success": True, "data": response.json()}
