import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ADMIN_ROLES
from app.modules.whatsapp.service import WhatsAppService, verify_webhook_signature, parse_webhook

logger = logging.getLogger(__name__)

whatsapp_router = APIRouter(prefix="/whatsapp", tags=["WhatsApp"])


@whatsapp_router.get("/webhook", response_class=PlainTextResponse)
def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    db: Session = Depends(get_db)
):
    """Handshake de verificación de Meta."""
    if mode == "subscribe" and WhatsAppService(db).webhook_token_matches(verify_token):
        logger.info("WhatsApp webhook verified")
        return challenge or ""
    logger.warning("WhatsApp webhook verification failed")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


@whatsapp_router.post("/webhook")
async def receive_webhook(request: Request):
    raw_body = await request.body()
    if not verify_webhook_signature(raw_body, request.headers.get("X-Hub-Signature-256")):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid webhook signature")

    try:
        payload = json.loads(raw_body or b"{}")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    events = parse_webhook(payload)
    for item in events["statuses"]:
        logger.info(f"WhatsApp status {item['status']} for message {item['message_id']}")
    for item in events["messages"]:
        logger.info(f"WhatsApp inbound {item['type']} message {item['message_id']}")

    return {"success": True, "statuses": len(events["statuses"]), "messages": len(events["messages"])}


@whatsapp_router.post("/test-connection")
def test_connection(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ADMIN_ROLES))
):
    return WhatsAppService(db).test_connection(auth_context.tenant_id)
