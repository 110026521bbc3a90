"""Shopify lifecycle and privacy webhooks.

Shopify retries any delivery that does not get a 2xx, so processing
failures are logged and still acknowledged with 200.
"""
import base64
import hashlib
import hmac
import json
import logging
from typing import Callable, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services.session_service import session_service

LOG = logging.getLogger(__name__)

router = APIRouter()

TOPIC_APP_UNINSTALLED = "app/uninstalled"
TOPIC_SCOPES_UPDATE = "app/scopes_update"
TOPIC_CUSTOMERS_DATA_REQUEST = "customers/data_request"
TOPIC_CUSTOMERS_REDACT = "customers/redact"
TOPIC_SHOP_REDACT = "shop/redact"


def verify_webhook_hmac(body: bytes, signature: Optional[str], secret: str) -> bool:
    """Check ``X-Shopify-Hmac-Sha256`` (base64 HMAC-SHA256 of the raw body)."""
    if not signature:
        return False
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    computed = base64.b64encode(digest).decode()
    return hmac.compare_digest(computed, signature)


class Webhook:
    def __init__(self, topic: str, shop: str, payload: dict):
        self.topic = topic
        self.shop = shop
        self.payload = payload


async def read_webhook(request: Request) -> Webhook:
    """Authenticate the delivery and parse its headers and body."""
    body = await request.body()

    if settings.shopify_api_secret:
        signature = request.headers.get("X-Shopify-Hmac-Sha256")
        if not verify_webhook_hmac(body, signature, settings.shopify_api_secret):
            LOG.warning("Invalid Shopify webhook signature")
            raise HTTPException(status_code=401, detail="Invalid signature")
    else:
        LOG.warning("SHOPIFY_API_SECRET not set; webhook signature not verified")

    try:
        payload = json.loads(body.decode("utf-8")) if body else {}
    except (UnicodeDecodeError, ValueError):
        payload = {}

    return Webhook(
        topic=request.headers.get("X-Shopify-Topic", ""),
        shop=request.headers.get("X-Shopify-Shop-Domain", ""),
        payload=payload if isinstance(payload, dict) else {},
    )


def handle_app_uninstalled(db: Session, webhook: Webhook):
    session_service.delete_sessions_for_shop(db, webhook.shop)


def handle_scopes_update(db: Session, webhook: Webhook):
    current = webhook.payload.get("current") or []
    scope = current if isinstance(current, str) else ",".join(current)
    session_service.update_scope(db, webhook.shop, scope)


def handle_privacy_request(db: Session, webhook: Webhook):
    # No customer data is stored; acknowledge only.
    LOG.info("Privacy webhook %s for %s: %s", webhook.topic, webhook.shop, webhook.payload)


HANDLERS: Dict[str, Callable[[Session, Webhook], None]] = {
    TOPIC_APP_UNINSTALLED: handle_app_uninstalled,
    TOPIC_SCOPES_UPDATE: handle_scopes_update,
    TOPIC_CUSTOMERS_DATA_REQUEST: handle_privacy_request,
    TOPIC_CUSTOMERS_REDACT: handle_privacy_request,
    TOPIC_SHOP_REDACT: handle_privacy_request,
}


def process_webhook(db: Session, webhook: Webhook, topic: Optional[str] = None) -> Response:
    """Run the handler for the topic. Always answers 200."""
    topic = topic or webhook.topic
    LOG.info("Received %s webhook for %s", topic, webhook.shop)

    handler = HANDLERS.get(topic)
    if handler is None:
        return Response(status_code=200)

    try:
        handler(db, webhook)
    except Exception:
        LOG.exception("%s webhook failed for %s", topic, webhook.shop)
        db.rollback()

    return Response(status_code=200)


@router.post("")
async def webhooks(webhook: Webhook = Depends(read_webhook), db: Session = Depends(get_db)):
    """Single endpoint dispatching on the X-Shopify-Topic header."""
    return process_webhook(db, webhook)


@router.post("/app/uninstalled")
async def app_uninstalled(webhook: Webhook = Depends(read_webhook), db: Session = Depends(get_db)):
    return process_webhook(db, webhook, TOPIC_APP_UNINSTALLED)


@router.post("/app/scopes_update")
async def app_scopes_update(webhook: Webhook = Depends(read_webhook), db: Session = Depends(get_db)):
    return process_webhook(db, webhook, TOPIC_SCOPES_UPDATE)


@router.post("/customers/data_request")
async def customers_data_request(webhook: Webhook = Depends(read_webhook), db: Session = Depends(get_db)):
    return process_webhook(db, webhook, TOPIC_CUSTOMERS_DATA_REQUEST)


@router.post("/customers/redact")
async def customers_redact(webhook: Webhook = Depends(read_webhook), db: Session = Depends(get_db)):
    return process_webhook(db, webhook, TOPIC_CUSTOMERS_REDACT)


@router.post("/shop/redact")
async def shop_redact(webhook: Webhook = Depends(read_webhook), db: Session = Depends(get_db)):
    return process_webhook(db, webhook, TOPIC_SHOP_REDACT)
