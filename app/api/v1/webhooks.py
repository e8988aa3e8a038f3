"""Webhook endpoints for receiving WhatsApp Cloud API events."""

import json
import logging

from fastapi import APIRouter, Header, Query, Request
from fastapi.responses import PlainTextResponse

from app.api.deps import CurrentAuthContext, DbSession, RedisClient
from app.config import settings
from app.core.exceptions import BadRequestError, ForbiddenError
from app.services.webhook_event_store import WebhookEventStore
from app.services.webhook_ingest import WebhookIngestService, WebhookSignatureError

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.get("/whatsapp", response_class=PlainTextResponse)
async def verify_whatsapp_webhook(
    hub_mode: str | None = Query(None, alias="hub.mode"),
    hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(None, alias="hub.challenge"),
):
    """Answer Meta's subscription handshake by echoing the challenge."""
    if (
        hub_mode == "subscribe"
        and settings.WHATSAPP_WEBHOOK_VERIFY_TOKEN
        and hub_verify_token == settings.WHATSAPP_WEBHOOK_VERIFY_TOKEN
    ):
        logger.info("Webhook verified")
        return hub_challenge or ""

    raise ForbiddenError("Webhook verification failed")


@router.post("/whatsapp")
async def whatsapp_webhook(
    request: Request,
    db: DbSession,
    redis: RedisClient,
    x_hub_signature_256: str | None = Header(None),
):
    """Receive messages and delivery receipts from the WhatsApp Cloud API.

    Events:
    - messages: Incoming message, stored as delivered
    - statuses: sent/delivered/read/failed receipt for an outbound message
    """
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise BadRequestError("Invalid JSON body")
    if not isinstance(payload, dict):
        raise BadRequestError("Invalid webhook payload")

    try:
        summary = await WebhookIngestService(db, redis).ingest(
            payload, raw_body, x_hub_signature_256
        )
    except WebhookSignatureError as e:
        raise ForbiddenError(str(e))

    return {
        "status": "received",
        "processed": summary.processed,
        "duplicates": summary.duplicates,
        "ignored": summary.ignored,
        "failed": summary.failed,
    }


@router.get("/whatsapp/events")
async def list_webhook_events(
    redis: RedisClient,
    auth: CurrentAuthContext,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    event_type: str | None = None,
):
    """List recent webhook events of the caller's company for debugging."""
    store = WebhookEventStore(redis)
    events = await store.get_events(
        auth.company_id,
        limit=limit,
        offset=skip,
        event_type=event_type,
    )
    return {"items": events, "skip": skip, "limit": limit}
