"""Recent webhook events and dedup keys, kept in Redis with auto-expiration."""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from redis.asyncio import Redis

from app.config import settings


class WebhookEventStore:
    """Per-company log of recent webhook events, plus redelivery detection.

    Events that could not be routed to a company are kept under their own
    key so they can still be inspected.
    """

    EVENTS_KEY_PREFIX = "webhook_events:"
    UNROUTED = "unrouted"
    DEDUP_KEY_PREFIX = "webhook_seen:"
    MAX_EVENTS = 500  # per company
    EVENT_TTL = 86400  # 24 hours

    def __init__(self, redis: Redis):
        self.redis = redis

    def _events_key(self, company_id: int | None) -> str:
        owner = self.UNROUTED if company_id is None else company_id
        return f"{self.EVENTS_KEY_PREFIX}{owner}"

    async def store_event(
        self,
        company_id: int | None,
        event_type: str,
        payload: dict[str, Any],
        status: str = "received",
        error: str | None = None,
    ) -> str:
        """Prepend an event to the company's log and return its id."""
        event_id = str(uuid4())
        event = {
            "id": event_id,
            "company_id": company_id,
            "event_type": event_type,
            "payload": payload,
            "status": status,
            "error": error,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        key = self._events_key(company_id)
        await self.redis.lpush(key, json.dumps(event))
        await self.redis.ltrim(key, 0, self.MAX_EVENTS - 1)
        await self.redis.expire(key, self.EVENT_TTL)
        return event_id

    async def update_status(
        self,
        company_id: int | None,
        event_id: str,
        status: str,
        error: str | None = None,
    ) -> None:
        """Set the outcome of a stored event (processed, failed, ignored)."""
        key = self._events_key(company_id)
        # New events are pushed to the head, so the one being processed is near it
        raw_events = await self.redis.lrange(key, 0, -1)
        for index, raw_event in enumerate(raw_events):
            event = json.loads(raw_event)
            if event["id"] != event_id:
                continue
            event["status"] = status
            event["error"] = error
            await self.redis.lset(key, index, json.dumps(event))
            return

    async def mark_seen(self, provider_event_id: str) -> bool:
        """Record a provider event id; False if it was already recorded.

        Meta redelivers webhooks until they are acknowledged, so the same
        message or status id can arrive more than once.
        """
        created = await self.redis.set(
            f"{self.DEDUP_KEY_PREFIX}{provider_event_id}",
            "1",
            nx=True,
            ex=settings.WEBHOOK_DEDUP_TTL,
        )
        return bool(created)

    async def forget(self, provider_event_id: str) -> None:
        """Drop a dedup key so a redelivery of a failed event is processed again."""
        await self.redis.delete(f"{self.DEDUP_KEY_PREFIX}{provider_event_id}")

    async def get_events(
        self,
        company_id: int,
        limit: int = 50,
        offset: int = 0,
        event_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """Get a company's recent events, newest first."""
        key = self._events_key(company_id)
        if not event_type:
            raw_events = await self.redis.lrange(key, offset, offset + limit - 1)
            return [json.loads(raw) for raw in raw_events]

        events = [json.loads(raw) for raw in await self.redis.lrange(key, 0, -1)]
        events = [event for event in events if event["event_type"] == event_type]
        return events[offset : offset + limit]
