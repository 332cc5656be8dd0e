"""
Redis-backed notification channel.

Notifications for a driver live in one hash (``notifications:{driver_id}``),
field = notification id, value = JSON.  They auto-dismiss after
``ttl_seconds``: expired entries are dropped whenever the list is read,
and the whole hash expires once its newest entry is stale.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis.asyncio as aioredis

from driver_onboarding.domain.entities import Notification
from driver_onboarding.domain.enums import NotificationKind
from driver_onboarding.domain.ports import Notifier

logger = logging.getLogger(__name__)


def _key(driver_id: int) -> str:
    return f"notifications:{driver_id}"


class RedisNotifier(Notifier):
    def __init__(self, client: aioredis.Redis, ttl_seconds: int = 5):
        self.redis = client
        self.ttl = ttl_seconds

    async def post(
        self,
        driver_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
    ) -> str:
        notification_id = uuid.uuid4().hex
        record = {
            "id": notification_id,
            "kind": NotificationKind(kind).value,
            "title": title,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        key = _key(driver_id)
        await self.redis.hset(key, notification_id, json.dumps(record))
        await self.redis.expire(key, self.ttl)
        logger.debug("Notification %s for driver %s: %s", kind, driver_id, title)
        return notification_id

    async def active(
        self, driver_id: int, now: Optional[datetime] = None
    ) -> list[Notification]:
        """Live notifications, oldest first."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=self.ttl)
        raw = await self.redis.hgetall(_key(driver_id))

        live: list[Notification] = []
        expired: list[str] = []
        for notification_id, value in raw.items():
            try:
                data = json.loads(value)
                notification = Notification(
                    id=data["id"],
                    kind=NotificationKind(data["kind"]),
                    title=data["title"],
                    message=data["message"],
                    timestamp=datetime.fromisoformat(data["timestamp"]),
                )
            except (ValueError, KeyError, TypeError):
                logger.warning("Dropping malformed notification %s", notification_id)
                expired.append(notification_id)
                continue
            if notification.timestamp < cutoff:
                expired.append(notification_id)
            else:
                live.append(notification)

        if expired:
            await self.redis.hdel(_key(driver_id), *expired)
        return sorted(live, key=lambda n: n.timestamp)

    async def dismiss(self, driver_id: int, notification_id: str) -> bool:
        return bool(await self.redis.hdel(_key(driver_id), notification_id))
