"""Fire-and-forget event publishing to the notification layer over Redis pub/sub."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

BADGE_EARNED_CHANNEL = "pubsub:badge_earned"
TOAST_READY_CHANNEL = "pubsub:toast_ready"
TOAST_COMMENT_CHANNEL = "pubsub:toast_comment"


async def publish_event(redis: object, channel: str, payload: dict[str, Any]) -> bool:
    """Publish a JSON payload. Returns False when Redis is absent or the publish failed."""
    if redis is None:
        return False
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("Failed to publish %s notification", channel, exc_info=True)
        return False
    return True
