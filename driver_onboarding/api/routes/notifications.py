"""
Notification endpoints
======================

GET    /api/v1/drivers/{driver_id}/notifications        -- live (not yet expired) notifications
DELETE /api/v1/drivers/{driver_id}/notifications/{id}   -- dismiss one
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from driver_onboarding.api.dependencies import get_notifier
from driver_onboarding.api.middleware import RATE_LIMIT, limiter
from driver_onboarding.api.schemas import NotificationResponse
from driver_onboarding.infrastructure.notifications import RedisNotifier

router = APIRouter(prefix="/drivers/{driver_id}/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse], summary="List notifications")
@limiter.limit(RATE_LIMIT)
async def list_notifications(
    request: Request,
    driver_id: int,
    notifier: RedisNotifier = Depends(get_notifier),
):
    return [
        NotificationResponse.from_notification(n)
        for n in await notifier.active(driver_id)
    ]


@router.delete("/{notification_id}", status_code=204, summary="Dismiss a notification")
@limiter.limit(RATE_LIMIT)
async def dismiss_notification(
    request: Request,
    driver_id: int,
    notification_id: str,
    notifier: RedisNotifier = Depends(get_notifier),
):
    if not await notifier.dismiss(driver_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
