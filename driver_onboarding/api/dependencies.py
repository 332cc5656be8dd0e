"""FastAPI dependency injection helpers."""

import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from driver_onboarding.config import settings
from driver_onboarding.domain.gate import AvailabilityGate
from driver_onboarding.domain.ports import LocationTracker
from driver_onboarding.domain.wizard import VerificationWizard
from driver_onboarding.infrastructure.database import async_session_factory
from driver_onboarding.infrastructure.locks import verification_lock
from driver_onboarding.infrastructure.notifications import RedisNotifier
from driver_onboarding.infrastructure.redis_client import get_redis
from driver_onboarding.infrastructure.repositories import (
    DriverRepository,
    VerificationRepository,
)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_redis_client() -> aioredis.Redis:
    return await get_redis()


def get_notifier(
    client: aioredis.Redis = Depends(get_redis_client),
) -> RedisNotifier:
    return RedisNotifier(client, ttl_seconds=settings.notification_ttl_seconds)


def get_tracker(request: Request) -> LocationTracker:
    """The app-wide location simulator created in the lifespan hook."""
    return request.app.state.tracker


def get_wizard(
    db: AsyncSession = Depends(get_db),
    client: aioredis.Redis = Depends(get_redis_client),
    notifier: RedisNotifier = Depends(get_notifier),
) -> VerificationWizard:
    return VerificationWizard(
        VerificationRepository(db),
        DriverRepository(db),
        notifier,
        submission_delay=settings.submission_delay_seconds,
        lock_factory=lambda driver_id: verification_lock(
            client, driver_id, settings.verification_lock_ttl_seconds
        ),
    )


def get_gate(
    db: AsyncSession = Depends(get_db),
    notifier: RedisNotifier = Depends(get_notifier),
    tracker: LocationTracker = Depends(get_tracker),
) -> AvailabilityGate:
    return AvailabilityGate(
        VerificationRepository(db), DriverRepository(db), notifier, tracker
    )
