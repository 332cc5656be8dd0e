"""
Background Location Simulator
=============================

While a driver is online, one asyncio task per driver nudges their
position every ``LOCATION_UPDATE_INTERVAL_SECONDS`` (default 10 s) and
writes it through the driver roster.  The task is cancelled when the
driver goes offline and, for every driver, when the app shuts down.

Each tick opens its own DB session; a failing tick is logged and the
loop carries on with the next one.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from driver_onboarding.config import settings
from driver_onboarding.domain.entities import Location
from driver_onboarding.domain.geo import jitter
from driver_onboarding.domain.ports import LocationTracker
from driver_onboarding.infrastructure.repositories import DriverRepository

logger = logging.getLogger(__name__)

# Victoria Island, Lagos: starting point for drivers with no known position
DEFAULT_LOCATION = Location(6.5244, 3.3792)


class LocationSimulator(LocationTracker):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval_seconds: float = 10,
        jitter_degrees: float = 0.01,
        rng: Optional[random.Random] = None,
    ):
        self.session_factory = session_factory
        self.interval = interval_seconds
        self.jitter_degrees = jitter_degrees
        self.rng = rng or random.Random()
        self._tasks: dict[int, asyncio.Task] = {}

    # ── Public API ────────────────────────────────────────────────

    def is_running(self, driver_id: int) -> bool:
        task = self._tasks.get(driver_id)
        return task is not None and not task.done()

    async def start(self, driver_id: int) -> None:
        if self.is_running(driver_id):
            return
        self._tasks[driver_id] = asyncio.create_task(self._loop(driver_id))
        logger.info(
            "Location updates started for driver %s (interval=%ss)",
            driver_id,
            self.interval,
        )

    async def stop(self, driver_id: int) -> None:
        task = self._tasks.pop(driver_id, None)
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Location updates stopped for driver %s", driver_id)

    async def stop_all(self) -> None:
        for driver_id in list(self._tasks):
            await self.stop(driver_id)

    async def tick(self, driver_id: int) -> Location:
        """Push one simulated position update.  Returns the new location."""
        async with self.session_factory() as session:
            roster = DriverRepository(session)
            current = await roster.get_location(driver_id) or DEFAULT_LOCATION
            moved = jitter(current, self.jitter_degrees, self.rng)
            await roster.set_location(driver_id, moved)
        return moved

    # ── Internals ─────────────────────────────────────────────────

    async def _loop(self, driver_id: int) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick(driver_id)
            except Exception:
                logger.exception("Location update failed for driver %s", driver_id)


def build_simulator() -> LocationSimulator:
    from driver_onboarding.infrastructure.database import async_session_factory

    return LocationSimulator(
        async_session_factory,
        interval_seconds=settings.location_update_interval_seconds,
        jitter_degrees=settings.location_jitter_degrees,
    )
