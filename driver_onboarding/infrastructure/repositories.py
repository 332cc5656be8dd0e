"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and implements
one of the domain ports.  Mutating verification calls commit on their own:
the wizard persists after every edit, and ``finalize`` must land as a
single transaction.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DriverModel, VerificationStatusModel, WizardProgressModel
from .serialization import (
    PROGRESS_SCHEMA_VERSION,
    STATUS_SCHEMA_VERSION,
    decode_progress,
    decode_status,
    encode_progress,
)
from driver_onboarding.config import settings
from driver_onboarding.domain.entities import (
    Location,
    VerificationStatus,
    WizardProgress,
)
from driver_onboarding.domain.geo import driver_h3_cell
from driver_onboarding.domain.ports import DriverRoster, VerificationStore


class VerificationRepository(VerificationStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_progress(self, driver_id: int) -> Optional[WizardProgress]:
        row = await self.session.get(WizardProgressModel, driver_id)
        if row is None:
            return None
        progress = decode_progress(driver_id, row.payload)
        progress.updated_at = row.updated_at
        return progress

    async def save_progress(self, progress: WizardProgress) -> None:
        row = await self.session.get(WizardProgressModel, progress.driver_id)
        payload = encode_progress(progress)
        if row is None:
            row = WizardProgressModel(driver_id=progress.driver_id)
            self.session.add(row)
        row.schema_version = PROGRESS_SCHEMA_VERSION
        row.payload = payload
        await self.session.commit()

    async def create_progress(self, progress: WizardProgress) -> WizardProgress:
        row = WizardProgressModel(
            driver_id=progress.driver_id,
            schema_version=PROGRESS_SCHEMA_VERSION,
            payload=encode_progress(progress),
        )
        self.session.add(row)
        try:
            await self.session.commit()
        except IntegrityError:
            # Another session inserted first; its record wins.
            await self.session.rollback()
            existing = await self.load_progress(progress.driver_id)
            if existing is None:
                raise
            return existing
        progress.updated_at = row.updated_at
        return progress

    async def clear_progress(self, driver_id: int) -> None:
        await self.session.execute(
            delete(WizardProgressModel).where(
                WizardProgressModel.driver_id == driver_id
            )
        )
        await self.session.commit()

    async def get_status(self, driver_id: int) -> Optional[VerificationStatus]:
        row = await self.session.get(VerificationStatusModel, driver_id)
        if row is None:
            return None
        return decode_status(
            driver_id,
            row.schema_version,
            row.is_verified,
            row.completed_steps,
            row.submitted_at,
            row.completed_at,
        )

    async def finalize(self, status: VerificationStatus) -> None:
        """Write the status row and drop the progress row in one commit."""
        try:
            await self.session.execute(
                delete(WizardProgressModel).where(
                    WizardProgressModel.driver_id == status.driver_id
                )
            )
            await self.session.merge(
                VerificationStatusModel(
                    driver_id=status.driver_id,
                    schema_version=STATUS_SCHEMA_VERSION,
                    is_verified=status.is_verified,
                    completed_steps=sorted(status.completed_steps),
                    submitted_at=status.submitted_at,
                    completed_at=status.completed_at,
                )
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


class DriverRepository(DriverRoster):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def get_profile(self, driver_id: int) -> Optional[dict]:
        driver = await self.get_by_id(driver_id)
        if driver is None:
            return None
        return {"name": driver.name, "phone": driver.phone or ""}

    async def set_online_status(self, driver_id: int, is_online: bool) -> None:
        driver = await self.get_by_id(driver_id)
        if driver is not None:
            driver.is_online = is_online
            await self.session.commit()

    async def get_location(self, driver_id: int) -> Optional[Location]:
        driver = await self.get_by_id(driver_id)
        if driver is None or driver.current_lat is None:
            return None
        return Location(driver.current_lat, driver.current_lng)

    async def set_location(self, driver_id: int, location: Location) -> None:
        from geoalchemy2.functions import ST_MakePoint, ST_SetSRID

        driver = await self.get_by_id(driver_id)
        if driver is None:
            return
        driver.current_lat = location.latitude
        driver.current_lng = location.longitude
        driver.current_location = ST_SetSRID(
            ST_MakePoint(location.longitude, location.latitude), 4326
        )
        driver.h3_cell = driver_h3_cell(
            location.latitude, location.longitude, settings.h3_resolution
        )
        await self.session.commit()

    async def get_online_in_cells(self, cells: set[str]) -> list[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).where(
                DriverModel.is_online.is_(True), DriverModel.h3_cell.in_(cells)
            )
        )
        return list(result.scalars().all())
