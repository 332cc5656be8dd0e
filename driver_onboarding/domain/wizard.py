"""
Verification Wizard Service
===========================

Drives a driver through the four verification steps and keeps the
persisted progress record in sync with every mutation.

Flow
----
1. ``enter``   -- resume saved progress or start fresh, pre-filled from
   the driver's profile.
2. ``update_fields`` / ``attach_document`` / ``remove_document`` -- edit
   the form; the full snapshot is saved after every edit.
3. ``advance`` / ``retreat`` -- move through the steps.  A failed
   validation posts an error notification and raises ``ValidationError``.
4. ``submit`` -- from the review step only.  Waits out the simulated
   review delay, then writes the status record and drops the progress
   record in one ``finalize`` call.

Mutating calls run under a per-driver lock so that two browser tabs
cannot interleave their read-modify-write cycles.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, Mapping, Optional

from .entities import DocumentHandle, VerificationStatus, WizardProgress
from .enums import DocumentSlot, NotificationKind
from .errors import (
    AlreadyVerifiedError,
    DriverNotFound,
    InvalidStepTransition,
    PersistenceCorruption,
    ValidationError,
)
from .ports import DriverRoster, Notifier, VerificationStore

logger = logging.getLogger(__name__)

LockFactory = Callable[[int], AsyncContextManager]


def _no_lock(driver_id: int) -> AsyncContextManager:
    return contextlib.nullcontext()


class VerificationWizard:
    def __init__(
        self,
        store: VerificationStore,
        roster: DriverRoster,
        notifier: Notifier,
        *,
        submission_delay: float = 2.0,
        lock_factory: Optional[LockFactory] = None,
    ):
        self.store = store
        self.roster = roster
        self.notifier = notifier
        self.submission_delay = submission_delay
        self.lock_factory = lock_factory or _no_lock

    # ── Reads ─────────────────────────────────────────────────────

    async def _load(self, driver_id: int) -> Optional[WizardProgress]:
        try:
            return await self.store.load_progress(driver_id)
        except PersistenceCorruption as exc:
            logger.warning(
                "Discarding unreadable progress for driver %s: %s", driver_id, exc
            )
            return None

    async def _fresh(self, driver_id: int) -> WizardProgress:
        profile = await self.roster.get_profile(driver_id)
        if profile is None:
            raise DriverNotFound(driver_id)
        return WizardProgress.fresh(
            driver_id,
            full_name=profile.get("name", ""),
            phone_number=profile.get("phone", ""),
        )

    async def enter(self, driver_id: int) -> WizardProgress:
        """Return the driver's progress, creating and saving it if absent.

        A new record is inserted with ``create_progress`` so that a second
        tab entering at the same moment resumes the first tab's record
        instead of failing.  An unreadable record is overwritten.
        """
        try:
            progress = await self.store.load_progress(driver_id)
        except PersistenceCorruption as exc:
            logger.warning(
                "Discarding unreadable progress for driver %s: %s", driver_id, exc
            )
            progress = await self._fresh(driver_id)
            await self.store.save_progress(progress)
            return progress
        if progress is not None:
            return progress

        progress = await self.store.create_progress(await self._fresh(driver_id))
        logger.info("Driver %s started verification", driver_id)
        return progress

    async def _status(self, driver_id: int) -> Optional[VerificationStatus]:
        try:
            return await self.store.get_status(driver_id)
        except PersistenceCorruption as exc:
            logger.warning(
                "Unreadable status for driver %s: %s", driver_id, exc
            )
            return None

    async def status(self, driver_id: int) -> VerificationStatus:
        status = await self._status(driver_id)
        return status or VerificationStatus.unverified(driver_id)

    # ── Form edits ────────────────────────────────────────────────

    async def update_fields(
        self, driver_id: int, values: Mapping[str, str]
    ) -> WizardProgress:
        async with self.lock_factory(driver_id):
            progress = await self.enter(driver_id)
            for name, value in values.items():
                progress.form_data.set_text(name, value)
            await self.store.save_progress(progress)
            return progress

    async def attach_document(
        self, driver_id: int, slot: DocumentSlot, handle: DocumentHandle
    ) -> WizardProgress:
        async with self.lock_factory(driver_id):
            progress = await self.enter(driver_id)
            progress.form_data.set_document(slot, handle)
            await self.store.save_progress(progress)
            return progress

    async def remove_document(
        self, driver_id: int, slot: DocumentSlot
    ) -> WizardProgress:
        async with self.lock_factory(driver_id):
            progress = await self.enter(driver_id)
            progress.form_data.set_document(slot, None)
            await self.store.save_progress(progress)
            return progress

    # ── Step transitions ──────────────────────────────────────────

    async def advance(self, driver_id: int) -> WizardProgress:
        async with self.lock_factory(driver_id):
            progress = await self.enter(driver_id)
            try:
                progress.advance()
            except ValidationError:
                await self._notify_incomplete(driver_id)
                raise
            await self.store.save_progress(progress)
            logger.info(
                "Driver %s advanced to step %d", driver_id, progress.current_step
            )
            return progress

    async def retreat(self, driver_id: int) -> WizardProgress:
        async with self.lock_factory(driver_id):
            progress = await self.enter(driver_id)
            progress.retreat()
            await self.store.save_progress(progress)
            return progress

    async def submit(self, driver_id: int) -> VerificationStatus:
        async with self.lock_factory(driver_id):
            existing = await self._status(driver_id)
            if existing is not None and existing.is_verified:
                raise AlreadyVerifiedError(driver_id)

            progress = await self._load(driver_id)
            if progress is None:
                raise InvalidStepTransition(
                    f"Driver {driver_id} has no verification in progress"
                )
            try:
                progress.ensure_submittable()
            except ValidationError:
                await self._notify_incomplete(driver_id)
                raise

            submitted_at = datetime.now(timezone.utc)
            # Simulated document review; once started it always completes.
            await asyncio.sleep(self.submission_delay)

            status = VerificationStatus.approved(
                driver_id,
                submitted_at=submitted_at,
                completed_at=datetime.now(timezone.utc),
            )
            await self.store.finalize(status)

        logger.info("Driver %s completed verification", driver_id)
        await self.notifier.post(
            driver_id,
            NotificationKind.SUCCESS,
            "Verification Submitted",
            "Verification completed! You can now go online and start earning.",
        )
        return status

    async def _notify_incomplete(self, driver_id: int) -> None:
        await self.notifier.post(
            driver_id,
            NotificationKind.ERROR,
            "Incomplete Information",
            "Please fill in all required fields before proceeding",
        )
