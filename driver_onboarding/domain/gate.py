"""
Driver Availability Gate
========================

A driver may only go online once a verified status record exists.  The
gate reads the status record and nothing else: in-progress wizard state
never unlocks availability.

Rejections carry a redirect to the wizard entry point; the wizard itself
resumes from saved progress when the driver gets there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .enums import NotificationKind, RejectionReason
from .errors import PersistenceCorruption
from .ports import DriverRoster, LocationTracker, Notifier, VerificationStore

logger = logging.getLogger(__name__)

VERIFICATION_ENTRY = "/driver/verification"


@dataclass(frozen=True)
class GateDecision:
    accepted: bool
    reason: Optional[RejectionReason] = None
    redirect_to: Optional[str] = None

    @classmethod
    def accept(cls) -> "GateDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectionReason) -> "GateDecision":
        return cls(accepted=False, reason=reason, redirect_to=VERIFICATION_ENTRY)


class AvailabilityGate:
    def __init__(
        self,
        store: VerificationStore,
        roster: DriverRoster,
        notifier: Notifier,
        tracker: Optional[LocationTracker] = None,
    ):
        self.store = store
        self.roster = roster
        self.notifier = notifier
        self.tracker = tracker

    async def is_verified(self, driver_id: int) -> bool:
        try:
            status = await self.store.get_status(driver_id)
        except PersistenceCorruption as exc:
            logger.warning("Unreadable status for driver %s: %s", driver_id, exc)
            return False
        return status is not None and status.is_verified

    async def attempt_go_online(self, driver_id: int) -> GateDecision:
        if not await self.is_verified(driver_id):
            logger.info("Driver %s rejected at gate: not verified", driver_id)
            await self.notifier.post(
                driver_id,
                NotificationKind.WARNING,
                "Verification Required",
                "Complete your verification to go online",
            )
            return GateDecision.reject(RejectionReason.NOT_VERIFIED)

        await self.roster.set_online_status(driver_id, True)
        if self.tracker is not None:
            await self.tracker.start(driver_id)
        await self.notifier.post(
            driver_id,
            NotificationKind.SUCCESS,
            "Now Online",
            "You can now receive trip requests",
        )
        logger.info("Driver %s is online", driver_id)
        return GateDecision.accept()

    async def go_offline(self, driver_id: int) -> None:
        """Going offline is never gated."""
        if self.tracker is not None:
            await self.tracker.stop(driver_id)
        await self.roster.set_online_status(driver_id, False)
        await self.notifier.post(
            driver_id,
            NotificationKind.SUCCESS,
            "Gone Offline",
            "You will not receive trip requests",
        )
        logger.info("Driver %s is offline", driver_id)
