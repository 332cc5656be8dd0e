"""
Abstract collaborators the wizard and the gate depend on.

The domain never touches a concrete store: the API wires in the
SQLAlchemy / Redis adapters, tests wire in in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import Location, VerificationStatus, WizardProgress
from .enums import NotificationKind


class VerificationStore(ABC):
    """Progress record + status record, both keyed by driver."""

    @abstractmethod
    async def load_progress(self, driver_id: int) -> Optional[WizardProgress]:
        """Return saved progress, ``None`` if absent.

        Raises ``PersistenceCorruption`` when a record exists but cannot be
        decoded.
        """

    @abstractmethod
    async def save_progress(self, progress: WizardProgress) -> None: ...

    @abstractmethod
    async def create_progress(self, progress: WizardProgress) -> WizardProgress:
        """Insert *progress* unless the driver already has a record.

        Returns whichever record is stored afterwards, so two callers
        racing to start the wizard both get the winner's copy.
        """

    @abstractmethod
    async def clear_progress(self, driver_id: int) -> None: ...

    @abstractmethod
    async def get_status(self, driver_id: int) -> Optional[VerificationStatus]: ...

    @abstractmethod
    async def finalize(self, status: VerificationStatus) -> None:
        """Write *status* and delete the driver's progress as one unit."""


class DriverRoster(ABC):
    @abstractmethod
    async def get_profile(self, driver_id: int) -> Optional[dict]:
        """Return ``{"name": ..., "phone": ...}`` or ``None``."""

    @abstractmethod
    async def set_online_status(self, driver_id: int, is_online: bool) -> None: ...

    @abstractmethod
    async def set_location(self, driver_id: int, location: Location) -> None: ...

    @abstractmethod
    async def get_location(self, driver_id: int) -> Optional[Location]: ...


class Notifier(ABC):
    @abstractmethod
    async def post(
        self,
        driver_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
    ) -> str:
        """Publish a notification and return its id."""


class LocationTracker(ABC):
    """Pushes location updates for a driver while they are online."""

    @abstractmethod
    async def start(self, driver_id: int) -> None: ...

    @abstractmethod
    async def stop(self, driver_id: int) -> None: ...
