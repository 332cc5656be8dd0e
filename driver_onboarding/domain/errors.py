"""Domain exceptions for the verification wizard and the availability gate."""

from __future__ import annotations

from typing import Iterable


class VerificationError(Exception):
    """Base class for every error the onboarding domain raises."""


class ValidationError(VerificationError):
    """A required field is missing at the current step."""

    def __init__(self, step: int, missing: Iterable[str]):
        self.step = int(step)
        self.missing = tuple(missing)
        super().__init__(
            f"Step {self.step} is incomplete: missing {', '.join(self.missing)}"
        )


class NotVerifiedError(VerificationError):
    """Raised when an unverified driver tries to go online."""

    def __init__(self, driver_id: int):
        self.driver_id = driver_id
        super().__init__(f"Driver {driver_id} has not completed verification")


class InvalidStepTransition(VerificationError):
    """Raised when a wizard move violates the linear step order."""


class AlreadyVerifiedError(VerificationError):
    def __init__(self, driver_id: int):
        self.driver_id = driver_id
        super().__init__(f"Driver {driver_id} is already verified")


class UnknownFieldError(VerificationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown verification field: {name}")


class DriverNotFound(VerificationError):
    def __init__(self, driver_id: int):
        self.driver_id = driver_id
        super().__init__(f"Driver {driver_id} not found")


class PersistenceCorruption(VerificationError):
    """A stored record could not be decoded into a domain object."""
