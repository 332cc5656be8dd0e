"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``WizardProgress``: enforces the linear step order
  (PERSONAL_INFO -> VEHICLE_INFO -> DOCUMENTS -> REVIEW) and only marks a
  step completed once its required fields validate.
- Form data is split into one dataclass per step section so that step
  validation covers every required field of that section and nothing else.
- ``VerificationStatus`` is an immutable record: written once on submit,
  never revised.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Optional, Union

from .enums import (
    STEP_TRANSITIONS,
    DocumentSlot,
    NotificationKind,
    StepState,
    WizardStep,
)
from .errors import InvalidStepTransition, UnknownFieldError, ValidationError
from .steps import VERIFICATION_STEPS, VerificationStep, step_definition


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class DocumentHandle:
    """Reference to an uploaded file; the bytes live in external storage."""

    file_name: str
    content_type: str = "application/octet-stream"
    size_bytes: int = 0
    storage_ref: Optional[str] = None
    uploaded_at: Optional[datetime] = None


@dataclass(frozen=True)
class Notification:
    id: str
    kind: NotificationKind
    title: str
    message: str
    timestamp: datetime


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


# ── Form sections ─────────────────────────────────────────────────────


@dataclass
class PersonalInfoFields:
    full_name: str = ""
    phone_number: str = ""
    address: str = ""
    date_of_birth: str = ""


@dataclass
class VehicleInfoFields:
    make: str = ""
    model: str = ""
    year: str = ""
    color: str = ""
    license_plate: str = ""


@dataclass
class DocumentFields:
    drivers_license: Optional[DocumentHandle] = None
    vehicle_registration: Optional[DocumentHandle] = None
    insurance: Optional[DocumentHandle] = None
    profile_photo: Optional[DocumentHandle] = None


FormSection = Union[PersonalInfoFields, VehicleInfoFields, DocumentFields]


@dataclass
class FormData:
    personal: PersonalInfoFields = field(default_factory=PersonalInfoFields)
    vehicle: VehicleInfoFields = field(default_factory=VehicleInfoFields)
    documents: DocumentFields = field(default_factory=DocumentFields)

    def section_for(self, step: VerificationStep) -> Optional[FormSection]:
        if step.section is None:
            return None
        return getattr(self, step.section)

    def set_text(self, name: str, value: str) -> None:
        """Set a text field by name, wherever it lives."""
        for section in (self.personal, self.vehicle):
            if name in {f.name for f in fields(section)}:
                setattr(section, name, value)
                return
        raise UnknownFieldError(name)

    def set_document(
        self, slot: DocumentSlot, handle: Optional[DocumentHandle]
    ) -> None:
        setattr(self.documents, DocumentSlot(slot).value, handle)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class WizardProgress:
    driver_id: int
    current_step: WizardStep = WizardStep.PERSONAL_INFO
    form_data: FormData = field(default_factory=FormData)
    completed_steps: set[int] = field(default_factory=set)
    updated_at: Optional[datetime] = None

    @classmethod
    def fresh(
        cls, driver_id: int, full_name: str = "", phone_number: str = ""
    ) -> "WizardProgress":
        """Default progress, pre-filled from the driver's profile."""
        form = FormData(
            personal=PersonalInfoFields(
                full_name=full_name or "", phone_number=phone_number or ""
            )
        )
        return cls(driver_id=driver_id, form_data=form)

    # ── Validation ────────────────────────────────────────────────

    def missing_fields(self, step: int) -> tuple[str, ...]:
        definition = step_definition(step)
        section = self.form_data.section_for(definition)
        if section is None:
            return ()
        return tuple(
            name
            for name in definition.required_fields
            if not _is_filled(getattr(section, name))
        )

    def validate_step(self, step: int) -> bool:
        return not self.missing_fields(step)

    # ── Transitions ───────────────────────────────────────────────

    def _move_to(self, target: WizardStep) -> None:
        if target not in STEP_TRANSITIONS[self.current_step]:
            raise InvalidStepTransition(
                f"Cannot move from step {int(self.current_step)} to {int(target)}"
            )
        self.current_step = target

    def advance(self) -> WizardStep:
        """Mark the current step completed and move forward.

        Raises ``ValidationError`` and leaves the progress untouched when a
        required field of the current step is missing.  At the review step
        the step is marked completed but the position does not change.
        """
        missing = self.missing_fields(self.current_step)
        if missing:
            raise ValidationError(self.current_step, missing)

        self.completed_steps.add(int(self.current_step))
        if self.current_step < WizardStep.last():
            self._move_to(WizardStep(self.current_step + 1))
        return self.current_step

    def retreat(self) -> WizardStep:
        """Step back once; a no-op on the first step."""
        if self.current_step > WizardStep.first():
            self._move_to(WizardStep(self.current_step - 1))
        return self.current_step

    def ensure_submittable(self) -> None:
        """Submission is only legal from the review step with every
        earlier step still valid (fields may have been cleared since)."""
        if self.current_step != WizardStep.REVIEW:
            raise InvalidStepTransition(
                f"Submit is only allowed from the review step "
                f"(current step is {int(self.current_step)})"
            )
        for step in WizardStep:
            missing = self.missing_fields(step)
            if missing:
                raise ValidationError(step, missing)

    # ── Presentation helpers ──────────────────────────────────────

    def step_states(self) -> list[tuple[VerificationStep, StepState]]:
        states = []
        for definition in VERIFICATION_STEPS:
            if int(definition.order) in self.completed_steps:
                state = StepState.COMPLETED
            elif definition.order == self.current_step:
                state = StepState.CURRENT
            else:
                state = StepState.PENDING
            states.append((definition, state))
        return states


@dataclass(frozen=True)
class VerificationStatus:
    driver_id: int
    is_verified: bool = False
    completed_steps: frozenset[int] = frozenset()
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def unverified(cls, driver_id: int) -> "VerificationStatus":
        """What a missing status record means."""
        return cls(driver_id=driver_id)

    @classmethod
    def approved(
        cls,
        driver_id: int,
        submitted_at: datetime,
        completed_at: Optional[datetime] = None,
    ) -> "VerificationStatus":
        return cls(
            driver_id=driver_id,
            is_verified=True,
            completed_steps=frozenset(int(s) for s in WizardStep),
            submitted_at=submitted_at,
            completed_at=completed_at or submitted_at,
        )
