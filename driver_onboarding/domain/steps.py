"""
Static definitions of the four verification steps.

Each step names the form section it edits and the fields that must be
filled before the wizard lets the driver move past it.  The review step
collects no new input, so it has no section and no required fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import DocumentSlot, WizardStep


@dataclass(frozen=True)
class VerificationStep:
    id: str
    title: str
    description: str
    order: WizardStep
    section: Optional[str] = None
    required_fields: tuple[str, ...] = ()


VERIFICATION_STEPS: tuple[VerificationStep, ...] = (
    VerificationStep(
        id="personal",
        title="Personal Information",
        description="Provide your personal details and contact information",
        order=WizardStep.PERSONAL_INFO,
        section="personal",
        required_fields=("full_name", "phone_number", "address", "date_of_birth"),
    ),
    VerificationStep(
        id="vehicle",
        title="Vehicle Information",
        description="Enter details about your vehicle",
        order=WizardStep.VEHICLE_INFO,
        section="vehicle",
        required_fields=("make", "model", "year", "color", "license_plate"),
    ),
    VerificationStep(
        id="documents",
        title="Document Upload",
        description="Upload required documents for verification",
        order=WizardStep.DOCUMENTS,
        section="documents",
        required_fields=tuple(slot.value for slot in DocumentSlot),
    ),
    VerificationStep(
        id="review",
        title="Review & Submit",
        description="Review your information and submit for approval",
        order=WizardStep.REVIEW,
    ),
)


def step_definition(step: int) -> VerificationStep:
    return VERIFICATION_STEPS[WizardStep(step)]
