"""Domain enumerations and step-transition rules."""

import enum


class WizardStep(enum.IntEnum):
    PERSONAL_INFO = 0
    VEHICLE_INFO = 1
    DOCUMENTS = 2
    REVIEW = 3

    @classmethod
    def first(cls) -> "WizardStep":
        return cls.PERSONAL_INFO

    @classmethod
    def last(cls) -> "WizardStep":
        return cls.REVIEW


# Linear wizard: each step may only move one position forward or back.
STEP_TRANSITIONS: dict[WizardStep, set[WizardStep]] = {
    WizardStep.PERSONAL_INFO: {WizardStep.VEHICLE_INFO},
    WizardStep.VEHICLE_INFO: {WizardStep.PERSONAL_INFO, WizardStep.DOCUMENTS},
    WizardStep.DOCUMENTS: {WizardStep.VEHICLE_INFO, WizardStep.REVIEW},
    WizardStep.REVIEW: {WizardStep.DOCUMENTS},
}


class StepState(str, enum.Enum):
    PENDING = "pending"
    CURRENT = "current"
    COMPLETED = "completed"


class DocumentSlot(str, enum.Enum):
    DRIVERS_LICENSE = "drivers_license"
    VEHICLE_REGISTRATION = "vehicle_registration"
    INSURANCE = "insurance"
    PROFILE_PHOTO = "profile_photo"


class NotificationKind(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class RejectionReason(str, enum.Enum):
    NOT_VERIFIED = "NOT_VERIFIED"
