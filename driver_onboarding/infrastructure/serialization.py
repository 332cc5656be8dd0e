"""
Versioned codec for persisted wizard progress.

Every stored payload carries a ``schema_version``.  On load:

* the current version is validated and decoded;
* older versions are migrated forward one step at a time;
* payloads without a version are the camelCase snapshots written by the
  browser client (version 0) and are migrated like any other old version;
* anything newer than this build understands, or anything that fails
  validation, raises ``PersistenceCorruption``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Callable, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from driver_onboarding.domain.entities import (
    DocumentFields,
    DocumentHandle,
    FormData,
    PersonalInfoFields,
    VehicleInfoFields,
    VerificationStatus,
    WizardProgress,
)
from driver_onboarding.domain.enums import DocumentSlot, WizardStep
from driver_onboarding.domain.errors import PersistenceCorruption

PROGRESS_SCHEMA_VERSION = 1
STATUS_SCHEMA_VERSION = 1

StepIndex = Annotated[int, Field(ge=0, le=3)]


# ── Record shapes ─────────────────────────────────────────────────────


class DocumentRecord(BaseModel):
    file_name: str
    content_type: str = "application/octet-stream"
    size_bytes: int = Field(0, ge=0)
    storage_ref: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class PersonalRecord(BaseModel):
    full_name: str = ""
    phone_number: str = ""
    address: str = ""
    date_of_birth: str = ""


class VehicleRecord(BaseModel):
    make: str = ""
    model: str = ""
    year: str = ""
    color: str = ""
    license_plate: str = ""


class DocumentsRecord(BaseModel):
    drivers_license: Optional[DocumentRecord] = None
    vehicle_registration: Optional[DocumentRecord] = None
    insurance: Optional[DocumentRecord] = None
    profile_photo: Optional[DocumentRecord] = None


class FormRecord(BaseModel):
    personal: PersonalRecord = Field(default_factory=PersonalRecord)
    vehicle: VehicleRecord = Field(default_factory=VehicleRecord)
    documents: DocumentsRecord = Field(default_factory=DocumentsRecord)


class ProgressRecord(BaseModel):
    schema_version: int = PROGRESS_SCHEMA_VERSION
    current_step: StepIndex = 0
    completed_steps: list[StepIndex] = Field(default_factory=list)
    form_data: FormRecord = Field(default_factory=FormRecord)


# ── Migrations ────────────────────────────────────────────────────────

_LEGACY_TEXT_FIELDS = {
    "personal": {
        "fullName": "full_name",
        "phoneNumber": "phone_number",
        "address": "address",
        "dateOfBirth": "date_of_birth",
    },
    "vehicle": {
        "vehicleMake": "make",
        "vehicleModel": "model",
        "vehicleYear": "year",
        "vehicleColor": "color",
        "licensePlate": "license_plate",
    },
}

_LEGACY_DOCUMENT_FIELDS = {
    "driversLicense": DocumentSlot.DRIVERS_LICENSE,
    "vehicleRegistration": DocumentSlot.VEHICLE_REGISTRATION,
    "insurance": DocumentSlot.INSURANCE,
    "profilePhoto": DocumentSlot.PROFILE_PHOTO,
}


def _legacy_document(value: Any) -> Optional[dict]:
    # The browser serialised File objects as ``{}``; only metadata that
    # survived (a name at minimum) can be kept.
    if isinstance(value, dict) and value.get("name"):
        return {
            "file_name": value["name"],
            "content_type": value.get("type") or "application/octet-stream",
            "size_bytes": value.get("size") or 0,
        }
    return None


def _migrate_v0(payload: dict) -> dict:
    """camelCase browser snapshot -> version 1."""
    legacy_form = payload.get("formData") or {}
    completed = payload.get("completedSteps") or []
    if not isinstance(legacy_form, dict) or not isinstance(completed, list):
        raise PersistenceCorruption("Malformed legacy progress snapshot")
    form: dict[str, dict] = {}
    for section, mapping in _LEGACY_TEXT_FIELDS.items():
        form[section] = {
            new: str(legacy_form.get(old) or "") for old, new in mapping.items()
        }
    form["documents"] = {
        slot.value: _legacy_document(legacy_form.get(old))
        for old, slot in _LEGACY_DOCUMENT_FIELDS.items()
    }
    # A step whose upload was lost can no longer count as completed, and
    # neither can anything after it.
    if any(doc is None for doc in form["documents"].values()):
        completed = [s for s in completed if s != int(WizardStep.DOCUMENTS)]
    prefix = _completed_prefix(completed)
    current = payload.get("currentStep", 0)
    if isinstance(current, int) and current > len(prefix):
        current = len(prefix)
    return {
        "schema_version": 1,
        "current_step": current,
        "completed_steps": prefix,
        "form_data": form,
    }


def _completed_prefix(completed: list) -> list[int]:
    steps = {s for s in completed if isinstance(s, int)}
    prefix: list[int] = []
    while len(prefix) in steps and len(prefix) <= int(WizardStep.REVIEW):
        prefix.append(len(prefix))
    return prefix


MIGRATIONS: dict[int, Callable[[dict], dict]] = {
    0: _migrate_v0,
}


def _upgrade(payload: dict) -> dict:
    version = payload.get("schema_version", 0)
    if not isinstance(version, int):
        raise PersistenceCorruption(f"Invalid schema_version: {version!r}")
    if version > PROGRESS_SCHEMA_VERSION:
        raise PersistenceCorruption(
            f"Progress schema_version {version} is newer than "
            f"supported version {PROGRESS_SCHEMA_VERSION}"
        )
    while version < PROGRESS_SCHEMA_VERSION:
        migrate = MIGRATIONS.get(version)
        if migrate is None:
            raise PersistenceCorruption(f"No migration from schema_version {version}")
        payload = migrate(payload)
        version = payload["schema_version"]
    return payload


# ── Codec ─────────────────────────────────────────────────────────────


def _document_record(handle: Optional[DocumentHandle]) -> Optional[DocumentRecord]:
    if handle is None:
        return None
    return DocumentRecord(
        file_name=handle.file_name,
        content_type=handle.content_type,
        size_bytes=handle.size_bytes,
        storage_ref=handle.storage_ref,
        uploaded_at=handle.uploaded_at,
    )


def _document_handle(record: Optional[DocumentRecord]) -> Optional[DocumentHandle]:
    if record is None:
        return None
    return DocumentHandle(**record.model_dump())


def encode_progress(progress: WizardProgress) -> dict:
    form = progress.form_data
    record = ProgressRecord(
        current_step=int(progress.current_step),
        completed_steps=sorted(progress.completed_steps),
        form_data=FormRecord(
            personal=PersonalRecord(**vars(form.personal)),
            vehicle=VehicleRecord(**vars(form.vehicle)),
            documents=DocumentsRecord(
                **{
                    slot.value: _document_record(getattr(form.documents, slot.value))
                    for slot in DocumentSlot
                }
            ),
        ),
    )
    return record.model_dump(mode="json")


def _check_reachable(record: ProgressRecord) -> None:
    """Reject step combinations that forward-only navigation cannot produce.

    Steps are completed in order, so the completed set is always ``0..n-1``
    and the current step is at most the first step not yet completed.
    Retreating keeps completions, so a current step below ``n`` is fine.
    """
    completed = sorted(set(record.completed_steps))
    if completed != list(range(len(completed))):
        raise PersistenceCorruption(
            f"Completed steps {completed} skip an earlier step"
        )
    if record.current_step > min(len(completed), int(WizardStep.REVIEW)):
        raise PersistenceCorruption(
            f"Step {record.current_step} is not reachable with "
            f"completed steps {completed}"
        )


def decode_progress(driver_id: int, payload: Any) -> WizardProgress:
    if not isinstance(payload, dict):
        raise PersistenceCorruption(
            f"Progress payload must be an object, got {type(payload).__name__}"
        )
    try:
        record = ProgressRecord.model_validate(_upgrade(dict(payload)))
    except PydanticValidationError as exc:
        raise PersistenceCorruption(str(exc)) from exc
    _check_reachable(record)

    docs = record.form_data.documents
    return WizardProgress(
        driver_id=driver_id,
        current_step=WizardStep(record.current_step),
        form_data=FormData(
            personal=PersonalInfoFields(**record.form_data.personal.model_dump()),
            vehicle=VehicleInfoFields(**record.form_data.vehicle.model_dump()),
            documents=DocumentFields(
                **{
                    slot.value: _document_handle(getattr(docs, slot.value))
                    for slot in DocumentSlot
                }
            ),
        ),
        completed_steps=set(record.completed_steps),
    )


def decode_status(
    driver_id: int,
    schema_version: int,
    is_verified: bool,
    completed_steps: Any,
    submitted_at: Optional[datetime],
    completed_at: Optional[datetime],
) -> VerificationStatus:
    if schema_version > STATUS_SCHEMA_VERSION:
        raise PersistenceCorruption(
            f"Status schema_version {schema_version} is newer than "
            f"supported version {STATUS_SCHEMA_VERSION}"
        )
    try:
        steps = frozenset(WizardStep(int(s)) for s in completed_steps or ())
    except (TypeError, ValueError) as exc:
        raise PersistenceCorruption(f"Invalid completed_steps: {completed_steps!r}") from exc
    return VerificationStatus(
        driver_id=driver_id,
        is_verified=bool(is_verified),
        completed_steps=frozenset(int(s) for s in steps),
        submitted_at=submitted_at,
        completed_at=completed_at,
    )
