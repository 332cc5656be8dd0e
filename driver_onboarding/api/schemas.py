"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from driver_onboarding.domain.entities import (
    DocumentHandle,
    Notification,
    VerificationStatus,
    WizardProgress,
)
from driver_onboarding.domain.gate import GateDecision


# ── Requests ──────────────────────────────────────────────────────────


class FieldsUpdateRequest(BaseModel):
    values: dict[str, str] = Field(
        ...,
        description="Text fields to set, e.g. {\"full_name\": \"Ada Obi\"}.",
    )


class DocumentUploadRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field("application/octet-stream", max_length=100)
    size_bytes: int = Field(0, ge=0)
    storage_ref: Optional[str] = Field(
        None,
        max_length=512,
        description="Where the uploaded bytes live (object-store key or URL).",
    )

    def to_handle(self) -> DocumentHandle:
        return DocumentHandle(
            file_name=self.file_name,
            content_type=self.content_type,
            size_bytes=self.size_bytes,
            storage_ref=self.storage_ref,
            uploaded_at=datetime.now(timezone.utc),
        )


# ── Responses ─────────────────────────────────────────────────────────


class DocumentResponse(BaseModel):
    file_name: str
    content_type: str
    size_bytes: int
    storage_ref: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class PersonalInfoResponse(BaseModel):
    full_name: str
    phone_number: str
    address: str
    date_of_birth: str


class VehicleInfoResponse(BaseModel):
    make: str
    model: str
    year: str
    color: str
    license_plate: str


class DocumentsResponse(BaseModel):
    drivers_license: Optional[DocumentResponse] = None
    vehicle_registration: Optional[DocumentResponse] = None
    insurance: Optional[DocumentResponse] = None
    profile_photo: Optional[DocumentResponse] = None


class FormDataResponse(BaseModel):
    personal: PersonalInfoResponse
    vehicle: VehicleInfoResponse
    documents: DocumentsResponse


class StepResponse(BaseModel):
    id: str
    title: str
    description: str
    order: int
    required_fields: list[str]
    state: str
    missing_fields: list[str]


class ProgressResponse(BaseModel):
    driver_id: int
    current_step: int
    completed_steps: list[int]
    completed_count: int
    total_steps: int
    form_data: FormDataResponse
    steps: list[StepResponse]

    @classmethod
    def from_progress(cls, progress: WizardProgress) -> "ProgressResponse":
        steps = [
            StepResponse(
                id=step.id,
                title=step.title,
                description=step.description,
                order=int(step.order),
                required_fields=list(step.required_fields),
                state=state.value,
                missing_fields=list(progress.missing_fields(step.order)),
            )
            for step, state in progress.step_states()
        ]
        return cls(
            driver_id=progress.driver_id,
            current_step=int(progress.current_step),
            completed_steps=sorted(progress.completed_steps),
            completed_count=len(progress.completed_steps),
            total_steps=len(steps),
            form_data=FormDataResponse.model_validate(asdict(progress.form_data)),
            steps=steps,
        )


class VerificationStatusResponse(BaseModel):
    driver_id: int
    is_verified: bool
    completed_steps: list[int]
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_status(cls, status: VerificationStatus) -> "VerificationStatusResponse":
        return cls(
            driver_id=status.driver_id,
            is_verified=status.is_verified,
            completed_steps=sorted(status.completed_steps),
            submitted_at=status.submitted_at,
            completed_at=status.completed_at,
        )


class GateResponse(BaseModel):
    accepted: bool
    is_online: bool
    reason: Optional[str] = None
    redirect_to: Optional[str] = None

    @classmethod
    def from_decision(cls, decision: GateDecision) -> "GateResponse":
        return cls(
            accepted=decision.accepted,
            is_online=decision.accepted,
            reason=decision.reason.value if decision.reason else None,
            redirect_to=decision.redirect_to,
        )


class DriverResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    rating: Optional[float] = None
    is_online: bool
    current_lat: Optional[float] = None
    current_lng: Optional[float] = None
    h3_cell: Optional[str] = None

    model_config = {"from_attributes": True}


class NearbyDriverResponse(DriverResponse):
    distance_km: float


class NotificationResponse(BaseModel):
    id: str
    kind: str
    title: str
    message: str
    timestamp: datetime

    @classmethod
    def from_notification(cls, n: Notification) -> "NotificationResponse":
        return cls(
            id=n.id,
            kind=n.kind.value,
            title=n.title,
            message=n.message,
            timestamp=n.timestamp,
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    redis: bool = True


class ErrorResponse(BaseModel):
    detail: str
    redirect_to: Optional[str] = None
    missing_fields: Optional[list[str]] = None
