"""
Verification wizard endpoints
=============================

GET    /api/v1/drivers/{driver_id}/verification                   -- enter / resume the wizard
PATCH  /api/v1/drivers/{driver_id}/verification/fields            -- edit text fields
PUT    /api/v1/drivers/{driver_id}/verification/documents/{slot}  -- attach a document
DELETE /api/v1/drivers/{driver_id}/verification/documents/{slot}  -- remove a document
POST   /api/v1/drivers/{driver_id}/verification/advance           -- validate + next step
POST   /api/v1/drivers/{driver_id}/verification/retreat           -- previous step
POST   /api/v1/drivers/{driver_id}/verification/submit            -- finalise (review step only)
GET    /api/v1/drivers/{driver_id}/verification/status            -- final status record

Domain errors are mapped to HTTP status codes by the handlers registered
in ``driver_onboarding.api.app``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from driver_onboarding.api.dependencies import get_wizard
from driver_onboarding.api.middleware import RATE_LIMIT, limiter
from driver_onboarding.api.schemas import (
    DocumentUploadRequest,
    ErrorResponse,
    FieldsUpdateRequest,
    ProgressResponse,
    VerificationStatusResponse,
)
from driver_onboarding.domain.enums import DocumentSlot
from driver_onboarding.domain.wizard import VerificationWizard

router = APIRouter(prefix="/drivers/{driver_id}/verification", tags=["verification"])


@router.get(
    "",
    response_model=ProgressResponse,
    summary="Enter the verification wizard",
    description=(
        "Returns saved progress, or creates fresh progress pre-filled with "
        "the driver's name and phone number."
    ),
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def enter_wizard(
    request: Request,
    driver_id: int,
    wizard: VerificationWizard = Depends(get_wizard),
):
    progress = await wizard.enter(driver_id)
    return ProgressResponse.from_progress(progress)


@router.patch(
    "/fields",
    response_model=ProgressResponse,
    summary="Update text fields",
    responses={422: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def update_fields(
    request: Request,
    driver_id: int,
    body: FieldsUpdateRequest,
    wizard: VerificationWizard = Depends(get_wizard),
):
    progress = await wizard.update_fields(driver_id, body.values)
    return ProgressResponse.from_progress(progress)


@router.put(
    "/documents/{slot}",
    response_model=ProgressResponse,
    summary="Attach a document to one of the four slots",
)
@limiter.limit(RATE_LIMIT)
async def attach_document(
    request: Request,
    driver_id: int,
    slot: DocumentSlot,
    body: DocumentUploadRequest,
    wizard: VerificationWizard = Depends(get_wizard),
):
    progress = await wizard.attach_document(driver_id, slot, body.to_handle())
    return ProgressResponse.from_progress(progress)


@router.delete(
    "/documents/{slot}",
    response_model=ProgressResponse,
    summary="Remove a document",
)
@limiter.limit(RATE_LIMIT)
async def remove_document(
    request: Request,
    driver_id: int,
    slot: DocumentSlot,
    wizard: VerificationWizard = Depends(get_wizard),
):
    progress = await wizard.remove_document(driver_id, slot)
    return ProgressResponse.from_progress(progress)


@router.post(
    "/advance",
    response_model=ProgressResponse,
    summary="Validate the current step and move to the next one",
    responses={422: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def advance(
    request: Request,
    driver_id: int,
    wizard: VerificationWizard = Depends(get_wizard),
):
    progress = await wizard.advance(driver_id)
    return ProgressResponse.from_progress(progress)


@router.post(
    "/retreat",
    response_model=ProgressResponse,
    summary="Go back one step",
)
@limiter.limit(RATE_LIMIT)
async def retreat(
    request: Request,
    driver_id: int,
    wizard: VerificationWizard = Depends(get_wizard),
):
    progress = await wizard.retreat(driver_id)
    return ProgressResponse.from_progress(progress)


@router.post(
    "/submit",
    response_model=VerificationStatusResponse,
    summary="Submit the verification",
    description=(
        "Only allowed from the review step.  Writes the verification status "
        "and deletes the in-progress record in one transaction."
    ),
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def submit(
    request: Request,
    driver_id: int,
    wizard: VerificationWizard = Depends(get_wizard),
):
    status = await wizard.submit(driver_id)
    return VerificationStatusResponse.from_status(status)


@router.get(
    "/status",
    response_model=VerificationStatusResponse,
    summary="Read the verification status",
)
@limiter.limit(RATE_LIMIT)
async def get_status(
    request: Request,
    driver_id: int,
    wizard: VerificationWizard = Depends(get_wizard),
):
    return VerificationStatusResponse.from_status(await wizard.status(driver_id))
