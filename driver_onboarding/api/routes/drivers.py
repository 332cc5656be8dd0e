"""
Driver availability endpoints
=============================

GET  /api/v1/drivers/nearby?lat=&lng=     -- online drivers around a point
GET  /api/v1/drivers/{driver_id}          -- roster record
POST /api/v1/drivers/{driver_id}/online   -- go online (verified drivers only)
POST /api/v1/drivers/{driver_id}/offline  -- go offline
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from driver_onboarding.api.dependencies import get_db, get_gate
from driver_onboarding.api.middleware import RATE_LIMIT, limiter
from driver_onboarding.api.schemas import (
    DriverResponse,
    ErrorResponse,
    GateResponse,
    NearbyDriverResponse,
)
from driver_onboarding.config import settings
from driver_onboarding.domain.errors import NotVerifiedError
from driver_onboarding.domain.gate import AvailabilityGate
from driver_onboarding.domain.geo import haversine_km, nearby_cells
from driver_onboarding.infrastructure.repositories import DriverRepository

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get(
    "/nearby",
    response_model=list[NearbyDriverResponse],
    summary="List online drivers near a point, closest first",
)
@limiter.limit(RATE_LIMIT)
async def nearby_drivers(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    db: AsyncSession = Depends(get_db),
):
    cells = nearby_cells(lat, lng, settings.h3_resolution)
    drivers = await DriverRepository(db).get_online_in_cells(cells)
    result = [
        NearbyDriverResponse(
            **DriverResponse.model_validate(d).model_dump(),
            distance_km=round(
                haversine_km(lat, lng, d.current_lat, d.current_lng), 3
            ),
        )
        for d in drivers
        if d.current_lat is not None
    ]
    return sorted(result, key=lambda d: d.distance_km)


@router.get(
    "/{driver_id}",
    response_model=DriverResponse,
    summary="Get a driver's roster record",
)
@limiter.limit(RATE_LIMIT)
async def get_driver(
    request: Request,
    driver_id: int,
    db: AsyncSession = Depends(get_db),
):
    driver = await DriverRepository(db).get_by_id(driver_id)
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


@router.post(
    "/{driver_id}/online",
    response_model=GateResponse,
    summary="Go online",
    description=(
        "Rejected with 403 and a redirect to the verification wizard until "
        "the driver has completed verification."
    ),
    responses={403: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def go_online(
    request: Request,
    driver_id: int,
    db: AsyncSession = Depends(get_db),
    gate: AvailabilityGate = Depends(get_gate),
):
    if not await DriverRepository(db).get_by_id(driver_id):
        raise HTTPException(status_code=404, detail="Driver not found")

    decision = await gate.attempt_go_online(driver_id)
    if not decision.accepted:
        raise NotVerifiedError(driver_id)
    return GateResponse.from_decision(decision)


@router.post(
    "/{driver_id}/offline",
    response_model=GateResponse,
    summary="Go offline",
)
@limiter.limit(RATE_LIMIT)
async def go_offline(
    request: Request,
    driver_id: int,
    db: AsyncSession = Depends(get_db),
    gate: AvailabilityGate = Depends(get_gate),
):
    if not await DriverRepository(db).get_by_id(driver_id):
        raise HTTPException(status_code=404, detail="Driver not found")

    await gate.go_offline(driver_id)
    return GateResponse(accepted=True, is_online=False)
