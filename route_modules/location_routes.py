"""
Location Routes - training venues (read-only, auth optional).
"""
from typing import Optional

from fastapi import APIRouter, Depends

from auth import Identity, get_optional_identity
from responses import ok
from service_modules.location_service import LocationService, get_location_service

router = APIRouter()


@router.get("/common/locations")
async def get_locations(
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: LocationService = Depends(get_location_service),
):
    return ok(service.list_locations())


@router.get("/common/locations/{location_id}")
async def get_location(
    location_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: LocationService = Depends(get_location_service),
):
    return ok(service.get_location(location_id))
