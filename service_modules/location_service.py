"""
Location Service - read-only access to training venues.
"""
from typing import List

from fastapi import Depends

from database import get_db
from errors import NotFoundError
from models import LocationOut
from models_orm import LocationORM

from .base import Session


class LocationService:
    def __init__(self, db: Session):
        self.db = db

    def list_locations(self) -> List[LocationOut]:
        rows = self.db.query(LocationORM).filter(
            LocationORM.is_active == True  # noqa: E712
        ).order_by(LocationORM.name.asc()).all()
        return [LocationOut.model_validate(loc) for loc in rows]

    def get_location(self, location_id: int) -> LocationOut:
        location = self.db.query(LocationORM).filter(
            LocationORM.id == location_id,
            LocationORM.is_active == True,  # noqa: E712
        ).first()
        if not location:
            raise NotFoundError("Location not found")
        return LocationOut.model_validate(location)


def get_location_service(db: Session = Depends(get_db)) -> LocationService:
    """Dependency injection helper."""
    return LocationService(db)
