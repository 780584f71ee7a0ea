"""
Schedule Routes - trainer session booking and the trainee's calendar.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, trainee_only, trainer_only
from models import ScheduleCreate, ScheduleUpdate
from models_orm import ScheduleStatus
from responses import created, ok, paginated
from service_modules.schedule_service import ScheduleService, get_schedule_service

router = APIRouter()


# Trainee schedule routes
@router.get("/trainee/schedules/upcoming")
async def get_upcoming_schedules(
    days: Optional[str] = Query(None),
    identity: Identity = Depends(trainee_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Upcoming sessions for the next `days` days (default 7) with a calendar strip."""
    return ok(service.get_upcoming(identity.user_id, days))


@router.get("/trainee/schedules")
async def get_trainee_schedules(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    status: Optional[ScheduleStatus] = Query(None),
    identity: Identity = Depends(trainee_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    """All of the trainee's schedules, optionally filtered by date range and status."""
    return ok(service.list_trainee_schedules(identity.user_id, from_date, to_date, status))


@router.get("/trainee/schedules/{schedule_id}")
async def get_trainee_schedule(
    schedule_id: int,
    identity: Identity = Depends(trainee_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    return ok(service.get_trainee_schedule(identity.user_id, schedule_id))


# Trainer schedule routes
@router.get("/trainer/schedules")
async def get_trainer_schedules(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    status: Optional[ScheduleStatus] = Query(None),
    trainee_id: Optional[int] = Query(None, alias="traineeId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(trainer_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Trainer's schedules, paginated, ordered by date and time."""
    items, total = service.list_trainer_schedules(
        identity.user_id, from_date, to_date, status, trainee_id, page, page_size
    )
    return paginated(items, page, page_size, total)


@router.get("/trainer/schedules/{schedule_id}")
async def get_trainer_schedule(
    schedule_id: int,
    identity: Identity = Depends(trainer_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    return ok(service.get_trainer_schedule(identity.user_id, schedule_id))


@router.post("/trainer/schedules")
async def create_schedule(
    data: ScheduleCreate,
    identity: Identity = Depends(trainer_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Book a session with a client; overlapping bookings are rejected."""
    return created(service.create_schedule(identity.user_id, data), "Schedule created")


@router.patch("/trainer/schedules/{schedule_id}")
async def update_schedule(
    schedule_id: int,
    data: ScheduleUpdate,
    identity: Identity = Depends(trainer_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Reschedule, edit details or move the session to its next status."""
    return ok(service.update_schedule(identity.user_id, schedule_id, data), "Schedule updated")


@router.delete("/trainer/schedules/{schedule_id}")
async def cancel_schedule(
    schedule_id: int,
    reason: Optional[str] = Query(None),
    identity: Identity = Depends(trainer_only),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Cancel a session (the row is kept with status cancelled)."""
    return ok(service.cancel_schedule(identity.user_id, schedule_id, reason), "Schedule cancelled")
