"""
Session Routes - session cards for trainers (logging) and trainees (history).
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, trainee_only, trainer_only
from models import SessionCardCreate, SessionCardUpdate
from responses import created, ok, paginated
from service_modules.session_service import SessionService, get_session_service

router = APIRouter()


# Trainee session routes
@router.get("/trainee/sessions")
async def get_trainee_sessions(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(trainee_only),
    service: SessionService = Depends(get_session_service),
):
    """Trainee's session cards, newest first."""
    items, total = service.list_trainee_sessions(identity.user_id, page, page_size)
    return paginated(items, page, page_size, total)


@router.get("/trainee/sessions/search")
async def search_trainee_sessions(
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    category: Optional[str] = Query(None),
    exercise_name: Optional[str] = Query(None, alias="exerciseName"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(trainee_only),
    service: SessionService = Depends(get_session_service),
):
    """Filter session cards by date range, exercise category or exercise name."""
    items, total = service.search_trainee_sessions(
        identity.user_id, from_date, to_date, category, exercise_name, page, page_size
    )
    return paginated(items, page, page_size, total)


@router.get("/trainee/sessions/{card_id}")
async def get_trainee_session(
    card_id: int,
    identity: Identity = Depends(trainee_only),
    service: SessionService = Depends(get_session_service),
):
    return ok(service.get_trainee_session(identity.user_id, card_id))


# Trainer session routes
@router.get("/trainer/sessions")
async def get_trainer_sessions(
    trainee_id: Optional[int] = Query(None, alias="traineeId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(trainer_only),
    service: SessionService = Depends(get_session_service),
):
    items, total = service.list_trainer_sessions(identity.user_id, trainee_id, page, page_size)
    return paginated(items, page, page_size, total)


@router.get("/trainer/clients/{trainee_id}/sessions")
async def get_client_sessions(
    trainee_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(trainer_only),
    service: SessionService = Depends(get_session_service),
):
    """Session cards logged for one client."""
    items, total = service.list_trainer_sessions(identity.user_id, trainee_id, page, page_size)
    return paginated(items, page, page_size, total)


@router.get("/trainer/sessions/{card_id}")
async def get_trainer_session(
    card_id: int,
    identity: Identity = Depends(trainer_only),
    service: SessionService = Depends(get_session_service),
):
    return ok(service.get_trainer_session(identity.user_id, card_id))


@router.post("/trainer/sessions")
async def create_session_card(
    data: SessionCardCreate,
    identity: Identity = Depends(trainer_only),
    service: SessionService = Depends(get_session_service),
):
    """Log a session card; completes the schedule and updates the trainee's stats."""
    return created(service.create_session_card(identity.user_id, data), "Session card created")


@router.patch("/trainer/sessions/{card_id}")
async def update_session_card(
    card_id: int,
    data: SessionCardUpdate,
    identity: Identity = Depends(trainer_only),
    service: SessionService = Depends(get_session_service),
):
    return ok(service.update_session_card(identity.user_id, card_id, data), "Session card updated")


@router.delete("/trainer/sessions/{card_id}")
async def delete_session_card(
    card_id: int,
    identity: Identity = Depends(trainer_only),
    service: SessionService = Depends(get_session_service),
):
    service.delete_session_card(identity.user_id, card_id)
    return ok(message="Session card deleted")
