"""
Trainer Routes - dashboard, analytics and the public trainer directory.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, get_optional_identity, trainer_only
from responses import ok
from service_modules.trainer_service import TrainerService, get_trainer_service

router = APIRouter()


@router.get("/trainer/dashboard/stats")
async def get_dashboard_stats(
    identity: Identity = Depends(trainer_only),
    service: TrainerService = Depends(get_trainer_service),
):
    """Client and session totals plus today's and this week's sessions."""
    return ok(service.get_dashboard_stats(identity.user_id))


@router.get("/trainer/analytics/overview")
async def get_analytics_overview(
    identity: Identity = Depends(trainer_only),
    service: TrainerService = Depends(get_trainer_service),
):
    """Weekly session volume, client growth, retention and popular exercises."""
    return ok(service.get_analytics_overview(identity.user_id))


@router.get("/trainer/analytics/clients/{trainee_id}")
async def get_client_analytics(
    trainee_id: int,
    identity: Identity = Depends(trainer_only),
    service: TrainerService = Depends(get_trainer_service),
):
    return ok(service.get_client_analytics(identity.user_id, trainee_id))


# Public browsing (auth optional)
@router.get("/common/trainers")
async def get_trainers(
    specialization: Optional[str] = Query(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: TrainerService = Depends(get_trainer_service),
):
    return ok(service.list_trainers(specialization))


@router.get("/common/trainers/{trainer_id}")
async def get_trainer_detail(
    trainer_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: TrainerService = Depends(get_trainer_service),
):
    return ok(service.get_trainer(trainer_id))
