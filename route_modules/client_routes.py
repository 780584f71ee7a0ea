"""
Client Routes - the trainer's client roster, trainee self-service and
trainee-scoped stats/metrics shared by both roles.
"""
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, ensure_owner, get_current_identity, trainee_only, trainer_only
from models import ClientCreate, ClientUpdate, MetricCreate, TraineeProfileUpdate
from responses import created, ok, paginated
from service_modules.client_service import ClientService, get_client_service
from service_modules.metric_service import MetricService, get_metric_service
from service_modules.trainee_service import TraineeService, get_trainee_service

router = APIRouter()

MetricTypeFilter = Optional[Literal["weight", "body_fat", "muscle_mass", "measurement"]]


# Trainer client routes
@router.get("/trainer/clients")
async def get_clients(
    search: Optional[str] = Query(None),
    status: Optional[Literal["active", "inactive", "suspended"]] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(trainer_only),
    service: ClientService = Depends(get_client_service),
):
    """Trainer's clients, searchable by name or email."""
    items, total = service.list_clients(identity.user_id, search, status, page, page_size)
    return paginated(items, page, page_size, total)


@router.get("/trainer/clients/{trainee_id}")
async def get_client(
    trainee_id: int,
    identity: Identity = Depends(trainer_only),
    service: ClientService = Depends(get_client_service),
):
    """Client profile with live stats."""
    return ok(service.get_client(identity.user_id, trainee_id))


@router.post("/trainer/clients")
async def add_client(
    data: ClientCreate,
    identity: Identity = Depends(trainer_only),
    service: ClientService = Depends(get_client_service),
):
    """Create a trainee account assigned to this trainer."""
    return created(service.add_client(identity.user_id, data), "Client added")


@router.patch("/trainer/clients/{trainee_id}")
async def update_client(
    trainee_id: int,
    data: ClientUpdate,
    identity: Identity = Depends(trainer_only),
    service: ClientService = Depends(get_client_service),
):
    return ok(service.update_client(identity.user_id, trainee_id, data), "Client updated")


@router.delete("/trainer/clients/{trainee_id}")
async def remove_client(
    trainee_id: int,
    identity: Identity = Depends(trainer_only),
    service: ClientService = Depends(get_client_service),
):
    """Unassign a client from this trainer."""
    service.remove_client(identity.user_id, trainee_id)
    return ok(message="Client removed")


@router.get("/trainer/clients/{trainee_id}/metrics")
async def get_client_metrics(
    trainee_id: int,
    metric_type: MetricTypeFilter = Query(None, alias="type"),
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    identity: Identity = Depends(trainer_only),
    clients: ClientService = Depends(get_client_service),
    metrics: MetricService = Depends(get_metric_service),
):
    trainee = clients.get_client_row(identity.user_id, trainee_id)
    return ok(metrics.list_metrics(trainee.id, metric_type, from_date, to_date))


@router.post("/trainer/clients/{trainee_id}/metrics")
async def record_client_metric(
    trainee_id: int,
    data: MetricCreate,
    identity: Identity = Depends(trainer_only),
    clients: ClientService = Depends(get_client_service),
    metrics: MetricService = Depends(get_metric_service),
):
    """Record a body measurement for a client."""
    trainee = clients.get_client_row(identity.user_id, trainee_id)
    return created(metrics.record_metric(trainee, data, identity.user_id), "Metric recorded")


# Trainee self-service routes
@router.get("/trainee/me")
async def get_my_profile(
    identity: Identity = Depends(trainee_only),
    service: TraineeService = Depends(get_trainee_service),
):
    return ok(service.get_profile(identity.user_id))


@router.patch("/trainee/me")
async def update_my_profile(
    data: TraineeProfileUpdate,
    identity: Identity = Depends(trainee_only),
    service: TraineeService = Depends(get_trainee_service),
):
    return ok(service.update_profile(identity.user_id, data), "Profile updated")


@router.get("/trainee/stats")
async def get_my_stats(
    identity: Identity = Depends(trainee_only),
    service: TraineeService = Depends(get_trainee_service),
):
    """Session counts, workout hours, streaks and current program progress."""
    return ok(service.get_stats_for_user(identity.user_id))


@router.get("/trainee/metrics")
async def get_my_metrics(
    metric_type: MetricTypeFilter = Query(None, alias="type"),
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    identity: Identity = Depends(trainee_only),
    metrics: MetricService = Depends(get_metric_service),
):
    return ok(metrics.list_metrics_for_user(identity.user_id, metric_type, from_date, to_date))


# Trainee-scoped routes open to any role, subject to the ownership check
@router.get("/trainees/{trainee_id}/stats")
async def get_trainee_stats(
    trainee_id: int,
    identity: Identity = Depends(get_current_identity),
    service: TraineeService = Depends(get_trainee_service),
):
    trainee = service.get_trainee_owner(trainee_id)
    ensure_owner(identity, trainee.user_id)
    return ok(service.get_stats(trainee.id))


@router.get("/trainees/{trainee_id}/metrics")
async def get_trainee_metrics(
    trainee_id: int,
    metric_type: MetricTypeFilter = Query(None, alias="type"),
    identity: Identity = Depends(get_current_identity),
    trainees: TraineeService = Depends(get_trainee_service),
    metrics: MetricService = Depends(get_metric_service),
):
    trainee = trainees.get_trainee_owner(trainee_id)
    ensure_owner(identity, trainee.user_id)
    return ok(metrics.list_metrics(trainee.id, metric_type))
