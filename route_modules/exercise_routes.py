"""
Exercise Routes - the trainer's exercise library and public categories.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, get_optional_identity, trainer_only
from models import ExerciseCreate, ExerciseUpdate
from responses import created, ok
from service_modules.exercise_service import ExerciseService, get_exercise_service

router = APIRouter()


@router.get("/trainer/exercises")
async def get_exercises(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    mine_only: bool = Query(False, alias="mineOnly"),
    identity: Identity = Depends(trainer_only),
    service: ExerciseService = Depends(get_exercise_service),
):
    """Public exercises plus the trainer's own."""
    return ok(service.get_exercises(identity.user_id, category, search, mine_only))


@router.post("/trainer/exercises")
async def create_exercise(
    data: ExerciseCreate,
    identity: Identity = Depends(trainer_only),
    service: ExerciseService = Depends(get_exercise_service),
):
    """Create a personal exercise."""
    return created(service.create_exercise(identity.user_id, data), "Exercise created")


@router.patch("/trainer/exercises/{exercise_id}")
async def update_exercise(
    exercise_id: int,
    data: ExerciseUpdate,
    identity: Identity = Depends(trainer_only),
    service: ExerciseService = Depends(get_exercise_service),
):
    return ok(service.update_exercise(identity.user_id, exercise_id, data), "Exercise updated")


@router.delete("/trainer/exercises/{exercise_id}")
async def delete_exercise(
    exercise_id: int,
    identity: Identity = Depends(trainer_only),
    service: ExerciseService = Depends(get_exercise_service),
):
    service.delete_exercise(identity.user_id, exercise_id)
    return ok(message="Exercise deleted")


@router.get("/common/exercises/categories")
async def get_exercise_categories(
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: ExerciseService = Depends(get_exercise_service),
):
    return ok(service.get_categories())
