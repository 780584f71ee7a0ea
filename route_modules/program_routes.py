"""
Program Routes - program templates (trainer) and assigned programs (trainee).
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, trainee_only, trainer_only
from models import ProgramAssign, ProgramCreate, ProgramUpdate
from responses import created, ok
from service_modules.program_service import ProgramService, get_program_service

router = APIRouter()


# Trainee program routes
@router.get("/trainee/programs/current")
async def get_current_program(
    identity: Identity = Depends(trainee_only),
    service: ProgramService = Depends(get_program_service),
):
    """The trainee's active program with assignment progress."""
    return ok(service.get_current_program(identity.user_id))


@router.get("/trainee/programs")
async def get_trainee_programs(
    identity: Identity = Depends(trainee_only),
    service: ProgramService = Depends(get_program_service),
):
    return ok(service.list_trainee_programs(identity.user_id))


@router.get("/trainee/programs/{program_id}")
async def get_trainee_program(
    program_id: int,
    identity: Identity = Depends(trainee_only),
    service: ProgramService = Depends(get_program_service),
):
    return ok(service.get_trainee_program(identity.user_id, program_id))


# Trainer program routes
@router.get("/trainer/programs")
async def get_programs(
    status: Optional[Literal["draft", "active", "archived"]] = Query(None),
    identity: Identity = Depends(trainer_only),
    service: ProgramService = Depends(get_program_service),
):
    return ok(service.list_programs(identity.user_id, status))


@router.get("/trainer/programs/{program_id}")
async def get_program(
    program_id: int,
    identity: Identity = Depends(trainer_only),
    service: ProgramService = Depends(get_program_service),
):
    """Program detail including its active assignments."""
    return ok(service.get_program(identity.user_id, program_id))


@router.post("/trainer/programs")
async def create_program(
    data: ProgramCreate,
    identity: Identity = Depends(trainer_only),
    service: ProgramService = Depends(get_program_service),
):
    return created(service.create_program(identity.user_id, data), "Program created")


@router.patch("/trainer/programs/{program_id}")
async def update_program(
    program_id: int,
    data: ProgramUpdate,
    identity: Identity = Depends(trainer_only),
    service: ProgramService = Depends(get_program_service),
):
    return ok(service.update_program(identity.user_id, program_id, data), "Program updated")


@router.delete("/trainer/programs/{program_id}")
async def delete_program(
    program_id: int,
    identity: Identity = Depends(trainer_only),
    service: ProgramService = Depends(get_program_service),
):
    """Delete a program; refused while any trainee is actively on it."""
    service.delete_program(identity.user_id, program_id)
    return ok(message="Program deleted")


@router.post("/trainer/programs/{program_id}/assign")
async def assign_program(
    program_id: int,
    data: ProgramAssign,
    identity: Identity = Depends(trainer_only),
    service: ProgramService = Depends(get_program_service),
):
    """Assign a program to one of the trainer's clients."""
    return created(service.assign_program(identity.user_id, program_id, data), "Program assigned")
