"""
Base service utilities and shared imports.
All services should import from here for common functionality.
"""
import logging
from datetime import date, datetime, timedelta

from fastapi import HTTPException
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import ConflictError, InternalError, InvalidInputError, NotFoundError
from models_orm import TraineeORM, TrainerORM
from responses import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger("fitness_app")

__all__ = [
    "HTTPException", "Session", "logging", "date", "datetime", "timedelta",
    "logger", "handle_db_error", "normalize_page", "set_field",
    "get_trainer_profile", "get_trainee_profile", "get_client_of_trainer",
]


def handle_db_error(db: Session, action: str, exc: Exception):
    """Roll back and translate an unexpected failure; always raises."""
    db.rollback()
    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error while trying to {action}: {exc.orig}")
        raise ConflictError(f"Could not {action}: conflicts with existing data")
    logger.error(f"Error while trying to {action}: {exc}", exc_info=True)
    raise InternalError(f"Failed to {action}")


def set_field(target, field: str, value) -> None:
    """setattr that refuses an explicit null for a NOT NULL column."""
    if value is None:
        columns = sa_inspect(type(target)).columns
        if field in columns and not columns[field].nullable:
            raise InvalidInputError(
                f"{field} cannot be null",
                details=[{"field": field, "message": "must not be null"}],
            )
    setattr(target, field, value)


def normalize_page(page: int, page_size: int):
    if page is None or page < 1:
        raise InvalidInputError("page must be >= 1")
    if page_size is None:
        page_size = DEFAULT_PAGE_SIZE
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidInputError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")
    return page, page_size, (page - 1) * page_size


def get_trainer_profile(db: Session, user_id: int) -> TrainerORM:
    trainer = db.query(TrainerORM).filter(TrainerORM.user_id == user_id).first()
    if not trainer:
        raise NotFoundError("Trainer profile not found")
    return trainer


def get_trainee_profile(db: Session, user_id: int) -> TraineeORM:
    trainee = db.query(TraineeORM).filter(TraineeORM.user_id == user_id).first()
    if not trainee:
        raise NotFoundError("Trainee profile not found")
    return trainee


def get_client_of_trainer(db: Session, trainer_id: int, trainee_id: int) -> TraineeORM:
    """A trainee that belongs to this trainer; anything else is reported as missing."""
    trainee = db.query(TraineeORM).filter(
        TraineeORM.id == trainee_id,
        TraineeORM.trainer_id == trainer_id,
    ).first()
    if not trainee:
        raise NotFoundError("Client not found")
    return trainee
