"""
Client Service - handles a trainer's client roster and client profiles.
"""
from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import func, or_

from auth import get_password_hash, get_settings, validate_password_strength
from config import Settings
from database import get_db
from errors import ConflictError
from models import ClientCreate, ClientDetail, ClientUpdate, TraineeOut
from models_orm import (
    OPEN_STATUSES, ProgramAssignmentORM, ProgramORM, Role, ScheduleORM, ScheduleStatus,
    TraineeORM, TrainerORM, UserORM,
)

from .base import (
    HTTPException, Session, datetime, get_client_of_trainer, get_trainer_profile,
    handle_db_error, logger, normalize_page, set_field,
)
from .notification_service import NotificationService
from .trainee_service import TraineeService, recompute_trainee_stats

USER_FIELDS = ("phone_number", "date_of_birth", "gender")


def refresh_client_count(db: Session, trainer: TrainerORM) -> None:
    db.flush()
    trainer.total_clients = db.query(func.count(TraineeORM.id)).filter(
        TraineeORM.trainer_id == trainer.id
    ).scalar() or 0


class ClientService:
    """Service for managing a trainer's clients."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.notifications = NotificationService(db)

    def list_clients(
        self,
        user_id: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[TraineeOut], int]:
        page, page_size, offset = normalize_page(page, page_size)
        trainer = get_trainer_profile(self.db, user_id)

        query = self.db.query(TraineeORM).join(UserORM, TraineeORM.user_id == UserORM.id).filter(
            TraineeORM.trainer_id == trainer.id
        )
        if status:
            query = query.filter(TraineeORM.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(UserORM.name.ilike(pattern), UserORM.email.ilike(pattern)))

        total = query.count()
        rows = query.order_by(UserORM.name.asc()).offset(offset).limit(page_size).all()
        return [TraineeOut.model_validate(t) for t in rows], total

    def get_client_row(self, user_id: int, trainee_id: int) -> TraineeORM:
        trainer = get_trainer_profile(self.db, user_id)
        return get_client_of_trainer(self.db, trainer.id, trainee_id)

    def get_client(self, user_id: int, trainee_id: int) -> ClientDetail:
        trainee = self.get_client_row(user_id, trainee_id)
        stats = TraineeService(self.db).get_stats(trainee.id)
        return ClientDetail.model_validate(trainee).model_copy(update={"stats": stats})

    def add_client(self, user_id: int, data: ClientCreate) -> TraineeOut:
        """Create a trainee account and profile already assigned to this trainer."""
        try:
            trainer = get_trainer_profile(self.db, user_id)
            validate_password_strength(data.password)

            if self.db.query(UserORM).filter(UserORM.email == data.email).first():
                raise ConflictError("Email already registered")

            user = UserORM(
                email=data.email,
                password_hash=get_password_hash(data.password, self.settings.bcrypt_rounds),
                name=data.name.strip(),
                role=Role.TRAINEE,
                phone_number=data.phone_number,
                date_of_birth=data.date_of_birth,
                gender=data.gender,
                is_active=True,
            )
            self.db.add(user)
            self.db.flush()

            trainee = TraineeORM(
                user_id=user.id,
                trainer_id=trainer.id,
                height=data.height,
                weight=data.weight,
                goals=data.goals or [],
                fitness_level=data.fitness_level,
                medical_notes=data.medical_notes,
                injuries=data.injuries or [],
                allergies=data.allergies or [],
                emergency_contact_name=data.emergency_contact_name,
                emergency_contact_phone=data.emergency_contact_phone,
                emergency_contact_relationship=data.emergency_contact_relationship,
                status="active",
            )
            self.db.add(trainee)
            refresh_client_count(self.db, trainer)

            self.notifications.add_notification(
                user.id,
                "system",
                "Welcome!",
                f"{trainer.name} added you as a client",
                related_id=trainer.id,
                related_type="trainer",
            )

            self.db.commit()
            self.db.refresh(trainee)
            logger.info(f"Trainer {trainer.id} added client {trainee.id} ({user.email})")
            return TraineeOut.model_validate(trainee)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "add client", e)

    def update_client(self, user_id: int, trainee_id: int, data: ClientUpdate) -> TraineeOut:
        try:
            trainee = self.get_client_row(user_id, trainee_id)

            for field, value in data.model_dump(exclude_unset=True).items():
                target = trainee.user if field in USER_FIELDS else trainee
                if value is None and field in ("goals", "injuries", "allergies"):
                    value = []
                set_field(target, field, value)

            self.db.commit()
            self.db.refresh(trainee)
            return TraineeOut.model_validate(trainee)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update client", e)

    def remove_client(self, user_id: int, trainee_id: int) -> None:
        """
        Unassign a client. The trainee account stays; their open sessions with
        this trainer are cancelled and an active program from this trainer ends.
        """
        try:
            trainer = get_trainer_profile(self.db, user_id)
            trainee = get_client_of_trainer(self.db, trainer.id, trainee_id)
            now = datetime.now()

            open_sessions = self.db.query(ScheduleORM).filter(
                ScheduleORM.trainer_id == trainer.id,
                ScheduleORM.trainee_id == trainee.id,
                ScheduleORM.status.in_(OPEN_STATUSES),
                ScheduleORM.date >= now.date(),
            ).all()
            for schedule in open_sessions:
                schedule.status = ScheduleStatus.CANCELLED
                schedule.cancelled_at = now
                schedule.cancelled_by = user_id
                schedule.cancellation_reason = "Client removed by trainer"

            assignments = self.db.query(ProgramAssignmentORM).join(ProgramORM).filter(
                ProgramAssignmentORM.trainee_id == trainee.id,
                ProgramAssignmentORM.status == "active",
                ProgramORM.trainer_id == trainer.id,
            ).all()
            for assignment in assignments:
                assignment.status = "cancelled"

            trainee.trainer_id = None
            refresh_client_count(self.db, trainer)
            recompute_trainee_stats(self.db, trainee)

            self.notifications.add_notification(
                trainee.user_id,
                "system",
                "Trainer relationship ended",
                f"{trainer.name} is no longer your trainer",
                related_id=trainer.id,
                related_type="trainer",
            )

            self.db.commit()
            logger.info(
                f"Trainer {trainer.id} removed client {trainee.id}; "
                f"cancelled {len(open_sessions)} sessions, {len(assignments)} programs"
            )

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "remove client", e)


def get_client_service(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> ClientService:
    """Dependency injection helper."""
    return ClientService(db, settings)
