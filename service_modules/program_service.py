"""
Program Service - handles training program templates, assignments and progress.
"""
from typing import List, Optional

from fastapi import Depends

from database import get_db
from errors import ConflictError, InvalidInputError, NotFoundError
from models import ProgramAssign, ProgramAssignmentOut, ProgramCreate, ProgramOut, ProgramUpdate
from models_orm import ProgramAssignmentORM, ProgramORM, ScheduleORM

from . import stats
from .base import (
    HTTPException, Session, get_client_of_trainer, get_trainee_profile, get_trainer_profile,
    handle_db_error, logger, timedelta,
)
from .notification_service import NotificationService


def find_active_assignment(db: Session, trainee_id: int) -> Optional[ProgramAssignmentORM]:
    return db.query(ProgramAssignmentORM).filter(
        ProgramAssignmentORM.trainee_id == trainee_id,
        ProgramAssignmentORM.status == "active",
    ).order_by(ProgramAssignmentORM.start_date.desc()).first()


def record_program_session(db: Session, assignment: ProgramAssignmentORM, delta: int = 1) -> None:
    """Move an assignment's progress by `delta` completed sessions (no commit)."""
    program = assignment.program
    assignment.sessions_completed = max(0, (assignment.sessions_completed or 0) + delta)
    assignment.progress_percentage = stats.progress_percentage(
        assignment.sessions_completed, assignment.total_sessions
    )
    assignment.current_week = min(
        program.total_weeks,
        assignment.sessions_completed // program.sessions_per_week + 1,
    )

    if assignment.progress_percentage >= 100:
        assignment.status = "completed"
    elif assignment.status == "completed":
        assignment.status = "active"

    db.flush()
    _refresh_completion_rate(db, program)
    logger.debug(f"[PROGRAM] assignment {assignment.id}: {assignment.sessions_completed}/{assignment.total_sessions}")


def _refresh_completion_rate(db: Session, program: ProgramORM) -> None:
    assignments = db.query(ProgramAssignmentORM).filter(ProgramAssignmentORM.program_id == program.id).all()
    if not assignments:
        program.completion_rate = 0.0
        return
    done = sum(1 for a in assignments if a.status == "completed")
    program.completion_rate = round(done / len(assignments) * 100, 2)


class ProgramService:
    """Service for managing programs and their assignment to trainees."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def _trainer_program(self, trainer_id: int, program_id: int) -> ProgramORM:
        program = self.db.query(ProgramORM).filter(
            ProgramORM.id == program_id,
            ProgramORM.trainer_id == trainer_id,
        ).first()
        if not program:
            raise NotFoundError("Program not found")
        return program

    # --- TRAINER ---
    def list_programs(self, user_id: int, status: Optional[str] = None) -> List[ProgramOut]:
        trainer = get_trainer_profile(self.db, user_id)
        query = self.db.query(ProgramORM).filter(ProgramORM.trainer_id == trainer.id)
        if status:
            query = query.filter(ProgramORM.status == status)
        return [ProgramOut.model_validate(p) for p in query.order_by(ProgramORM.created_at.desc()).all()]

    def get_program(self, user_id: int, program_id: int) -> ProgramOut:
        trainer = get_trainer_profile(self.db, user_id)
        program = self._trainer_program(trainer.id, program_id)
        active = [ProgramAssignmentOut.model_validate(a) for a in program.assignments if a.status == "active"]
        return ProgramOut.model_validate(program).model_copy(update={"active_assignments": active})

    def create_program(self, user_id: int, data: ProgramCreate) -> ProgramOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            program = ProgramORM(trainer_id=trainer.id, **data.model_dump())
            self.db.add(program)
            self.db.commit()
            self.db.refresh(program)
            logger.info(f"Trainer {trainer.id} created program {program.id} '{program.name}'")
            return ProgramOut.model_validate(program)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "create program", e)

    def update_program(self, user_id: int, program_id: int, data: ProgramUpdate) -> ProgramOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            program = self._trainer_program(trainer.id, program_id)

            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(program, field, value)

            self.db.commit()
            self.db.refresh(program)
            return ProgramOut.model_validate(program)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update program", e)

    def delete_program(self, user_id: int, program_id: int) -> None:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            program = self._trainer_program(trainer.id, program_id)

            if any(a.status == "active" for a in program.assignments):
                raise ConflictError("Program has active assignments")

            for assignment in program.assignments:
                self.db.query(ScheduleORM).filter(
                    ScheduleORM.program_assignment_id == assignment.id,
                ).update({"program_assignment_id": None}, synchronize_session=False)
                self.db.delete(assignment)
            self.db.delete(program)
            self.db.commit()
            logger.info(f"Trainer {trainer.id} deleted program {program_id}")

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "delete program", e)

    def assign_program(self, user_id: int, program_id: int, data: ProgramAssign) -> ProgramAssignmentOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            program = self._trainer_program(trainer.id, program_id)
            if program.status == "archived":
                raise InvalidInputError("Archived programs cannot be assigned")

            trainee = get_client_of_trainer(self.db, trainer.id, data.trainee_id)
            if find_active_assignment(self.db, trainee.id):
                raise ConflictError("Trainee already has an active program")

            assignment = ProgramAssignmentORM(
                program_id=program.id,
                trainee_id=trainee.id,
                start_date=data.start_date,
                end_date=data.start_date + timedelta(weeks=program.total_weeks),
                current_week=1,
                progress_percentage=0.0,
                sessions_completed=0,
                total_sessions=program.total_weeks * program.sessions_per_week,
                status="active",
                notes=data.notes,
                progress_notes=[],
            )
            self.db.add(assignment)
            program.total_assignments = (program.total_assignments or 0) + 1
            self.db.flush()

            self.notifications.add_notification(
                trainee.user_id,
                "progress",
                "New training program",
                f"You have been assigned '{program.name}' starting {data.start_date.isoformat()}",
                related_id=assignment.id,
                related_type="program_assignment",
            )

            self.db.commit()
            self.db.refresh(assignment)
            logger.info(f"Program {program.id} assigned to trainee {trainee.id}")
            return ProgramAssignmentOut.model_validate(assignment)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "assign program", e)

    # --- TRAINEE ---
    def _with_assignment(self, assignment: ProgramAssignmentORM) -> ProgramOut:
        return ProgramOut.model_validate(assignment.program).model_copy(
            update={"assignment": ProgramAssignmentOut.model_validate(assignment)}
        )

    def get_current_program(self, user_id: int) -> ProgramOut:
        trainee = get_trainee_profile(self.db, user_id)
        assignment = find_active_assignment(self.db, trainee.id)
        if not assignment:
            raise NotFoundError("No active program")
        return self._with_assignment(assignment)

    def list_trainee_programs(self, user_id: int) -> List[ProgramOut]:
        trainee = get_trainee_profile(self.db, user_id)
        assignments = self.db.query(ProgramAssignmentORM).filter(
            ProgramAssignmentORM.trainee_id == trainee.id,
        ).order_by(ProgramAssignmentORM.start_date.desc()).all()
        return [self._with_assignment(a) for a in assignments]

    def get_trainee_program(self, user_id: int, program_id: int) -> ProgramOut:
        """A program the trainee has (or had) an assignment for."""
        trainee = get_trainee_profile(self.db, user_id)
        assignment = self.db.query(ProgramAssignmentORM).filter(
            ProgramAssignmentORM.trainee_id == trainee.id,
            ProgramAssignmentORM.program_id == program_id,
        ).order_by(ProgramAssignmentORM.start_date.desc()).first()
        if not assignment:
            raise NotFoundError("Program not found")
        return self._with_assignment(assignment)


def get_program_service(db: Session = Depends(get_db)) -> ProgramService:
    """Dependency injection helper."""
    return ProgramService(db)
