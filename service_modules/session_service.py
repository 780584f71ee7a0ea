"""
Session Service - handles session cards: the logged record of a completed session.

Creating a card is one transaction: nested exercises and sets, derived totals,
schedule completion, exercise usage counts, program progress, the trainee's
cached stats and a notification either all land or none do.
"""
from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import func

from database import get_db
from errors import ConflictError, InvalidInputError, NotFoundError
from models import SessionCardCreate, SessionCardOut, SessionCardSummary, SessionCardUpdate
from models_orm import (
    ExerciseLibraryORM, ExerciseSetORM, ProgramAssignmentORM, ScheduleORM, ScheduleStatus,
    SessionCardORM, SessionExerciseORM, TrainerORM,
)

from .base import (
    HTTPException, Session, get_client_of_trainer, get_trainee_profile, get_trainer_profile,
    handle_db_error, logger, normalize_page, set_field,
)
from .notification_service import NotificationService
from .program_service import find_active_assignment, record_program_session
from .trainee_service import recompute_trainee_stats

# A card may be logged for a session that was never explicitly confirmed
LOGGABLE_STATUSES = (ScheduleStatus.SCHEDULED, ScheduleStatus.CONFIRMED)


def exercise_totals(sets) -> dict:
    """Totals for one exercise; volume is reps x weight summed over sets."""
    total_reps = sum(s.reps or 0 for s in sets)
    total_weight = sum(s.weight or 0 for s in sets)
    total_volume = sum((s.reps or 0) * (s.weight or 0) for s in sets)
    return {
        "total_sets": len(sets),
        "total_reps": total_reps,
        "total_weight": round(total_weight, 2),
        "total_volume": round(total_volume, 2),
    }


def refresh_trainer_rating(db: Session, trainer: TrainerORM) -> None:
    """Trainer rating is the mean of trainee ratings left on session cards."""
    db.flush()
    avg, count = db.query(
        func.avg(SessionCardORM.trainee_rating), func.count(SessionCardORM.trainee_rating)
    ).filter(
        SessionCardORM.trainer_id == trainer.id,
        SessionCardORM.trainee_rating.isnot(None),
    ).one()
    trainer.rating = round(float(avg), 2) if avg is not None else 0.0
    trainer.total_ratings = count or 0


class SessionService:
    """Service for logging and reading session cards."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    # --- TRAINER ---
    def create_session_card(self, user_id: int, data: SessionCardCreate) -> SessionCardOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            schedule = self.db.query(ScheduleORM).filter(
                ScheduleORM.id == data.schedule_id,
                ScheduleORM.trainer_id == trainer.id,
            ).first()
            if not schedule:
                raise NotFoundError("Schedule not found")
            if schedule.session_card_id is not None:
                raise ConflictError("A session card already exists for this schedule")
            if schedule.status not in LOGGABLE_STATUSES:
                raise ConflictError(f"Cannot log a {schedule.status.value} session")

            card = SessionCardORM(
                schedule_id=schedule.id,
                trainer_id=trainer.id,
                trainee_id=schedule.trainee_id,
                date=schedule.date,
                title=schedule.title,
                duration=data.duration or schedule.duration,
                overall_feedback=data.overall_feedback,
                next_session_goals=data.next_session_goals or [],
                trainer_rating=data.trainer_rating,
                trainee_rating=data.trainee_rating,
            )
            self.db.add(card)

            card_sets = 0
            card_volume = 0.0
            for position, ex_in in enumerate(data.exercises, start=1):
                library = None
                if ex_in.exercise_library_id is not None:
                    library = self._usable_library_exercise(trainer.id, ex_in.exercise_library_id)
                    library.usage_count = (library.usage_count or 0) + 1

                sets = [
                    ExerciseSetORM(
                        set_number=set_in.set_number or number,
                        reps=set_in.reps,
                        weight=set_in.weight,
                        duration=set_in.duration,
                        distance=set_in.distance,
                        rest_duration=set_in.rest_duration,
                        completed=set_in.completed,
                        rpe=set_in.rpe,
                        notes=set_in.notes,
                    )
                    for number, set_in in enumerate(ex_in.sets, start=1)
                ]
                totals = exercise_totals(sets)
                card.exercises.append(SessionExerciseORM(
                    exercise_library_id=ex_in.exercise_library_id,
                    name=ex_in.name,
                    category=ex_in.category or (library.category if library else None),
                    exercise_order=ex_in.exercise_order or position,
                    notes=ex_in.notes,
                    form_notes=ex_in.form_notes,
                    is_pr=ex_in.is_pr,
                    pr_note=ex_in.pr_note,
                    sets=sets,
                    **totals,
                ))
                card_sets += totals["total_sets"]
                card_volume += totals["total_volume"]

            card.total_exercises = len(data.exercises)
            card.total_sets = card_sets
            card.total_volume = round(card_volume, 2)
            self.db.flush()

            schedule.status = ScheduleStatus.COMPLETED
            schedule.session_card_id = card.id

            assignment = self._assignment_for(schedule)
            if assignment is not None:
                schedule.program_assignment_id = assignment.id
                record_program_session(self.db, assignment, +1)

            recompute_trainee_stats(self.db, schedule.trainee)
            if data.trainee_rating is not None:
                refresh_trainer_rating(self.db, trainer)

            self.notifications.add_notification(
                schedule.trainee.user_id,
                "progress",
                "Session card ready",
                f"Your trainer logged '{card.title}' on {card.date.isoformat()}",
                related_id=card.id,
                related_type="session_card",
            )

            self.db.commit()
            self.db.refresh(card)
            logger.info(
                f"Trainer {trainer.id} logged session card {card.id} for schedule {schedule.id}: "
                f"{card.total_exercises} exercises, {card.total_sets} sets, {card.total_volume}kg"
            )
            return SessionCardOut.model_validate(card)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "create session card", e)

    def update_session_card(self, user_id: int, card_id: int, data: SessionCardUpdate) -> SessionCardOut:
        try:
            trainer = get_trainer_profile(self.db, user_id)
            card = self._trainer_card(trainer.id, card_id)
            changes = data.model_dump(exclude_unset=True)

            for field, value in changes.items():
                if field == "next_session_goals":
                    card.next_session_goals = value or []
                elif field == "duration" and value is None:
                    continue
                else:
                    set_field(card, field, value)

            if "trainee_rating" in changes:
                refresh_trainer_rating(self.db, trainer)

            self.db.commit()
            self.db.refresh(card)
            return SessionCardOut.model_validate(card)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update session card", e)

    def delete_session_card(self, user_id: int, card_id: int) -> None:
        """Remove a card and reopen its schedule as confirmed."""
        try:
            trainer = get_trainer_profile(self.db, user_id)
            card = self._trainer_card(trainer.id, card_id)
            schedule = card.schedule

            schedule.session_card_id = None
            schedule.status = ScheduleStatus.CONFIRMED
            assignment = None
            if schedule.program_assignment_id is not None:
                assignment = self.db.query(ProgramAssignmentORM).filter(
                    ProgramAssignmentORM.id == schedule.program_assignment_id,
                ).first()
            if assignment is not None and (assignment.sessions_completed or 0) > 0:
                record_program_session(self.db, assignment, -1)

            self.db.delete(card)
            recompute_trainee_stats(self.db, schedule.trainee)
            refresh_trainer_rating(self.db, trainer)

            self.db.commit()
            logger.info(f"Trainer {trainer.id} deleted session card {card_id}")

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "delete session card", e)

    def list_trainer_sessions(
        self, user_id: int, trainee_id: Optional[int] = None, page: int = 1, page_size: int = 20,
    ) -> Tuple[List[SessionCardSummary], int]:
        page, page_size, offset = normalize_page(page, page_size)
        trainer = get_trainer_profile(self.db, user_id)

        query = self.db.query(SessionCardORM).filter(SessionCardORM.trainer_id == trainer.id)
        if trainee_id is not None:
            get_client_of_trainer(self.db, trainer.id, trainee_id)
            query = query.filter(SessionCardORM.trainee_id == trainee_id)

        total = query.count()
        cards = query.order_by(SessionCardORM.date.desc(), SessionCardORM.id.desc()).offset(offset).limit(page_size).all()
        return [SessionCardSummary.model_validate(c) for c in cards], total

    def get_trainer_session(self, user_id: int, card_id: int) -> SessionCardOut:
        trainer = get_trainer_profile(self.db, user_id)
        return SessionCardOut.model_validate(self._trainer_card(trainer.id, card_id))

    # --- TRAINEE ---
    def list_trainee_sessions(self, user_id: int, page: int = 1, page_size: int = 20) -> Tuple[List[SessionCardSummary], int]:
        return self.search_trainee_sessions(user_id, page=page, page_size=page_size)

    def search_trainee_sessions(
        self,
        user_id: int,
        from_date=None,
        to_date=None,
        category: Optional[str] = None,
        exercise_name: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[SessionCardSummary], int]:
        page, page_size, offset = normalize_page(page, page_size)
        if from_date and to_date and from_date > to_date:
            raise InvalidInputError("fromDate must not be after toDate")
        trainee = get_trainee_profile(self.db, user_id)

        query = self.db.query(SessionCardORM).filter(SessionCardORM.trainee_id == trainee.id)
        if from_date:
            query = query.filter(SessionCardORM.date >= from_date)
        if to_date:
            query = query.filter(SessionCardORM.date <= to_date)
        if category or exercise_name:
            matching = self.db.query(SessionExerciseORM.session_card_id)
            if category:
                matching = matching.filter(SessionExerciseORM.category == category)
            if exercise_name:
                matching = matching.filter(SessionExerciseORM.name.ilike(f"%{exercise_name.strip()}%"))
            query = query.filter(SessionCardORM.id.in_(matching))

        total = query.count()
        cards = query.order_by(SessionCardORM.date.desc(), SessionCardORM.id.desc()).offset(offset).limit(page_size).all()
        return [SessionCardSummary.model_validate(c) for c in cards], total

    def get_trainee_session(self, user_id: int, card_id: int) -> SessionCardOut:
        trainee = get_trainee_profile(self.db, user_id)
        card = self.db.query(SessionCardORM).filter(
            SessionCardORM.id == card_id,
            SessionCardORM.trainee_id == trainee.id,
        ).first()
        if not card:
            raise NotFoundError("Session card not found")
        return SessionCardOut.model_validate(card)

    # --- HELPERS ---
    def _trainer_card(self, trainer_id: int, card_id: int) -> SessionCardORM:
        card = self.db.query(SessionCardORM).filter(
            SessionCardORM.id == card_id,
            SessionCardORM.trainer_id == trainer_id,
        ).first()
        if not card:
            raise NotFoundError("Session card not found")
        return card

    def _usable_library_exercise(self, trainer_id: int, exercise_id: int) -> ExerciseLibraryORM:
        exercise = self.db.query(ExerciseLibraryORM).filter(ExerciseLibraryORM.id == exercise_id).first()
        if not exercise or not (exercise.is_public or exercise.trainer_id == trainer_id):
            raise InvalidInputError(f"Exercise {exercise_id} is not in your library")
        return exercise

    def _assignment_for(self, schedule: ScheduleORM) -> Optional[ProgramAssignmentORM]:
        if schedule.program_assignment_id is not None:
            return self.db.query(ProgramAssignmentORM).filter(
                ProgramAssignmentORM.id == schedule.program_assignment_id,
            ).first()
        return find_active_assignment(self.db, schedule.trainee_id)


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    """Dependency injection helper."""
    return SessionService(db)
