"""
Trainee Service - handles the trainee's own profile and statistics aggregation.
"""
from typing import Optional

from fastapi import Depends
from sqlalchemy import func

from database import get_db
from errors import NotFoundError
from models import AchievementOut, CurrentProgramSummary, TraineeOut, TraineeProfileUpdate, TraineeStats
from models_orm import (
    OPEN_STATUSES, AchievementORM, ProgramAssignmentORM, ScheduleORM, ScheduleStatus, TraineeORM,
)

from . import stats
from .base import HTTPException, Session, datetime, get_trainee_profile, handle_db_error, logger, set_field

USER_FIELDS = ("name", "phone_number", "profile_image", "date_of_birth", "gender")


def collect_trainee_stats(db: Session, trainee_id: int, now: Optional[datetime] = None) -> dict:
    """Aggregate a trainee's schedules into counts, hours and streaks."""
    now = now or datetime.now()
    today = now.date()

    by_status = dict(
        db.query(ScheduleORM.status, func.count(ScheduleORM.id))
        .filter(ScheduleORM.trainee_id == trainee_id)
        .group_by(ScheduleORM.status)
        .all()
    )

    completed_minutes = db.query(func.coalesce(func.sum(ScheduleORM.duration), 0)).filter(
        ScheduleORM.trainee_id == trainee_id,
        ScheduleORM.status == ScheduleStatus.COMPLETED,
    ).scalar()

    completed_dates = [
        d for (d,) in db.query(ScheduleORM.date).filter(
            ScheduleORM.trainee_id == trainee_id,
            ScheduleORM.status == ScheduleStatus.COMPLETED,
        ).all()
    ]

    open_rows = db.query(ScheduleORM).filter(
        ScheduleORM.trainee_id == trainee_id,
        ScheduleORM.status.in_(OPEN_STATUSES),
        ScheduleORM.date >= today,
    ).all()
    upcoming = sum(1 for s in open_rows if stats.schedule_start(s) >= now)

    current_streak, longest_streak = stats.compute_streaks(completed_dates, today)

    return {
        "total_sessions": sum(by_status.values()),
        "completed_sessions": by_status.get(ScheduleStatus.COMPLETED, 0),
        "cancelled_sessions": by_status.get(ScheduleStatus.CANCELLED, 0),
        "upcoming_sessions": upcoming,
        "total_workout_hours": stats.workout_hours(completed_minutes),
        "current_streak": current_streak,
        "longest_streak": longest_streak,
        "average_sessions_per_week": stats.average_sessions_per_week(completed_dates, today),
        "last_session_date": max(completed_dates) if completed_dates else None,
    }


def recompute_trainee_stats(db: Session, trainee: TraineeORM, now: Optional[datetime] = None) -> dict:
    """Refresh the cached counters on the trainee row (no commit). Safe to repeat."""
    # Sessions are created with autoflush off; pending schedule changes must be visible
    db.flush()
    result = collect_trainee_stats(db, trainee.id, now)
    trainee.total_sessions = result["total_sessions"]
    trainee.completed_sessions = result["completed_sessions"]
    trainee.cancelled_sessions = result["cancelled_sessions"]
    trainee.current_streak = result["current_streak"]
    trainee.longest_streak = result["longest_streak"]
    trainee.total_workout_hours = result["total_workout_hours"]
    trainee.last_session_date = result["last_session_date"]
    logger.debug(f"[STATS] trainee {trainee.id}: {result}")
    return result


class TraineeService:
    """Service for the trainee's own profile and stats."""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: int) -> TraineeOut:
        return TraineeOut.model_validate(get_trainee_profile(self.db, user_id))

    def update_profile(self, user_id: int, update: TraineeProfileUpdate) -> TraineeOut:
        try:
            trainee = get_trainee_profile(self.db, user_id)
            changes = update.model_dump(exclude_unset=True)

            for field, value in changes.items():
                if field in USER_FIELDS:
                    if field == "name" and value is None:
                        continue
                    set_field(trainee.user, field, value)
                elif value is not None:
                    setattr(trainee, field, value)

            self.db.commit()
            self.db.refresh(trainee)
            logger.info(f"Trainee {trainee.id} updated fields: {sorted(changes)}")
            return TraineeOut.model_validate(trainee)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            handle_db_error(self.db, "update trainee profile", e)

    def get_stats(self, trainee_id: int, now: Optional[datetime] = None) -> TraineeStats:
        """Live stats for one trainee; a trainee with no history gets all zeros."""
        trainee = self.db.query(TraineeORM).filter(TraineeORM.id == trainee_id).first()
        if not trainee:
            raise NotFoundError("Trainee not found")

        result = collect_trainee_stats(self.db, trainee.id, now)
        result["current_program"] = self._current_program(trainee.id)
        result["recent_achievements"] = [
            AchievementOut.model_validate(a)
            for a in self.db.query(AchievementORM)
            .filter(AchievementORM.trainee_id == trainee.id)
            .order_by(AchievementORM.achieved_at.desc())
            .limit(5)
            .all()
        ]
        return TraineeStats(**result)

    def get_stats_for_user(self, user_id: int, now: Optional[datetime] = None) -> TraineeStats:
        return self.get_stats(get_trainee_profile(self.db, user_id).id, now)

    def get_trainee_owner(self, trainee_id: int) -> TraineeORM:
        trainee = self.db.query(TraineeORM).filter(TraineeORM.id == trainee_id).first()
        if not trainee:
            raise NotFoundError("Trainee not found")
        return trainee

    def _current_program(self, trainee_id: int) -> Optional[CurrentProgramSummary]:
        assignment = self.db.query(ProgramAssignmentORM).filter(
            ProgramAssignmentORM.trainee_id == trainee_id,
            ProgramAssignmentORM.status == "active",
        ).order_by(ProgramAssignmentORM.start_date.desc()).first()
        if not assignment:
            return None
        return CurrentProgramSummary(
            id=assignment.program.id,
            name=assignment.program.name,
            progress_percentage=assignment.progress_percentage or 0.0,
            current_week=assignment.current_week or 1,
            total_weeks=assignment.program.total_weeks,
            sessions_completed=assignment.sessions_completed or 0,
            total_sessions=assignment.total_sessions,
        )


def get_trainee_service(db: Session = Depends(get_db)) -> TraineeService:
    """Dependency injection helper."""
    return TraineeService(db)
